"""CLI entry point for smart-context."""

import asyncio
import logging
import sys
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .config import load_config, render_default_config

console = Console()


@click.group()
@click.option("--config", "-c", "config_path", default=None, help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, config_path, verbose):
    """smart-context - Compile notes and their links into one prompt-ready context."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(message)s", handlers=[RichHandler(console=console)])


def _get_config(ctx) -> dict:
    try:
        return load_config(ctx.obj.get("config_path"))
    except yaml.YAMLError as e:
        console.print(f"[red]Invalid config file: {e}[/]")
        sys.exit(1)


def _build_context(config: dict, keys: tuple[str, ...], codeblock: str | None = None):
    """Open the vault and add each key (or codeblock file list) as a root."""
    from .codeblock import parse_codeblock
    from .context.smart_context import SmartContext
    from .vault.base import get_vault

    vault = get_vault(config)
    context = SmartContext.from_config(config, vault)

    for raw in keys:
        key = vault.resolve_link(raw)
        if key is None and vault.keys_under(raw):
            for sub in vault.keys_under(raw):
                context.add_item(sub)
            continue
        if key is None and Path(raw).is_file():
            key = vault.key_for_path(str(Path(raw).resolve()))
        if key is None:
            console.print(f"[yellow]Not found in vault: {raw}[/]")
            continue
        context.add_item(key)

    if codeblock:
        note = Path(codeblock)
        if not note.is_file():
            note = vault.vault_path / codeblock
        if not note.is_file():
            console.print(f"[red]Codeblock note not found: {codeblock}[/]")
        else:
            cb_cfg = config.get("codeblock", {})
            result = parse_codeblock(
                note.read_text(encoding="utf-8", errors="replace"),
                note.parent,
                include_non_text=cb_cfg.get("include_non_text", False),
                additional_excludes=cb_cfg.get("additional_excludes", []),
            )
            context.add_codeblock_items(result)
            console.print(f"  [dim]{len(result.items)} file(s) from smart-context blocks[/]")
            if result.ignored_patterns_matched:
                console.print(f"  [dim]Ignored by: {', '.join(result.ignored_patterns_matched)}[/]")

    if not context.items:
        console.print("[red]No items to compile.[/]")
        sys.exit(1)
    return vault, context


def _print_stats(stats) -> None:
    from .context.depth_cache import approximate_tokens
    from .text.headings import format_excluded_sections

    table = Table(title="Context Stats")
    table.add_column("Items", justify="right", style="cyan")
    table.add_column("Links", justify="right", style="cyan")
    table.add_column("Chars", justify="right", style="green")
    table.add_column("~Tokens", justify="right", style="green")
    table.add_row(
        str(stats.item_count),
        str(stats.link_count),
        str(stats.char_count),
        str(approximate_tokens(stats.char_count)),
    )
    console.print(table)
    if stats.excluded_count:
        console.print(
            f"[dim]{stats.excluded_count} section(s) excluded"
            f"{format_excluded_sections(stats.excluded_sections)}[/]"
        )


@cli.command()
@click.option("--path", default=None, help="Vault path to write into the config")
def init(path):
    """Write a default config file to the current directory."""
    vault_path = str(Path(path or ".").expanduser().resolve())
    config_file = Path.cwd() / ".smart-context.yaml"
    if config_file.exists():
        console.print(f"[yellow]Config already exists: {config_file}[/]")
        return
    config_file.write_text(render_default_config(vault_path))
    console.print(f"[bold green]✓ Created config: {config_file}[/]")


@cli.command("compile")
@click.argument("keys", nargs=-1)
@click.option("--depth", "-d", type=int, default=None, help="Link depth to follow")
@click.option("--inlinks/--no-inlinks", default=None, help="Also follow links pointing at the items")
@click.option("--codeblock", default=None, help="Note whose smart-context blocks list files to add")
@click.option("--exclude", "-x", multiple=True, help="Heading to exclude (repeatable)")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Write context to file")
@click.pass_context
def compile_cmd(ctx, keys, depth, inlinks, codeblock, exclude, output):
    """Compile notes (and their links) into one context."""
    config = _get_config(ctx)
    if exclude:
        config["excluded_headings"] = list(config["excluded_headings"]) + list(exclude)
    _, context = _build_context(config, keys, codeblock)

    result = asyncio.run(context.compile(link_depth=depth, include_inlinks=inlinks))

    if output:
        Path(output).write_text(result.context, encoding="utf-8")
        console.print(f"[green]✓ Wrote context to {output}[/]")
    else:
        click.echo(result.context)
    _print_stats(result.stats)


@cli.command()
@click.argument("keys", nargs=-1)
@click.option("--inlinks/--no-inlinks", default=None, help="Also follow links pointing at the items")
@click.option("--codeblock", default=None, help="Note whose smart-context blocks list files to add")
@click.pass_context
def depths(ctx, keys, inlinks, codeblock):
    """Show estimated context size for each link depth."""
    from .context.depth_cache import DepthCacheStore, build_depth_suggestions, get_depths_info

    config = _get_config(ctx)
    _, context = _build_context(config, keys, codeblock)
    cache_cfg = config.get("depth_cache", {})
    infos = asyncio.run(get_depths_info(
        context,
        DepthCacheStore(),
        depths=range(0, cache_cfg.get("max_depth", 5) + 1),
        include_inlinks=inlinks,
        token_ceiling=cache_cfg.get("token_ceiling", 50000),
    ))

    table = Table(title="Link Depths")
    table.add_column("Depth", justify="right", style="dim", width=5)
    table.add_column("Items", justify="right", style="cyan")
    table.add_column("Links", justify="right", style="cyan")
    table.add_column("~Tokens", justify="right", style="green")
    table.add_column("Label")
    for info in infos:
        if not info.calculated:
            table.add_row(str(info.depth), "-", "-", "-", f"[dim]{info.label}[/]")
            continue
        table.add_row(
            str(info.depth),
            str(info.stats.item_count),
            str(info.stats.link_count),
            str(info.approx_tokens),
            escape(info.label),
        )
    console.print(table)

    suggestions = Table(title="Items per Depth")
    suggestions.add_column("Depth", justify="right", style="dim", width=5)
    suggestions.add_column("Inlinks")
    suggestions.add_column("Items", justify="right", style="cyan")
    suggestions.add_column("Bytes", justify="right", style="green")
    for row in build_depth_suggestions(context.items.values()):
        suggestions.add_row(
            str(row["depth"]),
            "yes" if row["include_inlinks"] else "no",
            str(row["count"]),
            str(row["size"]),
        )
    console.print(suggestions)


@cli.command()
@click.argument("keys", nargs=-1)
@click.option("--depth", "-d", type=int, default=None, help="Link depth to follow")
@click.option("--inlinks/--no-inlinks", default=None, help="Also follow links pointing at the items")
@click.pass_context
def tree(ctx, keys, depth, inlinks):
    """Print the file tree of everything a compile would include."""
    from .context.file_tree import render_file_tree

    config = _get_config(ctx)
    _, context = _build_context(config, keys)
    link_depth = context.link_depth if depth is None else depth
    include_inlinks = context.include_inlinks if inlinks is None else inlinks
    context.expand_links(link_depth, include_inlinks)
    click.echo(render_file_tree(list(context.select(link_depth, include_inlinks))))


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--exclude", "-x", multiple=True, help="Heading to exclude (repeatable)")
@click.pass_context
def strip(ctx, file, exclude):
    """Print a file with excluded heading sections removed."""
    from .text.headings import format_excluded_sections, strip_excluded_sections

    config = _get_config(ctx)
    headings = list(exclude) or config["excluded_headings"]
    result = strip_excluded_sections(Path(file).read_text(encoding="utf-8", errors="replace"), headings)
    click.echo(result.processed_content)
    if result.excluded_count:
        console.print(
            f"[dim]{result.excluded_count} section(s) excluded"
            f"{format_excluded_sections(result.excluded_sections)}[/]",
            highlight=False,
        )


@cli.command()
@click.argument("keys", nargs=-1)
@click.option("--debounce", default=2.0, help="Seconds to wait after last change before recompiling")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Rewrite context to file on change")
@click.option("--scan-depths", is_flag=True, help="Also rescan token estimates per link depth on change")
@click.pass_context
def watch(ctx, keys, debounce, output, scan_depths):
    """Recompile the given notes whenever the vault changes."""
    from .watcher import ContextWatcher

    config = _get_config(ctx)
    vault, context = _build_context(config, keys)

    def _write(result):
        if output:
            Path(output).write_text(result.context, encoding="utf-8")

    depths = None
    if scan_depths:
        depths = range(0, config.get("depth_cache", {}).get("max_depth", 5) + 1)
    watcher = ContextWatcher(vault, context, debounce=debounce, on_compiled=_write, depths=depths)
    watcher.run()


if __name__ == "__main__":
    cli()
