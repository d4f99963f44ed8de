"""Vault watcher: re-index and recompile a context when notes change."""

import asyncio
import threading
import time
from pathlib import Path
from typing import Callable, Iterable

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer
from rich.console import Console
from rich.markup import escape

from .context.depth_cache import DepthCacheStore, get_depths_info
from .context.smart_context import SmartContext
from .models import CompileResult, DepthInfo
from .vault.source import Vault

console = Console()

WATCHED_EXTENSIONS = {".md"}


class VaultChangeHandler(FileSystemEventHandler):
    """Collects note events and debounces them."""

    def __init__(self, debounce: float = 2.0):
        super().__init__()
        self._pending: set[str] = set()
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._debounce = debounce
        self._callback: Callable[[list[str]], None] | None = None

    def set_callback(self, callback: Callable[[list[str]], None]) -> None:
        self._callback = callback

    def _is_note(self, path: str) -> bool:
        p = Path(path)
        return p.suffix.lower() in WATCHED_EXTENSIONS and not p.name.startswith(".")

    def on_created(self, event):
        if not event.is_directory and self._is_note(event.src_path):
            self._add(event.src_path)

    def on_modified(self, event):
        if not event.is_directory and self._is_note(event.src_path):
            self._add(event.src_path)

    def on_deleted(self, event):
        if not event.is_directory and self._is_note(event.src_path):
            self._add(event.src_path)

    def on_moved(self, event):
        if not event.is_directory and (self._is_note(event.src_path) or self._is_note(event.dest_path)):
            self._add(event.dest_path)

    def _add(self, path: str):
        with self._lock:
            self._pending.add(path)
            if self._timer:
                self._timer.cancel()
            self._timer = threading.Timer(self._debounce, self._flush)
            self._timer.daemon = True
            self._timer.start()

    def _flush(self):
        with self._lock:
            paths = sorted(self._pending)
            self._pending.clear()
        if paths and self._callback:
            self._callback(paths)


class ContextWatcher:
    """Watches the vault and recompiles one context after each batch of changes.

    With `depths` set, each batch also rescans those link depths through
    `store`; the latest scan is kept on `depths_info`.
    """

    def __init__(
        self,
        vault: Vault,
        context: SmartContext,
        store: DepthCacheStore | None = None,
        debounce: float = 2.0,
        on_compiled: Callable[[CompileResult], None] | None = None,
        depths: Iterable[int] | None = None,
    ):
        self.vault = vault
        self.context = context
        self.store = store or DepthCacheStore()
        self.on_compiled = on_compiled
        self.depths = list(depths) if depths is not None else None
        self.depths_info: list[DepthInfo] = []
        self.handler = VaultChangeHandler(debounce=debounce)
        self.handler.set_callback(self.process_batch)
        self.observer = Observer()
        # batches run on timer threads; a context must only compile once at a time
        self._compile_lock = threading.Lock()

    def process_batch(self, paths: list[str]) -> CompileResult:
        """Re-index the vault, drop stale depth scans and recompile."""
        with self._compile_lock:
            console.print(f"\n[bold blue]{len(paths)} note(s) changed[/]")
            for p in paths:
                console.print(f"  [dim]{Path(p).name}[/]")

            self.vault.refresh()
            self.store.invalidate(self.context.key)
            result = asyncio.run(self._recompile())

            s = result.stats
            console.print(
                f"  [green]✓ Recompiled: {s.item_count} item(s), {s.link_count} link(s), {s.char_count} chars[/]"
            )
            for info in self.depths_info:
                console.print(f"  [dim]{escape(info.label)}[/]")
            if self.on_compiled:
                self.on_compiled(result)
            return result

    async def _recompile(self) -> CompileResult:
        result = await self.context.compile()
        if self.depths is not None:
            self.depths_info = await get_depths_info(self.context, self.store, self.depths)
        return result

    def run(self):
        """Start watching (blocks until Ctrl+C)."""
        self.observer.schedule(self.handler, str(self.vault.vault_path), recursive=True)
        self.observer.start()

        console.print(f"[bold]Watching {self.vault.vault_path} for changes... (Ctrl+C to stop)[/]")

        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Stopping watcher...[/]")
            self.observer.stop()
        self.observer.join()
        console.print("[green]✓ Watcher stopped.[/]")
