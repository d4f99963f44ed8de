"""Configuration management for smart-context."""

import copy
import os
from pathlib import Path
from typing import Any

import yaml


DEFAULT_TEMPLATES = {
    "before_context": "<context>\n{{FILE_TREE}}",
    "after_context": "</context>",
    "before_item": '<item loc="{{KEY}}" at="{{TIME_AGO}}">',
    "after_item": "</item>",
    "before_link": '<link loc="{{LINK_PATH}}" type="{{LINK_TYPE}}" depth="{{LINK_DEPTH}}" item="{{LINK_ITEM_PATH}}">',
    "after_link": "</link>",
}

DEFAULT_CONFIG = {
    "vault_path": ".",
    "excluded_headings": [],
    "link_depth": 0,
    "include_inlinks": False,
    "templates": dict(DEFAULT_TEMPLATES),
    "depth_cache": {"max_depth": 5, "token_ceiling": 50000},
    "codeblock": {"additional_excludes": [], "include_non_text": False},
}


def _find_config_file() -> Path | None:
    """Look for a config file in standard locations."""
    candidates = [
        Path.cwd() / "config" / "smart_context.yaml",
        Path.cwd() / ".smart-context.yaml",
        Path.home() / ".smart-context" / "config.yaml",
    ]
    for p in candidates:
        if p.exists():
            return p
    return None


def load_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration, merging defaults with file and env vars."""
    cfg = copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_path) if config_path else _find_config_file()
    if path and path.exists():
        with open(path) as f:
            file_cfg = yaml.safe_load(f) or {}
        _deep_merge(cfg, file_cfg)

    # Env overrides
    if vault := os.environ.get("SMART_CONTEXT_VAULT"):
        cfg["vault_path"] = vault

    cfg["vault_path"] = str(Path(cfg["vault_path"]).expanduser().resolve())
    cfg["excluded_headings"] = [str(h) for h in cfg.get("excluded_headings") or []]

    return cfg


def render_default_config(vault_path: str) -> str:
    """Render a commented config file for `smart-context init`."""
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    cfg["vault_path"] = vault_path
    header = (
        "# Headings whose sections are dropped from compiled output (exact match)\n"
        "# excluded_headings:\n"
        "#   - Private\n\n"
        "# Placeholders: {{FILE_TREE}} {{ITEM_PATH}} {{ITEM_NAME}} {{KEY}} {{TIME_AGO}}\n"
        "# {{LINK_PATH}} {{LINK_NAME}} {{LINK_ITEM_PATH}} {{LINK_ITEM_NAME}} {{LINK_TYPE}} {{LINK_DEPTH}}\n\n"
    )
    return header + yaml.dump(cfg, default_flow_style=False, allow_unicode=True, sort_keys=False)


def _deep_merge(base: dict, override: dict) -> None:
    """Merge override into base in-place."""
    for k, v in override.items():
        if k in base and isinstance(base[k], dict) and isinstance(v, dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
