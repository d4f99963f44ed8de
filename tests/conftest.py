"""Shared fixtures: throwaway vaults built from {path: text} dicts."""

from pathlib import Path

import pytest

from smart_context.vault.source import Vault


def write_files(root: Path, files: dict[str, str]) -> None:
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


@pytest.fixture
def make_vault(tmp_path):
    def _make(files: dict[str, str]) -> Vault:
        write_files(tmp_path, files)
        return Vault(tmp_path)
    return _make
