"""Vault access: note reading, link resolution and the link graph."""

from .base import OutLink, VaultBase, VaultSource, get_vault
from .source import Vault, split_key

__all__ = ["OutLink", "Vault", "VaultBase", "VaultSource", "get_vault", "split_key"]
