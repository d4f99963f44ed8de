"""Context aggregate, compiler and depth cache."""

from .compiler import build_context
from .depth_cache import DepthCacheStore, approximate_tokens, build_depth_suggestions, get_depths_info
from .smart_context import SmartContext, compile_context

__all__ = [
    "DepthCacheStore",
    "SmartContext",
    "approximate_tokens",
    "build_context",
    "build_depth_suggestions",
    "compile_context",
    "get_depths_info",
]
