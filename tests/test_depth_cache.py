"""Tests for the per-depth compile cache."""

import pytest

from smart_context.context.depth_cache import (
    DepthCacheStore,
    approximate_tokens,
    build_depth_suggestions,
    get_depths_info,
)
from smart_context.context.smart_context import SmartContext
from smart_context.models import ContextItem


class CountingContext(SmartContext):
    """SmartContext that records the depth of every compile."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.compiled_depths = []

    async def compile(self, link_depth=None, include_inlinks=None, filter=None):
        self.compiled_depths.append(link_depth)
        return await super().compile(link_depth, include_inlinks, filter)


def _chain_vault(make_vault):
    return make_vault({
        "a.md": "alpha " * 20 + "\n[[b]]",
        "b.md": "beta " * 20 + "\n[[c]]",
        "c.md": "gamma " * 20,
    })


def test_approximate_tokens():
    assert approximate_tokens(0) == 0
    assert approximate_tokens(1) == 1
    assert approximate_tokens(8) == 2
    assert approximate_tokens(9) == 3


@pytest.mark.asyncio
async def test_second_call_reuses_scan(make_vault):
    ctx = CountingContext(_chain_vault(make_vault))
    ctx.add_item("a.md")
    store = DepthCacheStore()

    first = await get_depths_info(ctx, store, depths=range(0, 4))
    assert ctx.compiled_depths == [0, 1, 2, 3]
    assert [info.depth for info in first] == [0, 1, 2, 3]
    assert all(info.calculated for info in first)
    assert first[0].stats.link_count == 0
    assert first[2].stats.link_count == 2
    assert first[2].approx_tokens == approximate_tokens(len(first[2].context))

    second = await get_depths_info(ctx, store, depths=range(0, 4))
    assert second is first
    assert ctx.compiled_depths == [0, 1, 2, 3, 0]


@pytest.mark.asyncio
async def test_changed_root_invalidates(make_vault, tmp_path):
    vault = _chain_vault(make_vault)
    ctx = CountingContext(vault)
    ctx.add_item("a.md")
    store = DepthCacheStore()
    first = await get_depths_info(ctx, store, depths=range(0, 2))

    (tmp_path / "a.md").write_text("much longer now " * 50 + "\n[[b]]")
    vault.refresh()
    second = await get_depths_info(ctx, store, depths=range(0, 2))
    assert second is not first
    assert ctx.compiled_depths == [0, 1, 0, 1]
    assert second[0].approx_tokens > first[0].approx_tokens


@pytest.mark.asyncio
async def test_inlink_variant_cached_separately(make_vault):
    vault = make_vault({"a.md": "alpha", "c.md": "[[a]] " + "x" * 40})
    ctx = SmartContext(vault)
    ctx.add_item("a.md")
    store = DepthCacheStore()

    plain = await get_depths_info(ctx, store, depths=range(0, 2), include_inlinks=False)
    with_in = await get_depths_info(ctx, store, depths=range(0, 2), include_inlinks=True)
    assert ctx.key in store
    assert f"{ctx.key}+inlinks" in store
    assert plain[1].stats.link_count == 0
    assert with_in[1].stats.link_count == 1


@pytest.mark.asyncio
async def test_ceiling_stops_further_depths(make_vault):
    ctx = CountingContext(_chain_vault(make_vault))
    ctx.add_item("a.md")
    infos = await get_depths_info(ctx, DepthCacheStore(), depths=range(0, 4), token_ceiling=1)

    assert ctx.compiled_depths == [0]
    assert infos[0].calculated
    assert infos[0].label.endswith("[exceeds 0k; stopping further]")
    for info in infos[1:]:
        assert not info.calculated
        assert info.label == f"Depth {info.depth} (not calculated)"
        assert info.approx_tokens == 0
        assert info.stats is None


@pytest.mark.asyncio
async def test_label_format(make_vault):
    vault = make_vault({"a.md": "x" * 6000})
    ctx = SmartContext(vault)
    ctx.add_item("a.md")
    infos = await get_depths_info(ctx, DepthCacheStore(), depths=[0])
    assert infos[0].label == "Depth 0 (6k chars, 2k tokens)"


def test_store_fingerprint_and_invalidate():
    store = DepthCacheStore()
    store.put("ctx", 10, [])
    store.put("ctx+inlinks", 10, [])
    store.put("other", 3, [])
    assert store.get("ctx", 10) is not None
    assert store.get("ctx", 11) is None
    store.invalidate("ctx")
    assert len(store) == 1
    assert "other" in store
    store.invalidate()
    assert len(store) == 0


def test_build_depth_suggestions():
    rows = build_depth_suggestions([
        ContextItem(key="a", depth=0, size=10),
        ContextItem(key="b", depth=1, is_link=True, size=5),
        ContextItem(key="c", depth=1, is_link=True, is_inlink=True, size=0),
        ContextItem(key="d", depth=1, excluded=True, size=99),
    ])
    assert rows == [
        {"depth": 0, "count": 1, "size": 10, "sizes": 1, "include_inlinks": False},
        {"depth": 0, "count": 1, "size": 10, "sizes": 1, "include_inlinks": True},
        {"depth": 1, "count": 2, "size": 15, "sizes": 2, "include_inlinks": False},
        {"depth": 1, "count": 3, "size": 15, "sizes": 2, "include_inlinks": True},
    ]
    assert build_depth_suggestions([]) == []


@pytest.mark.asyncio
async def test_embedding_root_is_cache_hit(make_vault):
    vault = make_vault({
        "a.md": "alpha\n![[e]]\n[[b]]",
        "e.md": "embedded body",
        "b.md": "bee",
    })
    ctx = CountingContext(vault)
    ctx.add_item("a.md")
    store = DepthCacheStore()

    first = await get_depths_info(ctx, store, depths=range(0, 3))
    second = await get_depths_info(ctx, store, depths=range(0, 3))
    assert second is first
    assert ctx.compiled_depths == [0, 1, 2, 0]
