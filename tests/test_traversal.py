"""Tests for link graph traversal."""

import pytest

from smart_context.graph.traversal import (
    BOTH,
    IN,
    OUT,
    get_links_to_depth,
    merge_context_item_maps,
    traverse,
)
from smart_context.models import ContextItem


def test_depth_bound(make_vault):
    vault = make_vault({"a.md": "[[b]]", "b.md": "[[c]]", "c.md": "[[d]]", "d.md": ""})
    entries = get_links_to_depth(vault, "a.md", 2, OUT)
    assert [(e.item.key, e.depth) for e in entries] == [("a.md", 0), ("b.md", 1), ("c.md", 2)]
    assert entries[1].via == "a.md"
    assert entries[2].via == "b.md"


def test_cycles_terminate(make_vault):
    vault = make_vault({"a.md": "[[b]]", "b.md": "[[a]]"})
    entries = get_links_to_depth(vault, "a.md", 10, OUT)
    assert [e.item.key for e in entries] == ["a.md", "b.md"]


def test_inbound_direction(make_vault):
    vault = make_vault({"a.md": "", "b.md": "[[a]]", "c.md": "[[b]]"})
    entries = get_links_to_depth(vault, "a.md", 5, IN, include_self=False)
    assert [(e.item.key, e.depth, e.direction) for e in entries] == [("b.md", 1, IN), ("c.md", 2, IN)]


def test_unknown_roots_are_skipped(make_vault):
    vault = make_vault({"a.md": ""})
    assert get_links_to_depth(vault, ["ghost.md"], 3) == []


def test_invalid_direction(make_vault):
    vault = make_vault({"a.md": ""})
    with pytest.raises(ValueError):
        get_links_to_depth(vault, "a.md", 1, BOTH)
    with pytest.raises(ValueError):
        traverse(vault, "a.md", 1, "sideways")


def test_min_depth_across_roots(make_vault):
    vault = make_vault({
        "r1.md": "[[p]]",
        "p.md": "[[m]]",
        "r2.md": "[[m]]",
        "m.md": "",
    })
    items = traverse(vault, ["r1.md", "r2.md"], 3, OUT)
    assert items["m.md"].depth == 1
    assert items["m.md"].via == "r2.md"
    assert items["r1.md"].depth == 0
    assert not items["r1.md"].is_link


def test_inlink_classification(make_vault):
    vault = make_vault({
        "a.md": "[[b]]",
        "b.md": "[[a]]",
        "c.md": "[[a]]",
    })
    items = traverse(vault, "a.md", 1, BOTH)
    assert items["b.md"].is_inlink is False
    assert items["c.md"].is_inlink is True
    assert items["a.md"].is_inlink is False
    assert items["c.md"].is_link


def test_out_only_excludes_inlinks(make_vault):
    vault = make_vault({"a.md": "", "c.md": "[[a]]"})
    assert set(traverse(vault, "a.md", 2, OUT)) == {"a.md"}


def test_embedded_by_root_is_depth_zero(make_vault):
    vault = make_vault({"a.md": "[[b]]\n![[e]]", "b.md": "", "e.md": ""})
    items = traverse(vault, "a.md", 1, OUT)
    assert items["e.md"].depth == 0
    assert items["b.md"].depth == 1


def test_include_self_false(make_vault):
    vault = make_vault({"a.md": "[[b]]", "b.md": ""})
    assert set(traverse(vault, "a.md", 1, OUT, include_self=False)) == {"b.md"}


def test_merge_keeps_smaller_depth():
    target = {"x": ContextItem(key="x", depth=3, is_link=True, via="p")}
    merge_context_item_maps(target, {
        "x": ContextItem(key="x", depth=1, is_link=True, via="q"),
        "y": ContextItem(key="y", depth=2, is_link=True),
    })
    assert target["x"].depth == 1
    assert target["x"].via == "q"
    assert target["y"].depth == 2


def test_root_embeds_seeded_at_depth_zero(make_vault):
    vault = make_vault({"a.md": "[[b]]\n![[e]]", "b.md": "", "e.md": ""})
    items = traverse(vault, "a.md", 0, OUT)
    assert set(items) == {"a.md", "e.md"}
    assert items["e.md"].depth == 0
    assert items["e.md"].is_link
    assert items["e.md"].via == "a.md"
