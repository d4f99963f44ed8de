"""Tests for context assembly, templates and the file tree."""

from smart_context.context.compiler import build_context
from smart_context.context.file_tree import build_path_tree, filter_redundant_blocks, render_file_tree
from smart_context.context.templates import render_template, time_ago
from smart_context.models import LinkRecord


def test_items_wrapped_with_templates():
    result = build_context(
        {"notes/a.md": "  alpha \n"},
        templates={"before_item": "<{{ITEM_PATH}}|{{ITEM_NAME}}>", "after_item": "</{{ITEM_NAME}}>"},
    )
    assert result.context == "<notes/a.md|a.md>\nalpha\n</a.md>"
    assert result.stats.item_count == 1
    assert result.stats.link_count == 0
    assert result.stats.char_count == len(result.context)


def test_link_placeholders():
    links = {"x/b.md": LinkRecord("beta", "OUT-LINK", 2, from_="notes/a.md")}
    result = build_context(
        {},
        links,
        templates={"before_link": "{{LINK_PATH}} {{LINK_NAME}} {{LINK_ITEM_PATH}} {{LINK_ITEM_NAME}} {{LINK_TYPE}} {{LINK_DEPTH}}"},
    )
    assert result.context == "x/b.md b.md notes/a.md a.md OUT-LINK 2\nbeta"
    assert result.stats.link_count == 1


def test_inlink_record_points_at_target():
    link = LinkRecord("gamma", "IN-LINK", 1, to="a.md")
    assert link.item_key == "a.md"


def test_items_come_before_links():
    result = build_context(
        {"a.md": "A"},
        {"b.md": LinkRecord("B", "OUT-LINK", 1, from_="a.md")},
        templates={},
    )
    assert result.context == "A\nB"


def test_file_tree_placeholder_covers_items_and_links():
    result = build_context(
        {"notes/a.md": "A"},
        {"b.md": LinkRecord("B", "OUT-LINK", 1, from_="notes/a.md")},
        templates={"before_context": "{{FILE_TREE}}"},
    )
    assert result.context.startswith("├── notes/\n│   └── a.md\n└── b.md")


def test_empty_context():
    result = build_context({})
    assert result.context == ""
    assert result.stats.char_count == 0


def test_render_template_unknown_and_missing():
    assert render_template("{{KEY}}|{{UNKNOWN}}|{{TIME_AGO}}", {"KEY": "k"}) == "k|{{UNKNOWN}}|"
    assert render_template("", {"KEY": "k"}) == ""


def test_render_template_is_single_pass():
    assert render_template("{{ITEM_PATH}}", {"ITEM_PATH": "{{KEY}}", "KEY": "nope"}) == "{{KEY}}"


def test_render_template_lazy_values():
    calls = []

    def value():
        calls.append(1)
        return "tree"

    assert render_template("{{KEY}}", {"KEY": "k", "FILE_TREE": value}) == "k"
    assert calls == []
    assert render_template("{{FILE_TREE}}", {"FILE_TREE": value}) == "tree"
    assert calls == [1]


def test_time_ago():
    now = 1_700_000_000
    assert time_ago(None) == "Missing"
    assert time_ago(now - 10, now) == "just now"
    assert time_ago(now - 60, now) == "1 minute ago"
    assert time_ago(now - 3 * 3600, now) == "3 hours ago"
    assert time_ago(now - 3 * 86400, now) == "3 days ago"
    assert time_ago(now - 400 * 86400, now) == "1 year ago"


def test_filter_redundant_blocks():
    assert filter_redundant_blocks(["foo.md", "foo.md#a", "bar.md#b"]) == ["foo.md", "bar.md#b"]


def test_tree_skips_keys_under_selected_folder():
    out = render_file_tree(["other/b.md", "notes", "notes/a.md"])
    assert out == "├── notes/\n└── other/\n    └── b.md"


def test_tree_directories_before_files():
    out = render_file_tree(["z.md", "a.md", "dir/c.md"])
    assert out.split("\n") == ["├── dir/", "│   └── c.md", "├── a.md", "└── z.md"]


def test_build_path_tree_marks_selection():
    root = build_path_tree(["dir/c.md"])
    folder = root.children["dir"]
    assert not folder.selected
    assert not folder.is_file
    assert folder.children["c.md"].selected
    assert folder.children["c.md"].is_file
    assert folder.children["c.md"].path == "dir/c.md"
