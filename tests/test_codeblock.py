"""Tests for smart-context codeblock expansion."""

from conftest import write_files
from smart_context.codeblock import find_codeblock_paths, parse_codeblock, should_ignore

NOTE = """Intro

```smart-context
project/src
project/a.md

project/image.png
project/secret.md
missing
```
"""


def _project(tmp_path):
    write_files(tmp_path, {
        ".gitignore": "secret.md\n",
        "project/a.md": "alpha",
        "project/secret.md": "s",
        "project/image.png": "PNG",
        "project/src/x.py": "print(1)",
        "project/src/.gitignore": "# build output\nbuild/\n!keep\n",
        "project/src/build/out.txt": "built",
    })
    return tmp_path.resolve()


def test_find_codeblock_paths():
    text = NOTE + "\n```smart-context\nother\n```\n```python\nnot/this\n```"
    assert find_codeblock_paths(text) == [
        "project/src", "project/a.md", "project/image.png", "project/secret.md", "missing", "other",
    ]


def test_parse_codeblock(tmp_path):
    base = _project(tmp_path)
    result = parse_codeblock(NOTE, tmp_path)
    assert list(result.items) == [
        (base / "project/src/x.py").as_posix(),
        (base / "project/a.md").as_posix(),
    ]
    assert result.ignored_patterns_matched == ["build/", "secret.md"]
    assert result.external_chars == len("print(1)") + len("alpha")
    item = result.items[(base / "project/a.md").as_posix()]
    assert item.content == "alpha"
    assert item.char_count == 5


def test_include_non_text(tmp_path):
    base = _project(tmp_path)
    result = parse_codeblock(NOTE, tmp_path, include_non_text=True)
    assert (base / "project/image.png").as_posix() in result.items


def test_additional_excludes(tmp_path):
    base = _project(tmp_path)
    result = parse_codeblock(NOTE, tmp_path, additional_excludes=["*.py"])
    assert (base / "project/src/x.py").as_posix() not in result.items
    assert "*.py" in result.ignored_patterns_matched


def test_should_ignore():
    assert should_ignore("node_modules/pkg/index.js", ["node_modules"])
    assert should_ignore("src/cache.pyc", ["*.pyc"])
    assert should_ignore("docs/build", ["docs/build/"])
    assert not should_ignore("docs/builder.md", ["docs/build"])
    matched = []
    should_ignore("a/tmp/x", ["tmp"], matched)
    should_ignore("b/tmp/y", ["tmp"], matched)
    assert matched == ["tmp"]
