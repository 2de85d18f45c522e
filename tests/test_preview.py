"""Unit tests for the preview tree (cargo_scaffold.preview)."""

from __future__ import annotations

import pytest

from cargo_scaffold.preview import NullTree, PreviewTree


def _sample_tree() -> PreviewTree:
    tree = PreviewTree("demo")
    tree.add_leaf("Cargo.toml")
    tree.begin("src")
    tree.add_leaf("main.rs")
    tree.end()
    return tree


class TestPreviewTree:
    @pytest.mark.unit
    def test_paths_in_insertion_order(self):
        assert _sample_tree().paths() == ["Cargo.toml", "src", "src/main.rs"]

    @pytest.mark.unit
    def test_depth_tracks_open_branches(self):
        tree = PreviewTree("demo")
        tree.begin("a")
        tree.begin("b")
        assert tree.depth == 2
        assert not tree.balanced
        tree.end()
        tree.end()
        assert tree.balanced

    @pytest.mark.unit
    def test_end_at_root_raises(self):
        with pytest.raises(ValueError):
            PreviewTree("demo").end()

    @pytest.mark.unit
    def test_render_unbalanced_raises(self):
        tree = PreviewTree("demo")
        tree.begin("src")
        with pytest.raises(ValueError, match="unbalanced"):
            tree.render()

    @pytest.mark.unit
    def test_render_contains_entries(self):
        rendered = _sample_tree().render()
        lines = rendered.splitlines()
        assert lines[0].rstrip() == "demo"
        assert "Cargo.toml" in rendered
        assert rendered.index("src") < rendered.index("main.rs")

    @pytest.mark.unit
    def test_render_is_deterministic(self):
        assert _sample_tree().render() == _sample_tree().render()

    @pytest.mark.unit
    def test_render_keeps_brackets_literal(self):
        tree = PreviewTree("[bold]demo[/bold]")
        tree.add_leaf("[x].txt")
        rendered = tree.render()
        assert "[bold]demo[/bold]" in rendered
        assert "[x].txt" in rendered

    @pytest.mark.unit
    def test_empty_tree_renders_root_only(self):
        assert PreviewTree("demo").render().strip() == "demo"


class TestNullTree:
    @pytest.mark.unit
    def test_accepts_calls(self):
        tree = NullTree()
        tree.begin("src")
        tree.add_leaf("main.rs")
        tree.end()
        tree.end()
