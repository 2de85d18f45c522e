"""Preview tree accumulation for dry runs.

Generation steps describe the entries they create through a small sink
interface (``begin``, ``add_leaf``, ``end``).  ``PreviewTree`` records those
calls as an ordered hierarchy that can be rendered with Rich; ``NullTree``
accepts the same calls and discards them, so steps never have to check
whether a preview is being collected.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Protocol

from rich.console import Console
from rich.text import Text
from rich.tree import Tree


class TreeSink(Protocol):
    """Capability set every generation step writes its plan into."""

    def begin(self, name: str) -> None: ...

    def end(self) -> None: ...

    def add_leaf(self, name: str) -> None: ...


@dataclass
class TreeNode:
    """A planned directory (with children) or file (leaf)."""

    name: str
    children: list["TreeNode"] = field(default_factory=list)
    is_leaf: bool = False


class NullTree:
    """Sink that ignores every call."""

    def begin(self, name: str) -> None:
        pass

    def end(self) -> None:
        pass

    def add_leaf(self, name: str) -> None:
        pass


class PreviewTree:
    """Ordered record of the directories and files a run would create."""

    def __init__(self, root: str) -> None:
        self.root = TreeNode(name=root)
        self._stack: list[TreeNode] = [self.root]

    # -- Sink interface ------------------------------------------------------

    def begin(self, name: str) -> None:
        """Open a branch under the current one and make it current."""
        node = TreeNode(name=name)
        self._stack[-1].children.append(node)
        self._stack.append(node)

    def end(self) -> None:
        """Close the current branch and return to its parent."""
        if len(self._stack) == 1:
            raise ValueError("end() called without a matching begin()")
        self._stack.pop()

    def add_leaf(self, name: str) -> None:
        """Record a file under the current branch."""
        self._stack[-1].children.append(TreeNode(name=name, is_leaf=True))

    # -- Inspection ------------------------------------------------------------

    @property
    def depth(self) -> int:
        """Number of branches currently open."""
        return len(self._stack) - 1

    @property
    def balanced(self) -> bool:
        return self.depth == 0

    def paths(self) -> list[str]:
        """Return every recorded entry as a relative POSIX path, in order."""
        collected: list[str] = []

        def _walk(node: TreeNode, prefix: str) -> None:
            for child in node.children:
                path = f"{prefix}{child.name}"
                collected.append(path)
                if not child.is_leaf:
                    _walk(child, f"{path}/")

        _walk(self.root, "")
        return collected

    # -- Rendering -------------------------------------------------------------

    def to_rich(self) -> Tree:
        """Build a ``rich.tree.Tree`` mirroring the recorded hierarchy."""
        self._require_balanced()

        def _attach(parent: Tree, node: TreeNode) -> None:
            for child in node.children:
                branch = parent.add(Text(child.name))
                if not child.is_leaf:
                    _attach(branch, child)

        tree = Tree(Text(self.root.name))
        _attach(tree, self.root)
        return tree

    def render(self) -> str:
        """Render the tree as plain text.

        Output is deterministic: no colour codes, fixed width, children in
        insertion order.
        """
        buffer = io.StringIO()
        plain = Console(file=buffer, width=120, color_system=None, force_terminal=False)
        plain.print(self.to_rich(), highlight=False, markup=False)
        return buffer.getvalue()

    def _require_balanced(self) -> None:
        if not self.balanced:
            raise ValueError(f"preview tree is unbalanced: {self.depth} branch(es) left open")
