"""
Minimal Newick trees used as the context for branch-specific rates.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(eq=False)
class TreeNode:
    """
    Phylogenetic tree node.

    Attributes
    ----------
    id : int
        Node identifier (pre-order position)
    name : Optional[str]
        Node name (taxon name for leaves)
    parent : Optional[TreeNode]
        Parent node
    children : list[TreeNode]
        Child nodes
    branch_length : float
        Length of the branch above this node
    label : Optional[str]
        Branch label such as '#1'
    """

    id: int
    name: Optional[str] = None
    parent: Optional["TreeNode"] = None
    children: list["TreeNode"] = field(default_factory=list)
    branch_length: float = 0.0
    label: Optional[str] = None

    @property
    def is_leaf(self) -> bool:
        return len(self.children) == 0

    @property
    def is_root(self) -> bool:
        return self.parent is None


_STOP = ",:();#"


@dataclass
class Tree:
    """
    Rooted phylogenetic tree.

    Attributes
    ----------
    root : TreeNode
        Root node of the tree
    leaf_names : list[str]
        Names of leaf nodes, left to right
    """

    root: TreeNode
    leaf_names: list[str]

    @classmethod
    def from_newick(cls, newick_string: str) -> "Tree":
        """
        Parse a Newick tree string.

        Supports names, branch lengths and ``#`` branch labels, e.g.
        ``"(seq1:2,(seq2:1,seq3:1)#1:1);"``.
        """
        text = re.sub(r"\s+", "", newick_string)
        if not text.endswith(";"):
            raise ValueError("Invalid Newick format: missing semicolon")
        text = text[:-1]

        next_id = [0]

        def read_token(pos: int) -> tuple[str, int]:
            start = pos
            while pos < len(text) and text[pos] not in _STOP:
                pos += 1
            return text[start:pos], pos

        def parse_node(pos: int, parent: Optional[TreeNode]) -> tuple[TreeNode, int]:
            node = TreeNode(id=next_id[0], parent=parent)
            next_id[0] += 1

            if pos < len(text) and text[pos] == "(":
                pos += 1
                while True:
                    child, pos = parse_node(pos, node)
                    node.children.append(child)
                    if pos < len(text) and text[pos] == ",":
                        pos += 1
                    elif pos < len(text) and text[pos] == ")":
                        pos += 1
                        break
                    else:
                        raise ValueError(f"Expected ',' or ')' at position {pos}")

            name, pos = read_token(pos)
            if name:
                node.name = name

            if pos < len(text) and text[pos] == "#":
                label, pos = read_token(pos + 1)
                node.label = "#" + label

            if pos < len(text) and text[pos] == ":":
                length, pos = read_token(pos + 1)
                try:
                    node.branch_length = float(length)
                except ValueError:
                    raise ValueError(f"Invalid branch length: {length}") from None

            return node, pos

        root, pos = parse_node(0, None)
        if pos != len(text):
            raise ValueError(f"Unexpected characters at position {pos}")

        tree = cls(root=root, leaf_names=[])
        tree.leaf_names = [
            node.name if node.name else str(node.id) for node in tree.postorder() if node.is_leaf
        ]
        return tree

    @classmethod
    def from_file(cls, filepath: Path | str) -> "Tree":
        return cls.from_newick(Path(filepath).read_text())

    def postorder(self) -> list[TreeNode]:
        """Nodes in post-order (children before parents)."""
        result = []
        stack = [(self.root, False)]
        while stack:
            node, expanded = stack.pop()
            if expanded:
                result.append(node)
            else:
                stack.append((node, True))
                for child in reversed(node.children):
                    stack.append((child, False))
        return result

    def leaves(self) -> list[TreeNode]:
        return [node for node in self.postorder() if node.is_leaf]

    @property
    def n_leaves(self) -> int:
        return len(self.leaf_names)
