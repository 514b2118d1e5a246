"""
Phylogenetic tree structure for otutree.

Provides a small, backend-agnostic tree representation that the layout
engine consumes. Trees are parsed once from Newick and never mutated.

Key design principles:
1. Backend-agnostic interface - layout code doesn't care how tree was parsed
2. Missing branch lengths stay missing (None / NaN), never silently zero
3. Optional dependencies (dendropy) are only imported when requested
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union
import numpy as np


@dataclass
class TreeNode:
    """
    Generic tree node representation.

    Attributes:
        id: Unique node identifier (equal to its index in TreeStructure.nodes)
        name: Node name (tip taxon identifier, or internal node label)
        parent_id: ID of parent node (None for root)
        children_ids: List of child node IDs, in file order
        branch_length: Length of branch leading to this node (None if absent)
        is_tip: Whether this is a leaf node
    """
    id: int
    name: Optional[str] = None
    parent_id: Optional[int] = None
    children_ids: List[int] = field(default_factory=list)
    branch_length: Optional[float] = None
    is_tip: bool = False


@dataclass
class TreeStructure:
    """
    Rooted tree over taxon identifiers.

    Attributes:
        n_nodes: Total number of nodes
        n_tips: Number of tip nodes
        nodes: List of TreeNode objects (index == id)
        tip_indices: Indices of tip nodes, in file order
        internal_indices: Indices of internal nodes
        root_index: Index of root node (-1 for an empty tree)
        postorder: Node indices in postorder (children first, root last)
        branch_lengths: Branch lengths indexed by node (NaN where absent)
        parent_indices: Parent indices (-1 for root)
        tip_names: List of tip names in order of tip_indices
    """
    n_nodes: int
    n_tips: int
    nodes: List[TreeNode]
    tip_indices: List[int]
    internal_indices: List[int]
    root_index: int
    postorder: List[int]
    branch_lengths: np.ndarray
    parent_indices: np.ndarray
    tip_names: List[str]

    @classmethod
    def from_newick(cls, newick: str, backend: str = "simple") -> 'TreeStructure':
        """
        Parse Newick string into TreeStructure.

        Args:
            newick: Newick format tree string
            backend: Parser backend ("simple" or "dendropy")

        Returns:
            TreeStructure instance
        """
        if backend == "simple":
            return cls._from_simple(newick)
        elif backend == "dendropy":
            return cls._from_dendropy(newick)
        else:
            raise ValueError(f"Unknown backend: {backend}")

    @classmethod
    def from_file(cls, filepath: Union[str, Path], backend: str = "simple") -> 'TreeStructure':
        """Load tree from Newick file."""
        with open(filepath, 'r') as f:
            newick = f.read().strip()
        return cls.from_newick(newick, backend=backend)

    @classmethod
    def _from_dendropy(cls, newick: str) -> 'TreeStructure':
        """Parse using dendropy (handles NHX comments and exotic quoting)."""
        try:
            import dendropy
        except ImportError:
            raise ImportError(
                "dendropy required for backend='dendropy'. "
                "Install with: pip install otutree[dendropy]"
            )

        tree = dendropy.Tree.get(
            data=newick,
            schema="newick",
            preserve_underscores=True,
            suppress_internal_node_taxa=True,
        )

        nodes = []
        node_to_idx = {}

        for i, node in enumerate(tree.preorder_node_iter()):
            node_to_idx[node] = i
            if node.taxon is not None:
                name = node.taxon.label
            else:
                name = node.label
            nodes.append(TreeNode(
                id=i,
                name=name or None,
                branch_length=node.edge_length,
                is_tip=node.is_leaf(),
            ))

        for node in tree.preorder_node_iter():
            idx = node_to_idx[node]
            if node.parent_node is not None:
                nodes[idx].parent_id = node_to_idx[node.parent_node]
            for child in node.child_nodes():
                nodes[idx].children_ids.append(node_to_idx[child])

        return cls._build_from_nodes(nodes, node_to_idx[tree.seed_node])

    @classmethod
    def _from_simple(cls, newick: str) -> 'TreeStructure':
        """Newick parser supporting quoted labels, comments and optional lengths."""
        text = newick.strip()
        if text.endswith(';'):
            text = text[:-1].rstrip()
        if not text:
            return cls._build_from_nodes([], -1)

        nodes: List[TreeNode] = []
        pos = 0

        def skip_blank():
            nonlocal pos
            while pos < len(text):
                if text[pos].isspace():
                    pos += 1
                elif text[pos] == '[':
                    # Bracketed comments ([&&NHX...], bootstrap notes)
                    end = text.find(']', pos)
                    if end < 0:
                        raise ValueError(f"Unterminated comment at position {pos}")
                    pos = end + 1
                else:
                    break

        def read_label() -> Optional[str]:
            nonlocal pos
            skip_blank()
            if pos < len(text) and text[pos] == "'":
                pos += 1
                chars = []
                while pos < len(text):
                    c = text[pos]
                    if c == '\\' and pos + 1 < len(text):
                        chars.append(text[pos + 1])
                        pos += 2
                    elif c == "'" and text[pos + 1:pos + 2] == "'":
                        chars.append("'")
                        pos += 2
                    elif c == "'":
                        pos += 1
                        return ''.join(chars)
                    else:
                        chars.append(c)
                        pos += 1
                raise ValueError("Unterminated quoted label")
            start = pos
            while pos < len(text) and text[pos] not in '(),:;[':
                pos += 1
            label = text[start:pos].strip()
            return label or None

        def read_length() -> Optional[float]:
            nonlocal pos
            skip_blank()
            if pos >= len(text) or text[pos] != ':':
                return None
            pos += 1
            start = pos
            while pos < len(text) and text[pos] not in '(),;[':
                pos += 1
            raw = text[start:pos].strip()
            if not raw:
                return None
            try:
                return float(raw)
            except ValueError:
                raise ValueError(f"Invalid branch length {raw!r} at position {start}")

        def parse_node(parent_id: Optional[int]) -> int:
            nonlocal pos
            skip_blank()
            node = TreeNode(id=len(nodes), parent_id=parent_id)
            nodes.append(node)

            if pos < len(text) and text[pos] == '(':
                pos += 1
                while True:
                    node.children_ids.append(parse_node(node.id))
                    skip_blank()
                    if pos >= len(text):
                        raise ValueError("Unbalanced parentheses in Newick string")
                    if text[pos] == ',':
                        pos += 1
                    elif text[pos] == ')':
                        pos += 1
                        break
                    else:
                        raise ValueError(f"Unexpected {text[pos]!r} at position {pos}")
            else:
                node.is_tip = True

            node.name = read_label()
            node.branch_length = read_length()
            return node.id

        root_id = parse_node(None)
        skip_blank()
        if pos != len(text):
            raise ValueError(f"Unexpected trailing text at position {pos}: {text[pos:]!r}")

        return cls._build_from_nodes(nodes, root_id)

    @classmethod
    def _build_from_nodes(cls, nodes: List[TreeNode], root_index: int) -> 'TreeStructure':
        """Build TreeStructure from list of nodes."""
        nodes = sorted(nodes, key=lambda n: n.id)
        n_nodes = len(nodes)

        tip_indices = [n.id for n in nodes if n.is_tip]
        internal_indices = [n.id for n in nodes if not n.is_tip]

        branch_lengths = np.array(
            [np.nan if n.branch_length is None else n.branch_length for n in nodes],
            dtype=float,
        )
        parent_indices = np.array(
            [n.parent_id if n.parent_id is not None else -1 for n in nodes],
            dtype=int,
        )

        postorder = cls._compute_postorder(nodes, root_index) if nodes else []

        tip_names = [nodes[i].name or f"tip_{i}" for i in tip_indices]
        seen = set()
        duplicates = set()
        for name in tip_names:
            if name in seen:
                duplicates.add(name)
            seen.add(name)
        if duplicates:
            raise ValueError(f"Duplicate tip names in tree: {', '.join(sorted(duplicates))}")

        return cls(
            n_nodes=n_nodes,
            n_tips=len(tip_indices),
            nodes=nodes,
            tip_indices=tip_indices,
            internal_indices=internal_indices,
            root_index=root_index,
            postorder=postorder,
            branch_lengths=branch_lengths,
            parent_indices=parent_indices,
            tip_names=tip_names,
        )

    @staticmethod
    def _compute_postorder(nodes: List[TreeNode], root_index: int) -> List[int]:
        """Compute postorder traversal (iterative, deep trees are common)."""
        result = []
        stack = [(root_index, False)]
        while stack:
            node_id, expanded = stack.pop()
            if expanded:
                result.append(node_id)
                continue
            stack.append((node_id, True))
            for child_id in reversed(nodes[node_id].children_ids):
                stack.append((child_id, False))
        return result

    @property
    def has_branch_lengths(self) -> bool:
        """Whether any non-root node carries a branch length."""
        if self.n_nodes == 0:
            return False
        mask = np.ones(self.n_nodes, dtype=bool)
        mask[self.root_index] = False
        return bool(np.any(~np.isnan(self.branch_lengths[mask])))

    def descendant_tip_counts(self) -> np.ndarray:
        """Number of tips below each node (1 for a tip)."""
        counts = np.zeros(self.n_nodes, dtype=int)
        for node_id in self.postorder:
            node = self.nodes[node_id]
            if node.is_tip:
                counts[node_id] = 1
            else:
                counts[node_id] = sum(counts[c] for c in node.children_ids)
        return counts

    def tip_name(self, node_id: int) -> str:
        """Name of a tip node (matches tip_names)."""
        return self.nodes[node_id].name or f"tip_{node_id}"

    def get_tip_index_map(self) -> Dict[str, int]:
        """Map tip names to their indices."""
        return {name: idx for idx, name in zip(self.tip_indices, self.tip_names)}

    def __repr__(self) -> str:
        return f"TreeStructure({self.n_tips} tips, {self.n_nodes} nodes)"


def load_tree(filepath: Union[str, Path], backend: str = "simple") -> TreeStructure:
    """
    Load a phylogenetic tree from file.

    Args:
        filepath: Path to Newick file
        backend: Parser backend ("simple" or "dendropy")

    Returns:
        TreeStructure ready for layout
    """
    return TreeStructure.from_file(filepath, backend=backend)
