"""
simulation/cycle_basis.py

Fundamental cycle basis of a circuit graph.

A DFS spanning forest is grown over the nodes; every branch that is not
a tree edge (a "chord") closes exactly one fundamental cycle. The number
of cycles always equals the cycle-space dimension:

    |branches| - |nodes| + (#connected components)

Cycles record the branches they traverse together with the traversal
direction, so parallel branches between the same pair of nodes are
told apart.
"""

import logging
from dataclasses import dataclass, field

from models.branch import BranchData
from models.circuit import CircuitGraph, DanglingReferenceError

logger = logging.getLogger(__name__)

FORWARD = 1
BACKWARD = -1


@dataclass
class Cycle:
    """
    One fundamental cycle.

    ``nodes`` is the closed walk (the return to ``nodes[0]`` is implied).
    ``branches`` lists (branch_id, orientation) in walk order, where
    orientation is +1 when the walk follows the branch's from->to
    direction and -1 when it goes against it. The walk starts at the
    closing branch's ``from`` node and ends by crossing the closing branch.
    """

    nodes: list[str]
    closing_branch: str
    branches: list[tuple[str, int]] = field(default_factory=list)

    def branch_ids(self) -> list[str]:
        return [branch_id for branch_id, _ in self.branches]

    def orientation(self, branch_id: str) -> int:
        """+1/-1 if the cycle traverses ``branch_id``, else 0."""
        for bid, sign in self.branches:
            if bid == branch_id:
                return sign
        return 0

    def __len__(self) -> int:
        return len(self.branches)

    def to_dict(self) -> dict:
        return {
            "nodes": list(self.nodes),
            "closing_branch": self.closing_branch,
            "branches": [[bid, sign] for bid, sign in self.branches],
        }


@dataclass
class CycleBasis:
    """Fundamental cycles plus the spanning forest they were derived from."""

    cycles: list[Cycle] = field(default_factory=list)
    tree_branches: list[str] = field(default_factory=list)
    roots: list[str] = field(default_factory=list)

    @property
    def component_count(self) -> int:
        return len(self.roots)

    @property
    def is_connected(self) -> bool:
        return self.component_count <= 1

    def __len__(self) -> int:
        return len(self.cycles)

    def __iter__(self):
        return iter(self.cycles)


def _orientation(branch: BranchData, start: str) -> int:
    return FORWARD if branch.from_node == start else BACKWARD


def find_fundamental_cycles(nodes: list, branches: list[BranchData]) -> CycleBasis:
    """
    Build a spanning forest over ``nodes`` and return one cycle per chord.

    Args:
        nodes: node ids; their order fixes the DFS roots and thus the basis.
        branches: branches whose endpoints are all in ``nodes``.

    Raises:
        DanglingReferenceError: a branch endpoint is not in ``nodes``.
    """
    node_ids = [str(n) for n in nodes]
    index = {node_id: i for i, node_id in enumerate(node_ids)}
    count = len(node_ids)

    # Undirected adjacency: node index -> [(neighbour index, branch index)]
    adjacency: list[list[tuple[int, int]]] = [[] for _ in range(count)]
    for bi, br in enumerate(branches):
        try:
            u = index[br.from_node]
            v = index[br.to_node]
        except KeyError as e:
            raise DanglingReferenceError(f"Branch {br.branch_id} references unknown node {e.args[0]}") from None
        adjacency[u].append((v, bi))
        if u != v:
            adjacency[v].append((u, bi))

    visited = [False] * count
    parent = [-1] * count
    parent_branch = [-1] * count
    depth = [0] * count
    roots = []

    for root in range(count):
        if visited[root]:
            continue
        roots.append(node_ids[root])
        visited[root] = True
        stack = [root]
        while stack:
            current = stack.pop()
            for neighbour, bi in adjacency[current]:
                if not visited[neighbour]:
                    visited[neighbour] = True
                    parent[neighbour] = current
                    parent_branch[neighbour] = bi
                    depth[neighbour] = depth[current] + 1
                    stack.append(neighbour)

    tree = {bi for bi in parent_branch if bi >= 0}

    cycles = []
    for bi, chord in enumerate(branches):
        if bi in tree:
            continue
        u = index[chord.from_node]
        v = index[chord.to_node]

        # Climb from both ends to the lowest common ancestor
        up_from_u = []
        up_from_v = []
        a, b = u, v
        while depth[a] > depth[b]:
            up_from_u.append(a)
            a = parent[a]
        while depth[b] > depth[a]:
            up_from_v.append(b)
            b = parent[b]
        while a != b:
            up_from_u.append(a)
            up_from_v.append(b)
            a = parent[a]
            b = parent[b]
        lca = a

        walk_nodes = [node_ids[i] for i in up_from_u]
        walk_nodes.append(node_ids[lca])
        walk_nodes.extend(node_ids[i] for i in reversed(up_from_v))

        walk_branches = []
        for i in up_from_u:
            tree_branch = branches[parent_branch[i]]
            walk_branches.append((tree_branch.branch_id, _orientation(tree_branch, node_ids[i])))
        for i in reversed(up_from_v):
            tree_branch = branches[parent_branch[i]]
            walk_branches.append((tree_branch.branch_id, _orientation(tree_branch, node_ids[parent[i]])))
        # Close the walk v -> u across the chord
        if u == v:
            walk_branches.append((chord.branch_id, FORWARD))
        else:
            walk_branches.append((chord.branch_id, BACKWARD))

        cycles.append(Cycle(nodes=walk_nodes, closing_branch=chord.branch_id, branches=walk_branches))

    if len(roots) > 1:
        logger.warning(
            "Circuit graph is disconnected: %d components (roots: %s)", len(roots), ", ".join(roots)
        )

    return CycleBasis(
        cycles=cycles,
        tree_branches=[branches[bi].branch_id for bi in sorted(tree)],
        roots=roots,
    )


def find_graph_cycles(graph: CircuitGraph) -> CycleBasis:
    """Fundamental cycles of a CircuitGraph (nodes in insertion order)."""
    return find_fundamental_cycles(graph.nodes(), graph.branches())
