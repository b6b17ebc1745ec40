"""
Depth-first visitation of the nodes reachable from a set of heads.
"""

from __future__ import annotations

from typing import Callable, Iterable, Iterator, List, Set

from .node import DataEntry, Node


def iter_dfs(heads: Iterable[DataEntry]) -> Iterator[Node]:
    """
    Yield every node reachable from ``heads`` exactly once, in pre-order.

    Heads are pushed onto the stack in head order, so the last head is
    visited first. A popped node's inputs are pushed last to first, so they
    pop in input order. A node is marked when it is pushed: a source listed
    twice among one node's inputs takes the place of its last occurrence.
    Only ``inputs`` edges are followed.
    """
    stack: List[Node] = []
    visited: Set[Node] = set()

    for head in heads:
        if head.source not in visited:
            visited.add(head.source)
            stack.append(head.source)

    while stack:
        node = stack.pop()
        yield node
        for entry in reversed(node.inputs):
            if entry.source not in visited:
                visited.add(entry.source)
                stack.append(entry.source)


def dfs_visit(heads: Iterable[DataEntry], fvisit: Callable[[Node], None]) -> None:
    for node in iter_dfs(heads):
        fvisit(node)
