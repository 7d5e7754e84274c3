"""
Dependency graph between catalog objects.

This file is part of pg_metadump.
"""

import logging
from collections import deque

from .exceptions import CycleError

logger = logging.getLogger("metadump.graph")


class Graph:
    """
    A directed graph of object oids.

    An edge ``a -> b`` means that *a* must be created before *b*.
    `incoming` keeps, for each node, the number of edges pointing to it.
    """

    def __init__(self, nodes=(), edges=None, incoming=None):
        self.nodes = list(nodes)
        self.edges = {k: list(v) for k, v in (edges or {}).items()}
        if incoming is None:
            incoming = {}
            for targets in self.edges.values():
                for target in targets:
                    incoming[target] = incoming.get(target, 0) + 1
        self.incoming = dict(incoming)

    @classmethod
    def from_edges(cls, nodes, edges):
        """
        Build a graph from a sequence of nodes and of ``(from, to)`` pairs.

        Edges involving unknown nodes are discarded; duplicate edges are
        considered once.
        """
        rv = cls(nodes)
        known = set(rv.nodes)
        seen = set()
        for edge in edges:
            if edge in seen:
                continue
            seen.add(edge)
            src, tgt = edge
            if src not in known or tgt not in known:
                logger.debug("ignoring edge %s -> %s: node not in graph", src, tgt)
                continue
            rv.add_edge(src, tgt)
        return rv

    def add_edge(self, src, tgt):
        self.edges.setdefault(src, []).append(tgt)
        self.incoming[tgt] = self.incoming.get(tgt, 0) + 1

    def remove_edge(self, src, idx):
        """
        Remove the *idx*-th edge leaving *src*.

        The last edge takes the place of the removed one. Return the target
        of the removed edge.
        """
        targets = self.edges[src]
        tgt = targets[idx]
        targets[idx] = targets[-1]
        targets.pop()
        if not targets:
            del self.edges[src]
        self.incoming[tgt] -= 1
        return tgt

    def topo_sort(self):
        """
        Sort the nodes so that every node comes after the ones it depends on.

        Return a pair ``(nodes, ok)``. If the graph has a cycle the result is
        ``(None, False)``: the nodes left in the graph are the ones with
        incoming edges. The graph is consumed by the operation.
        """
        rv = []
        frontier = deque(n for n in self.nodes if not self.incoming.get(n, 0))

        while frontier:
            src = frontier.popleft()
            rv.append(src)
            while src in self.edges:
                tgt = self.remove_edge(src, len(self.edges[src]) - 1)
                if not self.incoming[tgt]:
                    frontier.append(tgt)

        if self.edges:
            return None, False

        return rv, True


def sort_objects(objs, edges):
    """
    Return *objs* sorted so that dependencies come first.

    *edges* is a sequence of ``(oid, oid)`` pairs, the first object to create
    before the second. Objects with no dependency keep their relative
    order and come first.

    Raise `CycleError` if the objects cannot be sorted.
    """
    objs = list(objs)
    by_oid = {obj.oid: obj for obj in objs}
    graph = Graph.from_edges([obj.oid for obj in objs], edges)
    oids, ok = graph.topo_sort()
    if not ok:
        left = [obj for obj in objs if graph.incoming.get(obj.oid)]
        raise CycleError(
            "dependency cycle between %s" % ", ".join(map(str, left)), left
        )

    return [by_oid[oid] for oid in oids]
