# classkit/core/graph.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""Directed name graph of class dependencies."""

from typing import Dict, Iterable, List, Optional, Set


class DependencyGraph:
    """
    Keeps the resolution-order edges between class names: parent, traits,
    interfaces and included configs. Nodes are names, so an edge may point
    at a class the registry has not seen yet.
    """

    def __init__(self) -> None:
        self._edges: Dict[str, List[str]] = {}

    def set_dependencies(self, name: str, dependencies: Iterable[str]) -> None:
        """Replace the outgoing edges of ``name``, adding the node if needed."""
        unique: List[str] = []
        for dependency in dependencies:
            if dependency not in unique:
                unique.append(dependency)
        self._edges[name] = unique

    def remove_node(self, name: str) -> None:
        self._edges.pop(name, None)

    def has_node(self, name: str) -> bool:
        return name in self._edges

    def get_dependencies(self, name: str) -> List[str]:
        return list(self._edges.get(name, []))

    def get_dependents(self, name: str) -> List[str]:
        """Names that list ``name`` as a direct dependency."""
        return [node for node, edges in self._edges.items() if name in edges]

    def get_all_dependents(self, name: str) -> List[str]:
        """Transitive dependents of ``name``, nearest first."""
        result: List[str] = []
        queue = self.get_dependents(name)
        while queue:
            node = queue.pop(0)
            if node in result or node == name:
                continue
            result.append(node)
            queue.extend(self.get_dependents(node))
        return result

    def find_cycle(self, start: str) -> Optional[List[str]]:
        """
        Return the first cycle reachable from ``start`` as a path whose last
        element repeats an earlier one, or None when the subgraph is acyclic.
        """
        visited: Set[str] = set()

        def walk(node: str, path: List[str]) -> Optional[List[str]]:
            if node in path:
                return path[path.index(node) :] + [node]
            if node in visited:
                return None
            visited.add(node)
            path.append(node)
            for dependency in self._edges.get(node, []):
                cycle = walk(dependency, path)
                if cycle:
                    return cycle
            path.pop()
            return None

        return walk(start, [])

    def find_cycle_with(self, name: str, dependencies: Iterable[str]) -> Optional[List[str]]:
        """Cycle that giving ``name`` these edges would close, leaving the graph untouched."""
        previous = self._edges.get(name)
        self.set_dependencies(name, dependencies)
        try:
            return self.find_cycle(name)
        finally:
            if previous is None:
                self._edges.pop(name, None)
            else:
                self._edges[name] = previous
