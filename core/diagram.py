# core/diagram.py
"""
Editor-facing data model: diagrams of typed node instances joined by edges,
grouped in a project so that diagram references can be resolved.
The calculation engine only reads these objects.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple


@dataclass
class NodeInstance:
    """
    One placed node within a diagram.

    ``type`` selects the node behavior; ``data`` is the behavior-specific payload.
    ``position`` is the (x, y) layout position, with y growing downward.
    """
    id: str
    type: str
    data: Dict[str, Any] = field(default_factory=dict)
    position: Tuple[float, float] = (0.0, 0.0)


@dataclass(frozen=True)
class Edge:
    """
    Unordered connection between two (node id, port name) endpoints.
    """
    source: str
    source_port: str
    target: str
    target_port: str

    def endpoints(self) -> Tuple[Tuple[str, str], Tuple[str, str]]:
        return (self.source, self.source_port), (self.target, self.target_port)


@dataclass
class Diagram:
    id: str
    name: str = ""
    nodes: List[NodeInstance] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)

    def node(self, node_id: str) -> Optional[NodeInstance]:
        return next((n for n in self.nodes if n.id == node_id), None)

    def with_node_data(self, updates: Mapping[str, Dict[str, Any]]) -> "Diagram":
        """
        Return a copy of this diagram with the payload of every node listed in
        *updates* replaced. Unknown ids are ignored.
        """
        nodes = [
            replace(n, data=dict(updates[n.id])) if n.id in updates else n
            for n in self.nodes
        ]
        return replace(self, nodes=nodes, edges=list(self.edges))

    def __repr__(self) -> str:
        return f"<Diagram {self.id} ({self.name}): nodes={len(self.nodes)} edges={len(self.edges)}>"


class Project:
    """
    Collection of diagrams addressable by id.
    """
    def __init__(self, diagrams: Optional[List[Diagram]] = None):
        self._diagrams: Dict[str, Diagram] = {}
        for diagram in diagrams or []:
            self.add(diagram)

    def add(self, diagram: Diagram) -> None:
        self._diagrams[diagram.id] = diagram

    def get(self, diagram_id: str) -> Optional[Diagram]:
        return self._diagrams.get(diagram_id)

    def __contains__(self, diagram_id: str) -> bool:
        return diagram_id in self._diagrams

    def __iter__(self) -> Iterator[Diagram]:
        return iter(self._diagrams.values())

    def __len__(self) -> int:
        return len(self._diagrams)
