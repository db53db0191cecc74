# core/topology/calc_node.py
"""
Solve-time representation of a flattened diagram.

A CalcNode is created for every node instance after recursive inlining of
diagram references; a Net is one unknown of the solver and groups every
port that is transitively connected to every other.
"""
from typing import Any, Dict, List, Tuple


class Net:
    """
    Equivalence class of connected ports. ``id`` is the index of the net in
    the solver's unknown vector.
    """
    def __init__(self, net_id: int, value: float = 1.0):
        self.id = net_id
        self.value = value
        self.ports: List[Tuple["CalcNode", str]] = []

    def __repr__(self) -> str:
        members = ", ".join(f"{node.id}.{port}" for node, port in self.ports)
        return f"<Net {self.id} value={self.value:g} ports=[{members}]>"


class CalcNode:
    """
    Flattened node instance.

    Args:
        node_id: Globally unique id, i.e. the local id prefixed by the chain of
            enclosing reference node ids.
        local_id: Id of the node instance inside its own diagram.
        namespace: Prefix shared by every node inlined from the same reference
            (empty for the root diagram).
        data: The node instance's payload.
        behavior: The NodeBehavior selected by the node's type tag.
    """
    def __init__(self, node_id: str, local_id: str, namespace: str, data: Dict[str, Any], behavior):
        self.id = node_id
        self.local_id = local_id
        self.namespace = namespace
        self.data = data
        self.behavior = behavior
        # Only connected ports get an entry
        self.ports: Dict[str, Net] = {}

    @property
    def is_top_level(self) -> bool:
        return self.namespace == ""

    def net(self, port_name: str):
        """Return the net of *port_name*, or None if the port is unconnected or unknown."""
        return self.ports.get(port_name)

    def __repr__(self) -> str:
        ports = {p: net.id for p, net in self.ports.items()}
        return f"<CalcNode {self.id} ({self.behavior.type_name}): ports={ports}>"
