from typing import Any, Dict, Optional

from core.behavior.node_behavior import NodeBehavior


class ReferenceBehavior(NodeBehavior):
    """
    Stands in for another diagram of the project. Its ports are the connection
    ports of the referenced diagram; the net builder inlines that diagram and
    wires the two together. Contributes no equations of its own.
    """
    type_name = "reference"

    def default_data(self) -> Dict[str, Any]:
        return {"graph_id": None}

    def referenced_diagram(self, data: Dict[str, Any]) -> Optional[str]:
        return data.get("graph_id")

    def contribute_equations(self, node, data, add_equation) -> None:
        return None
