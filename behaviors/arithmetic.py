from typing import Any, Dict, List

from core.behavior.node_behavior import NodeBehavior


class ArithmeticBehavior(NodeBehavior):
    """
    Shared port-row handling for nodes with a dynamically sized row of ``top``
    ports and a row of ``bottom`` ports. The editor keeps the rows sized to the
    live connectivity; here they are only read.
    """
    type_name: str = "undefined"

    def default_data(self) -> Dict[str, Any]:
        return {"top_ports": ["top_0"], "bottom_ports": ["bottom_0"]}

    def port_names(self, data: Dict[str, Any]) -> List[str]:
        return list(data.get("top_ports", [])) + list(data.get("bottom_ports", []))

    def top_nets(self, node, data: Dict[str, Any]) -> list:
        """Nets of the connected top ports, one entry per port."""
        return [node.net(p) for p in data.get("top_ports", []) if node.net(p) is not None]

    def bottom_nets(self, node, data: Dict[str, Any]) -> list:
        """Nets of the connected bottom ports, one entry per port."""
        return [node.net(p) for p in data.get("bottom_ports", []) if node.net(p) is not None]
