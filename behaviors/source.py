from typing import Any, Dict, List, Tuple

from core.behavior.node_behavior import NodeBehavior


class SourceBehavior(NodeBehavior):
    """
    Constant or variable value with an exposed terminal ``a`` and an implicit
    terminal ``b`` that the net builder folds into ``a``.

    Locked sources pin their net to the configured value; unlocked sources
    adopt whatever value the solve produces for their net.
    """
    type_name = "source"
    connection_terminal = "a"
    terminals = ("a", "b")

    def default_data(self) -> Dict[str, Any]:
        return {"value": 0.0, "locked": False, "input": False}

    def port_names(self, data: Dict[str, Any]) -> List[str]:
        return list(self.terminals)

    def alias_ports(self, data: Dict[str, Any]) -> List[Tuple[str, str]]:
        return [self.terminals]

    def initial_values(self, data: Dict[str, Any]) -> Dict[str, float]:
        return {"a": float(data.get("value", 0.0))}

    def is_connection_port(self, data: Dict[str, Any]) -> bool:
        return bool(data.get("input", False))

    def contribute_equations(self, node, data, add_equation) -> None:
        nets = []
        for terminal in self.terminals:
            net = node.net(terminal)
            if net is not None and net not in nets:
                nets.append(net)

        if data.get("locked", False):
            value = float(data.get("value", 0.0))
            for net in nets:
                add_equation(_pin(net.id, value))
        elif len(nets) == 2:
            a, b = nets

            def equate(x, row):
                row[a.id] = 1.0
                row[b.id] = -1.0
                return x[a.id] - x[b.id]

            add_equation(equate)

    def finish_calculation(self, node, data: Dict[str, Any]) -> Dict[str, Any]:
        if data.get("locked", False):
            return data
        for terminal in self.terminals:
            net = node.net(terminal)
            if net is not None:
                return {**data, "value": net.value}
        return data


def _pin(net_id: int, value: float):
    def pin(x, row):
        row[net_id] = 1.0
        return x[net_id] - value
    return pin
