from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

# equation(x, row) -> residual; fills row in place with partial derivatives
Equation = Callable[[np.ndarray, np.ndarray], float]
AddEquation = Callable[[Equation], None]


class NodeBehavior(ABC):
    """
    Abstract base class for node behaviors.

    A behavior contributes equations to the solver for every iteration and
    turns converged net values back into node data once the solve finishes.
    Subclasses override `type_name` and implement contribute_equations().
    """
    type_name: str = "undefined"  # Override in subclasses

    # Port wired to a reference node's port when this node is a connection port
    connection_terminal: Optional[str] = None

    def default_data(self) -> Dict[str, Any]:
        """Payload of a freshly placed node of this type."""
        return {}

    def port_names(self, data: Dict[str, Any]) -> List[str]:
        """
        Ports currently declared by a node with the given payload.
        Edges naming any other port are ignored by the net builder.
        """
        return []

    def alias_ports(self, data: Dict[str, Any]) -> List[Tuple[str, str]]:
        """Pairs of ports that always share one net."""
        return []

    def initial_values(self, data: Dict[str, Any]) -> Dict[str, float]:
        """Seed values this node declares for the nets of its ports."""
        return {}

    def is_connection_port(self, data: Dict[str, Any]) -> bool:
        """Whether the node is exposed as a port when its diagram is referenced."""
        return False

    def referenced_diagram(self, data: Dict[str, Any]) -> Optional[str]:
        """Id of the diagram to inline in place of this node, if any."""
        return None

    @abstractmethod
    def contribute_equations(self, node, data: Dict[str, Any], add_equation: AddEquation) -> None:
        """
        Add one equation per independent constraint enforced by *node*.

        Args:
            node: The CalcNode being assembled.
            data: The node's payload.
            add_equation: Callback taking an ``equation(x, row)`` callable that
                fills ``row`` with partial derivatives at ``x`` and returns
                the residual.
        """
        pass

    def finish_calculation(self, node, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Return the node payload updated from the converged net values.
        The default leaves the payload unchanged.
        """
        return data

    def __repr__(self) -> str:
        return f"<NodeBehavior {self.type_name}>"
