# core/assembler.py
"""
Collect the equations of every CalcNode at the current iterate into a dense
Jacobian and residual vector.
"""
from dataclasses import dataclass
from typing import Dict, List, Sequence

import numpy as np

from core.topology.calc_node import CalcNode, Net


@dataclass
class EquationSystem:
    """
    Linearised system at one iterate.

    Attributes:
        jacobian: (n_equations, n_nets) partial derivatives.
        residual: (n_equations,) constraint values; the solver drives them to zero.
        sources: Id of the CalcNode that contributed each row.
    """
    jacobian: np.ndarray
    residual: np.ndarray
    sources: List[str]

    @property
    def shape(self):
        return self.jacobian.shape

    @property
    def is_square(self) -> bool:
        rows, cols = self.jacobian.shape
        return rows == cols

    def __repr__(self) -> str:
        return f"<EquationSystem shape={self.jacobian.shape}>"


class EquationAssembler:
    """
    Invokes every node behavior's contribute_equations in the (stable) order of
    the flattened node mapping.
    """
    def __init__(self, calc_nodes: Dict[str, CalcNode], nets: Sequence[Net]):
        self.calc_nodes = calc_nodes
        self.n_nets = len(nets)

    def assemble(self, x: np.ndarray) -> EquationSystem:
        rows: List[np.ndarray] = []
        residual: List[float] = []
        sources: List[str] = []

        for node in self.calc_nodes.values():
            def add_equation(equation, _node_id=node.id):
                row = np.zeros(self.n_nets)
                residual.append(float(equation(x, row)))
                rows.append(row)
                sources.append(_node_id)

            node.behavior.contribute_equations(node, node.data, add_equation)

        jacobian = np.vstack(rows) if rows else np.zeros((0, self.n_nets))
        return EquationSystem(jacobian, np.asarray(residual, dtype=np.float64), sources)
