# core/solver.py
"""
Damped Newton-Raphson solve of the equations contributed by a flattened diagram.

Each iteration solves J·δ = -r and advances x by α·δ. The damping α starts at
1 and shrinks whenever the residual norm stops improving; the loop converges
once the step norm is below tolerance and aborts (keeping its best-effort
values) when α or the iteration budget runs out.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence

import numpy as np

from core.assembler import EquationAssembler, EquationSystem
from core.exceptions import NumericError
from core.topology.calc_node import CalcNode, Net
from utils.linops import EPS, LinearOperator
from utils.logging_config import get_logger

logger = get_logger(__name__)


class SolveStatus(Enum):
    ITERATING = "iterating"
    CONVERGED = "converged"
    ABORTED = "aborted"


@dataclass
class SolverConfig:
    tolerance: float = 1e-8          # step norm below which the solve has converged
    max_iterations: int = 100
    min_damping: float = 0.1
    damping_backoff: float = 0.9
    stall_ratio: float = 0.99        # required residual improvement per iteration
    singular_tolerance: float = EPS      # smallest accepted reciprocal condition number
    least_squares: bool = False      # accept non-square systems


@dataclass
class SolveResult:
    """
    Outcome of a solve that produced values.

    Attributes:
        status: CONVERGED, or ABORTED for a best-effort result.
        node_data: Updated payload per top-level node instance id.
        iterations: Number of Newton steps taken.
        step_norm: Norm of the last Newton step.
        residual_norm: Residual norm at the iterate the last step started from.
        damping: Damping factor after the last iteration.
    """
    status: SolveStatus
    node_data: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    iterations: int = 0
    step_norm: float = 0.0
    residual_norm: float = 0.0
    damping: float = 1.0

    @property
    def converged(self) -> bool:
        return self.status is SolveStatus.CONVERGED

    def __repr__(self) -> str:
        return (f"<SolveResult {self.status.value}: iterations={self.iterations}, "
                f"step={self.step_norm:.3e}, residual={self.residual_norm:.3e}, damping={self.damping:g}>")


class NewtonSolver:
    def __init__(self, config: Optional[SolverConfig] = None):
        self.config = config or SolverConfig()

    def solve(self, calc_nodes: Dict[str, CalcNode], nets: Sequence[Net]) -> SolveResult:
        """
        Solve for every net value, write the values back into *nets* and
        finalize every node.

        Raises:
            SystemShapeError: If the equation count does not match the net count.
            SingularSystemError: If the Jacobian cannot be factored.
            NumericError: If NaN or infinite values appear.
        Nothing is written back when an exception is raised.
        """
        cfg = self.config
        x = np.zeros(len(nets))
        for net in nets:
            x[net.id] = net.value

        assembler = EquationAssembler(calc_nodes, nets)
        status = SolveStatus.ITERATING if len(nets) else SolveStatus.CONVERGED
        alpha = 1.0
        last_error: Optional[float] = None
        iterations = 0
        step_norm = residual_norm = 0.0

        while status is SolveStatus.ITERATING:
            system = assembler.assemble(x)
            self._check_finite(system)
            operator = LinearOperator(system.jacobian, cfg.singular_tolerance, cfg.least_squares)
            delta = operator.solve(-system.residual)
            if not np.all(np.isfinite(delta)):
                raise NumericError("Newton step contains non-finite values.")

            x = x + alpha * delta
            iterations += 1
            residual_norm = float(np.linalg.norm(system.residual))
            step_norm = float(np.linalg.norm(delta))
            logger.debug("iteration %d: alpha=%g residual=%.3e step=%.3e",
                         iterations, alpha, residual_norm, step_norm)

            if last_error is not None and residual_norm >= cfg.stall_ratio * last_error:
                alpha *= cfg.damping_backoff

            if step_norm < cfg.tolerance:
                status = SolveStatus.CONVERGED
            elif alpha < cfg.min_damping or iterations >= cfg.max_iterations:
                status = SolveStatus.ABORTED
            last_error = residual_norm

        if not np.all(np.isfinite(x)):
            raise NumericError("Solution contains non-finite values.")

        if status is SolveStatus.CONVERGED:
            logger.info("Converged after %d iterations (%d nets)", iterations, len(nets))
        else:
            logger.warning("Aborted after %d iterations: damping=%g residual=%.3e step=%.3e; "
                           "applying best-effort values", iterations, alpha, residual_norm, step_norm)

        for net in nets:
            net.value = float(x[net.id])
        node_data = self._finish(calc_nodes)
        return SolveResult(status, node_data, iterations, step_norm, residual_norm, alpha)

    @staticmethod
    def _check_finite(system: EquationSystem) -> None:
        if not np.all(np.isfinite(system.residual)):
            bad = {system.sources[i] for i in np.flatnonzero(~np.isfinite(system.residual))}
            raise NumericError(f"Non-finite residual contributed by {sorted(bad)}.")
        if not np.all(np.isfinite(system.jacobian)):
            raise NumericError("Jacobian contains non-finite values.")

    @staticmethod
    def _finish(calc_nodes: Dict[str, CalcNode]) -> Dict[str, Dict[str, Any]]:
        node_data: Dict[str, Dict[str, Any]] = {}
        for node in calc_nodes.values():
            node.data = node.behavior.finish_calculation(node, node.data)
            # inlined nodes belong to other diagrams
            if node.is_top_level:
                node_data[node.local_id] = node.data
        return node_data


def solve(calc_nodes: Dict[str, CalcNode], nets: Sequence[Net],
          config: Optional[SolverConfig] = None) -> SolveResult:
    return NewtonSolver(config).solve(calc_nodes, nets)
