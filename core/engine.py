# core/engine.py
"""
Calculation engine entry point: builds the net list of a diagram within its
project, solves it and hands back the updated node data.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from core.diagram import Diagram, Project
from core.flattening_engine import build
from core.solver import NewtonSolver, SolveResult, SolverConfig
from core.topology.calc_node import CalcNode, Net
from core.topology_manager import DEFAULT_NET_VALUE


@dataclass
class EngineConfig:
    solver: SolverConfig = field(default_factory=SolverConfig)
    default_net_value: float = DEFAULT_NET_VALUE
    strict_references: bool = False
    log_level: Optional[str] = None      # left to the host application when unset
    log_file: Optional[str] = None


class CalculationEngine:
    def __init__(self, project: Project, config: Optional[EngineConfig] = None):
        self.project = project
        self.config = config or EngineConfig()
        self.solver = NewtonSolver(self.config.solver)

    def build(self, diagram: Diagram) -> Tuple[Dict[str, CalcNode], List[Net]]:
        """
        Flatten *diagram* and partition its ports into nets.
        Raises ReferenceCycleError only when strict references are configured.
        """
        return build(
            self.project,
            diagram,
            strict_references=self.config.strict_references,
            default_value=self.config.default_net_value,
        )

    def solve(self, calc_nodes: Dict[str, CalcNode], nets: List[Net]) -> SolveResult:
        """
        Solve a built net list in place. Raises a SolveError subclass on failure.
        """
        return self.solver.solve(calc_nodes, nets)

    def calculate(self, diagram: Diagram) -> Tuple[SolveResult, Diagram]:
        """
        Build and solve *diagram*, then merge the result into a copy of it.
        On failure the SolveError propagates and the diagram stays untouched.
        """
        calc_nodes, nets = self.build(diagram)
        result = self.solve(calc_nodes, nets)
        return result, diagram.with_node_data(result.node_data)
