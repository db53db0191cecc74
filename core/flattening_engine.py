# core/flattening_engine.py
"""
Flatten a diagram, with every diagram reference inlined recursively under its
own namespace, into CalcNodes and the port links between them; then partition
the linked ports into nets.
"""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Set, Tuple

import numpy as np

from core.diagram import Diagram, Project
from core.exceptions import ReferenceCycleError, TopologyError
from core.topology.calc_node import CalcNode, Net
from core.topology_manager import DEFAULT_NET_VALUE, PortKey, TopologyManager
from behaviors.factory import get_behavior
from utils.logging_config import get_logger

logger = get_logger(__name__)

Link = Tuple[PortKey, PortKey, str]


@dataclass
class ConnectionPorts:
    """
    Connection ports of a diagram as displayed on a reference node: split into a
    left and a right column, each ordered top to bottom.
    """
    left: List[str] = field(default_factory=list)
    right: List[str] = field(default_factory=list)

    @property
    def all(self) -> List[str]:
        return self.left + self.right


def connection_ports(diagram: Diagram) -> ConnectionPorts:
    """
    Collect the node instances of *diagram* that act as connection ports.
    Nodes left of or on the median x position go to the left column.
    """
    exposed = [
        n for n in diagram.nodes
        if get_behavior(n.type).is_connection_port(n.data)
    ]
    if not exposed:
        return ConnectionPorts()
    median_x = float(np.median([n.position[0] for n in exposed]))
    by_height = sorted(exposed, key=lambda n: (n.position[1], n.id))
    return ConnectionPorts(
        left=[n.id for n in by_height if n.position[0] <= median_x],
        right=[n.id for n in by_height if n.position[0] > median_x],
    )


def flatten(project: Project, diagram: Diagram, strict_references: bool = False
            ) -> Tuple[Dict[str, CalcNode], List[Link]]:
    """
    Create one CalcNode per node instance of *diagram* and of every diagram it
    references, and list the port-to-port links between them.

    Returns:
        (calc_nodes, links) where links are (port, port, kind) triples and kind
        is "edge" for diagram edges or "boundary" for reference wiring.

    Raises:
        ReferenceCycleError: If *strict_references* is set and a reference
            re-enters a diagram that is already being inlined.
        TopologyError: If two nodes flatten to the same id, e.g. a top-level
            node named "r.x" next to a reference "r" whose diagram has a node "x".
    """
    calc_nodes: Dict[str, CalcNode] = {}
    links: List[Link] = []
    _inline(project, diagram, "", frozenset({diagram.id}), calc_nodes, links, strict_references)
    return calc_nodes, links


def _inline(project: Project, diagram: Diagram, namespace: str, stack: FrozenSet[str],
            calc_nodes: Dict[str, CalcNode], links: List[Link], strict: bool) -> None:
    declared: Dict[str, Set[str]] = {}
    boundary: Dict[str, List[Tuple[str, PortKey]]] = {}

    for inst in diagram.nodes:
        node_id = namespace + inst.id
        if inst.id in declared:
            logger.warning("Diagram '%s' has duplicate node id '%s'; keeping the first.", diagram.id, inst.id)
            continue
        if node_id in calc_nodes:
            raise TopologyError(
                f"Node '{inst.id}' of diagram '{diagram.id}' flattens to id '{node_id}', "
                f"which is already taken by another node."
            )
        behavior = get_behavior(inst.type)
        calc_nodes[node_id] = CalcNode(node_id, inst.id, namespace, inst.data, behavior)
        declared[inst.id] = set(behavior.port_names(inst.data))

        target_id = behavior.referenced_diagram(inst.data)
        if target_id is None:
            continue
        target = project.get(target_id)
        if target is None:
            logger.warning("Node '%s' references unknown diagram '%s'; skipping.", node_id, target_id)
            continue
        if target_id in stack:
            if strict:
                raise ReferenceCycleError(
                    f"Node '{node_id}' references diagram '{target_id}' which is already being inlined."
                )
            logger.warning("Node '%s' closes a reference cycle through diagram '%s'; skipping.",
                           node_id, target_id)
            continue

        inner_namespace = node_id + "."
        _inline(project, target, inner_namespace, stack | {target_id}, calc_nodes, links, strict)

        pairs = []
        for port_id in connection_ports(target).all:
            inner = target.node(port_id)
            terminal = get_behavior(inner.type).connection_terminal
            pairs.append((port_id, (inner_namespace + port_id, terminal)))
        declared[inst.id] = {port_id for port_id, _ in pairs}
        boundary[inst.id] = pairs

    wired: Set[PortKey] = set()
    for edge in diagram.edges:
        usable = True
        for local_id, port_name in edge.endpoints():
            if local_id not in declared:
                logger.warning("Edge %s in diagram '%s' refers to missing node '%s'; ignoring.",
                               edge, diagram.id, local_id)
                usable = False
            elif port_name not in declared[local_id]:
                logger.debug("Edge %s in diagram '%s' refers to undeclared port '%s.%s'; ignoring.",
                             edge, diagram.id, local_id, port_name)
                usable = False
        if not usable:
            continue
        (s, sp), (t, tp) = edge.endpoints()
        links.append(((namespace + s, sp), (namespace + t, tp), "edge"))
        wired.update(edge.endpoints())

    for ref_id, pairs in boundary.items():
        for port_id, inner in pairs:
            if (ref_id, port_id) in wired:
                links.append(((namespace + ref_id, port_id), inner, "boundary"))


def build(project: Project, diagram: Diagram, strict_references: bool = False,
          default_value: float = DEFAULT_NET_VALUE) -> Tuple[Dict[str, CalcNode], List[Net]]:
    """
    Flatten *diagram* and partition its connected ports into nets.

    Returns:
        (calc_nodes, nets): CalcNodes keyed by flattened id, and nets ordered by id.
    """
    calc_nodes, links = flatten(project, diagram, strict_references)
    tm = TopologyManager(calc_nodes)
    for a, b, kind in links:
        tm.connect(a, b, kind)
    tm.fold_aliases()
    nets = tm.build_nets(default_value)
    logger.info("Built diagram '%s': %d nodes, %d nets", diagram.id, len(calc_nodes), len(nets))
    return calc_nodes, nets
