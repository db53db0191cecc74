# core/topology_manager.py
from typing import Dict, Iterable, List, Tuple

import networkx as nx
import numpy as np

from core.topology.calc_node import CalcNode, Net
from core.exceptions import TopologyError
from utils.logging_config import get_logger

logger = get_logger(__name__)

PortKey = Tuple[str, str]  # (calc node id, port name)

DEFAULT_NET_VALUE = 1.0


class TopologyManager:
    """
    Undirected adjacency between flattened ports and the nets derived from it.

    Graph nodes are (calc node id, port name) pairs; a pair only enters the
    graph once it is connected to another one, so isolated ports never get a net.
    """
    def __init__(self, calc_nodes: Dict[str, CalcNode]):
        self.calc_nodes = calc_nodes
        self.graph = nx.Graph()

    def connect(self, a: PortKey, b: PortKey, kind: str = "edge") -> None:
        for node_id, _ in (a, b):
            if node_id not in self.calc_nodes:
                raise TopologyError(f"Node '{node_id}' is not part of the flattened diagram.")
        if a == b:
            logger.debug("Ignoring self-connection on %s.%s", *a)
            return
        self.graph.add_edge(a, b, kind=kind)

    def is_connected(self, key: PortKey) -> bool:
        return self.graph.has_node(key) and self.graph.degree(key) > 0

    def fold_aliases(self) -> None:
        """
        Join the alias port pairs declared by node behaviors. A pair is only
        joined when one of its ports is already connected.
        """
        for node in self.calc_nodes.values():
            for first, second in node.behavior.alias_ports(node.data):
                a, b = (node.id, first), (node.id, second)
                if self.is_connected(a) or self.is_connected(b):
                    self.graph.add_edge(a, b, kind="alias")

    def build_nets(self, default_value: float = DEFAULT_NET_VALUE) -> List[Net]:
        """
        Allocate one net per connected component of the port graph, in order of
        first appearance, and record it on every member port's CalcNode.
        """
        order = {key: i for i, key in enumerate(self.graph.nodes)}
        nets: List[Net] = []
        assigned = set()
        for key in self.graph.nodes:
            if key in assigned:
                continue
            component = sorted(nx.node_connected_component(self.graph, key), key=order.__getitem__)
            net = Net(len(nets), self._seed(component, default_value))
            for node_id, port_name in component:
                node = self.calc_nodes[node_id]
                node.ports[port_name] = net
                net.ports.append((node, port_name))
            assigned.update(component)
            nets.append(net)
        logger.debug("Allocated %d nets over %d ports", len(nets), len(order))
        return nets

    def _seed(self, component: Iterable[PortKey], default_value: float) -> float:
        seeds = []
        for node_id, port_name in component:
            node = self.calc_nodes[node_id]
            initial = node.behavior.initial_values(node.data)
            if port_name in initial:
                seeds.append(initial[port_name])
        return float(np.mean(seeds)) if seeds else default_value

    def __repr__(self) -> str:
        return (
            f"<TopologyManager nodes={len(self.calc_nodes)} "
            f"ports={self.graph.number_of_nodes()} links={self.graph.number_of_edges()}>"
        )
