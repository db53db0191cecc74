# behaviors/factory.py
from typing import Dict

from core.behavior.node_behavior import NodeBehavior
from core.exceptions import CalcError
from behaviors.source import SourceBehavior
from behaviors.summation import SummationBehavior
from behaviors.product import ProductBehavior
from behaviors.reference import ReferenceBehavior

# Closed set of node types; behaviors are stateless so one instance serves every node.
_behavior_registry: Dict[str, NodeBehavior] = {
    behavior.type_name: behavior
    for behavior in (
        SourceBehavior(),
        SummationBehavior(),
        ProductBehavior(),
        ReferenceBehavior(),
    )
}

def get_behavior(type_name: str) -> NodeBehavior:
    if not isinstance(type_name, str):
        raise CalcError("Node type name must be a string.")
    behavior = _behavior_registry.get(type_name.lower())
    if behavior is None:
        raise CalcError(f"Unknown node type: {type_name}")
    return behavior

def node_types() -> list:
    return sorted(_behavior_registry)

def default_data(type_name: str) -> dict:
    return get_behavior(type_name).default_data()
