import numpy as np
import pytest

from core.exceptions import CalcError
from core.topology.calc_node import CalcNode, Net
from behaviors.factory import get_behavior, node_types, default_data
from behaviors.product import _partials


def node_with(type_name, data, **ports):
    node = CalcNode("n", "n", "", data, get_behavior(type_name))
    node.ports.update(ports)
    return node

def collect(node, x):
    rows, residuals = [], []

    def add_equation(equation):
        row = np.zeros(len(x))
        residuals.append(equation(np.asarray(x, dtype=float), row))
        rows.append(row)

    node.behavior.contribute_equations(node, node.data, add_equation)
    return rows, residuals


# --- Factory ---

def test_factory_knows_closed_set():
    assert node_types() == ["mul", "plus", "reference", "source"]

def test_factory_is_case_insensitive():
    assert get_behavior("Source") is get_behavior("source")

def test_factory_rejects_unknown_type():
    with pytest.raises(CalcError, match="Unknown node type: resistor"):
        get_behavior("resistor")

def test_factory_rejects_non_string():
    with pytest.raises(CalcError):
        get_behavior(None)

def test_default_data():
    assert default_data("source") == {"value": 0.0, "locked": False, "input": False}
    assert default_data("plus") == {"top_ports": ["top_0"], "bottom_ports": ["bottom_0"]}
    assert default_data("reference") == {"graph_id": None}
    # each call hands out a fresh payload
    assert default_data("mul") is not default_data("mul")


# --- Source ---

def test_locked_source_pins_its_net():
    net = Net(0)
    node = node_with("source", {"value": 7.0, "locked": True}, a=net, b=net)
    rows, residuals = collect(node, [4.0])
    assert len(rows) == 1
    np.testing.assert_array_equal(rows[0], [1.0])
    assert residuals == [pytest.approx(-3.0)]

def test_locked_source_with_split_terminals_pins_both():
    node = node_with("source", {"value": 2.0, "locked": True}, a=Net(0), b=Net(1))
    rows, residuals = collect(node, [1.0, 5.0])
    np.testing.assert_array_equal(np.vstack(rows), [[1.0, 0.0], [0.0, 1.0]])
    assert residuals == [pytest.approx(-1.0), pytest.approx(3.0)]

def test_unlocked_source_equates_distinct_terminals():
    node = node_with("source", {"value": 2.0}, a=Net(0), b=Net(1))
    rows, residuals = collect(node, [3.0, 1.0])
    np.testing.assert_array_equal(rows[0], [1.0, -1.0])
    assert residuals == [pytest.approx(2.0)]

def test_unlocked_source_with_one_net_adds_nothing():
    net = Net(0)
    node = node_with("source", {"value": 2.0}, a=net, b=net)
    assert collect(node, [3.0]) == ([], [])

def test_unconnected_source_adds_nothing():
    node = node_with("source", {"value": 2.0, "locked": True})
    assert collect(node, []) == ([], [])

def test_source_finish_adopts_net_value():
    net = Net(0, 12.5)
    node = node_with("source", {"value": 0.0, "locked": False}, b=net)
    assert node.behavior.finish_calculation(node, node.data) == {"value": 12.5, "locked": False}

def test_locked_source_finish_keeps_value():
    node = node_with("source", {"value": 3.0, "locked": True}, a=Net(0, 99.0))
    assert node.behavior.finish_calculation(node, node.data)["value"] == 3.0

def test_unconnected_source_finish_is_unchanged():
    data = {"value": 3.0, "locked": False}
    node = node_with("source", data)
    assert node.behavior.finish_calculation(node, data) is data

def test_source_ports_and_seed():
    behavior = get_behavior("source")
    assert behavior.port_names({}) == ["a", "b"]
    assert behavior.alias_ports({}) == [("a", "b")]
    assert behavior.initial_values({"value": 4}) == {"a": 4.0}
    assert behavior.is_connection_port({"input": True})
    assert not behavior.is_connection_port({})


# --- Summation ---

PORTS = {"top_ports": ["top_0", "top_1", "top_2"], "bottom_ports": ["bottom_0", "bottom_1"]}

def test_summation_row_and_residual():
    node = node_with("plus", PORTS, top_0=Net(0), top_1=Net(1), bottom_0=Net(2))
    rows, residuals = collect(node, [3.0, 4.0, 7.5])
    np.testing.assert_array_equal(rows[0], [1.0, 1.0, -1.0])
    assert residuals == [pytest.approx(-0.5)]

def test_summation_accumulates_shared_net():
    shared = Net(0)
    node = node_with("plus", PORTS, top_0=shared, top_1=shared, bottom_0=Net(1))
    rows, residuals = collect(node, [2.0, 4.0])
    np.testing.assert_array_equal(rows[0], [2.0, -1.0])
    assert residuals == [pytest.approx(0.0)]

def test_summation_without_connections_adds_nothing():
    node = node_with("plus", PORTS)
    assert collect(node, []) == ([], [])

def test_summation_ignores_ports_missing_from_rows():
    node = node_with("plus", {"top_ports": ["top_0"], "bottom_ports": []}, top_0=Net(0), top_9=Net(1))
    rows, _ = collect(node, [1.0, 1.0])
    np.testing.assert_array_equal(rows[0], [1.0, 0.0])


# --- Product ---

def test_product_exact_jacobian():
    node = node_with("mul", PORTS, top_0=Net(0), top_1=Net(1), bottom_0=Net(2))
    rows, residuals = collect(node, [2.0, 3.0, 5.0])
    np.testing.assert_allclose(rows[0], [3.0, 2.0, -1.0])
    assert residuals == [pytest.approx(1.0)]

def test_product_jacobian_matches_finite_difference():
    node = node_with("mul", PORTS, top_0=Net(0), top_1=Net(1), top_2=Net(2), bottom_0=Net(3), bottom_1=Net(4))
    x = np.array([1.5, -2.0, 0.7, 3.0, 0.4])
    rows, residuals = collect(node, x)
    h = 1e-7
    numeric = []
    for i in range(len(x)):
        shifted = x.copy()
        shifted[i] += h
        numeric.append((collect(node, shifted)[1][0] - residuals[0]) / h)
    np.testing.assert_allclose(rows[0], numeric, rtol=1e-5, atol=1e-6)

def test_product_squared_net():
    shared = Net(0)
    node = node_with("mul", PORTS, top_0=shared, top_1=shared, bottom_0=Net(1))
    rows, residuals = collect(node, [3.0, 9.0])
    np.testing.assert_allclose(rows[0], [6.0, -1.0])
    assert residuals == [pytest.approx(0.0)]

def test_product_zero_factor_stays_finite():
    node = node_with("mul", PORTS, top_0=Net(0), top_1=Net(1), bottom_0=Net(2))
    rows, residuals = collect(node, [0.0, 3.0, 1.0])
    assert np.all(np.isfinite(rows[0]))
    np.testing.assert_allclose(rows[0], [3.0, 0.0, -1.0])
    assert residuals == [pytest.approx(-1.0)]

def test_product_needs_both_rows():
    node = node_with("mul", PORTS, top_0=Net(0), top_1=Net(1))
    assert collect(node, [1.0, 1.0]) == ([], [])

def test_partials_single_factor():
    np.testing.assert_array_equal(_partials(np.array([5.0])), [1.0])


# --- Reference ---

def test_reference_contributes_nothing():
    node = node_with("reference", {"graph_id": "other"}, x=Net(0))
    assert collect(node, [1.0]) == ([], [])
    assert node.behavior.finish_calculation(node, node.data) is node.data
    assert node.behavior.referenced_diagram(node.data) == "other"
