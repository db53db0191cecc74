import pytest

from core.diagram import Project
from builders import source, plus, mul, ref, diagram, adder


@pytest.fixture
def locked_pair():
    # Two sources wired terminal to terminal, one locked at 5
    return diagram("pair", [source("s1", 5.0, locked=True), source("s2", 0.0)],
                   [("s1.a", "s2.a")])

@pytest.fixture
def sum_diagram():
    # 3 + 4 = 7 with the 4 left free
    return diagram("sum", [
        source("s3", 3.0, locked=True),
        source("s4", 4.0),
        source("s7", 7.0, locked=True),
        plus("p", top=("top_0", "top_1")),
    ], [("s3.a", "p.top_0"), ("s4.b", "p.top_1"), ("s7.a", "p.bottom_0")])

@pytest.fixture
def product_diagram():
    # 2 * 3 = out, out starts from a poor guess
    return diagram("product", [
        source("s2", 2.0, locked=True),
        source("s3", 3.0, locked=True),
        source("out", 1.0),
        mul("m", top=("top_0", "top_1")),
    ], [("s2.a", "m.top_0"), ("s3.a", "m.top_1"), ("out.a", "m.bottom_0")])

@pytest.fixture
def adder_project():
    main = diagram("main", [
        source("a", 2.0, locked=True),
        source("b", 5.0, locked=True),
        source("c", 0.0),
        ref("r", "adder"),
    ], [("a.a", "r.x"), ("b.a", "r.y"), ("c.a", "r.z")])
    return Project([main, adder()]), main

@pytest.fixture
def cyclic_project():
    first = diagram("first", [source("u", 1.0, input=True), ref("to_second", "second")],
                    [("u.a", "to_second.v")])
    second = diagram("second", [source("v", 2.0, input=True), ref("to_first", "first")],
                     [("v.a", "to_first.u")])
    return Project([first, second]), first

@pytest.fixture
def dummy_logger(caplog):
    caplog.set_level("DEBUG")
    return caplog
