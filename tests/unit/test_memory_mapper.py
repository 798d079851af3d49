"""
Unit tests -- in-memory mapper: filter evaluation, ordering, projection, aggregates.
"""
import pytest

from src.orm.collection import SthCollection
from src.orm.mapper.base import Mapper
from src.orm.mapper.memory import MemoryMapper, matches
from src.orm.query.select import Select
from src.orm.query.where import Cond


_ROWS = [
    {"id": 1, "name": "Acme", "type": "Customer", "revenue": 500},
    {"id": 2, "name": "Globex", "type": "Partner", "revenue": 300},
    {"id": 3, "name": "Initech", "type": "Customer", "revenue": 120},
    {"id": 4, "name": "acme labs", "type": None, "revenue": None},
]


@pytest.fixture
def mapper():
    return MemoryMapper({"Account": _ROWS})


def _ids(mapper: MemoryMapper, **fields) -> list[int]:
    return [e.id for e in mapper.select(Select(from_="Account", **fields))]


def test_satisfies_mapper_protocol(mapper):
    assert isinstance(mapper, Mapper)


# ── Filters ──────────────────────────────────────────────

@pytest.mark.parametrize("clause,expected", [
    ({"type": "Customer"}, [1, 3]),
    ({"id": [2, 3]}, [2, 3]),
    ({"id!=": [2, 3]}, [1, 4]),
    ({"revenue>": 300}, [1]),
    ({"revenue>=": 300}, [1, 2]),
    ({"revenue<": 300}, [3]),
    ({"revenue<=": 300}, [2, 3]),
    ({"name*": "acme%"}, [1, 4]),
    ({"name!*": "acme%"}, [2, 3]),
    ({"name*": "_lobex"}, [2]),
    ({"type": None}, [4]),
    ({"type!=": None}, [1, 2, 3]),
    ({"type!=": "Customer"}, [2]),
])
def test_operator_suffixes(mapper, clause, expected):
    assert _ids(mapper, where_clause=[clause]) == expected


def test_logical_groups(mapper):
    tree = [Cond.or_(Cond.equal("type", "Partner"), Cond.greater("revenue", 400)).raw()]
    assert _ids(mapper, where_clause=tree) == [1, 2]

    tree = [Cond.not_(Cond.equal("type", "Customer")).raw()]
    assert _ids(mapper, where_clause=tree) == [2, 4]


def test_nested_list_is_a_conjunction(mapper):
    tree = [{"type": "Customer"}, [{"revenue>": 100}, {"revenue<": 200}]]
    assert _ids(mapper, where_clause=tree) == [3]


def test_multi_key_node_is_a_conjunction():
    assert matches({"a": 1, "b": 2}, [{"a": 1, "b": 2}])
    assert not matches({"a": 1, "b": 3}, [{"a": 1, "b": 2}])


def test_malformed_node_rejected():
    with pytest.raises(TypeError):
        matches({"a": 1}, ["a"])


def test_unknown_entity_type_yields_nothing(mapper):
    assert _ids(MemoryMapper()) == []
    assert mapper.count(Select(from_="Contact")) == 0


# ── Ordering ─────────────────────────────────────────────

def test_order_by_attribute(mapper):
    assert _ids(mapper, order_by=[["revenue", "DESC"]]) == [1, 2, 3, 4]
    assert _ids(mapper, order_by=[["revenue", "ASC"]]) == [4, 3, 2, 1]


def test_multi_key_order(mapper):
    assert _ids(mapper, order_by=[["type", "ASC"], ["id", "DESC"]]) == [4, 3, 1, 2]


def test_order_by_select_position(mapper):
    rows = list(mapper.select(Select(from_="Account", select=["id", "name"], order_by=[[2, "DESC"]])))
    assert [r.get("name") for r in rows] == ["acme labs", "Initech", "Globex", "Acme"]


def test_order_position_outside_select_list(mapper):
    with pytest.raises(ValueError, match="outside the select list"):
        list(mapper.select(Select(from_="Account", select=["id"], order_by=[[2, "ASC"]])))


# ── Projection / pagination ──────────────────────────────

def test_projection_with_aliases(mapper):
    query = Select(from_="Account", select=["id", ["name", "label"]], where_clause=[{"id": 1}])
    entity = next(mapper.select(query))
    assert entity.to_dict() == {"id": 1, "label": "Acme"}


def test_distinct(mapper):
    query = Select(from_="Account", select=["type"], distinct=True, where_clause=[{"type!=": None}])
    assert [e.get("type") for e in mapper.select(query)] == ["Customer", "Partner"]
    assert mapper.count(query) == 2


def test_offset_and_limit(mapper):
    assert _ids(mapper, order_by=[["id", "ASC"]], offset=1, limit=2) == [2, 3]
    assert _ids(mapper, order_by=[["id", "ASC"]], offset=3) == [4]
    assert _ids(mapper, limit=0) == []


def test_count_ignores_pagination(mapper):
    assert mapper.count(Select(from_="Account", offset=1, limit=1)) == 4


def test_select_is_lazy_stream(mapper):
    result = mapper.select(Select(from_="Account"))
    assert isinstance(result, SthCollection)
    assert result.entity_type == "Account"


def test_rows_are_copies(mapper):
    entity = next(mapper.select(Select(from_="Account", where_clause=[{"id": 1}])))
    entity.values["name"] = "Changed"
    assert next(mapper.select(Select(from_="Account", where_clause=[{"id": 1}]))).get("name") == "Acme"


# ── Aggregates ───────────────────────────────────────────

def test_aggregates_skip_nulls(mapper):
    query = Select(from_="Account")
    assert mapper.max(query, "revenue") == 500
    assert mapper.min(query, "revenue") == 120
    assert mapper.sum(query, "revenue") == 920


def test_aggregates_on_no_rows(mapper):
    query = Select(from_="Account", where_clause=[{"id": 99}])
    assert mapper.max(query, "revenue") is None
    assert mapper.min(query, "revenue") is None
    assert mapper.sum(query, "revenue") == 0


# ── insert / ignored clauses ─────────────────────────────

def test_insert_assigns_sequential_id():
    mapper = MemoryMapper()
    assert mapper.insert("Team", {"name": "Sales"}).id == 1
    assert mapper.insert("Team", {"name": "Support"}).id == 2
    assert mapper.insert("Team", {"id": 10, "name": "Ops"}).id == 10


def test_unevaluated_clauses_are_logged(mapper, caplog):
    query = Select(from_="Account", joins=["teams"], group_by=["type"])
    with caplog.at_level("WARNING", logger="src.orm.mapper.memory"):
        assert mapper.count(query) == 4
    assert "joins, group by" in caplog.text
