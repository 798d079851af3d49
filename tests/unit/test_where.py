"""
Unit tests -- filter nodes: Cond factory and call-shape resolution.
"""
import pytest

from src.orm.query.where import Cond, WhereItem, split_key, to_where_node, to_where_tree


# ── Cond factory ─────────────────────────────────────────

def test_equal():
    assert Cond.equal("status", "Active").raw() == {"status": "Active"}


def test_comparison_suffixes():
    assert Cond.not_equal("status", "Lost").raw() == {"status!=": "Lost"}
    assert Cond.greater("amount", 10).raw() == {"amount>": 10}
    assert Cond.greater_or_equal("amount", 10).raw() == {"amount>=": 10}
    assert Cond.less("amount", 10).raw() == {"amount<": 10}
    assert Cond.less_or_equal("amount", 10).raw() == {"amount<=": 10}
    assert Cond.like("name", "Ac%").raw() == {"name*": "Ac%"}
    assert Cond.not_like("name", "Ac%").raw() == {"name!*": "Ac%"}


def test_in_and_not_in_use_lists():
    assert Cond.in_("type", ("A", "B")).raw() == {"type": ["A", "B"]}
    assert Cond.not_in("type", ["A"]).raw() == {"type!=": ["A"]}


def test_logical_groups_nest_raw_nodes():
    item = Cond.or_(Cond.equal("a", 1), {"b>": 2})
    assert item.raw() == {"OR": [{"a": 1}, {"b>": 2}]}

    assert Cond.and_(Cond.equal("a", 1)).raw() == {"AND": [{"a": 1}]}
    assert Cond.not_(Cond.equal("a", 1)).raw() == {"NOT": [{"a": 1}]}


def test_raw_returns_a_copy():
    item = Cond.in_("type", ["A"])
    item.raw()["type"].append("B")
    assert item.raw() == {"type": ["A"]}


def test_where_items_compare_by_value():
    assert Cond.equal("a", 1) == WhereItem({"a": 1})


# ── split_key ────────────────────────────────────────────

@pytest.mark.parametrize("key,expected", [
    ("name", ("name", "=")),
    ("amount>=", ("amount", ">=")),
    ("amount>", ("amount", ">")),
    ("status!=", ("status", "!=")),
    ("name!*", ("name", "!*")),
    ("name*", ("name", "*")),
])
def test_split_key(key, expected):
    assert split_key(key) == expected


# ── Call-shape resolution ────────────────────────────────

def test_node_from_where_item():
    assert to_where_node(Cond.greater("amount", 5)) == {"amount>": 5}


def test_node_from_mapping_is_copied():
    clause = {"status": ["A"]}
    node = to_where_node(clause)
    node["status"].append("B")
    assert clause == {"status": ["A"]}


def test_node_from_key_value():
    assert to_where_node("status", "Active") == {"status": "Active"}


def test_node_from_key_list_value_is_containment():
    assert to_where_node("status", ["A", "B"]) == {"status": ["A", "B"]}


def test_node_from_list_is_and_group():
    assert to_where_node([{"a": 1}, Cond.equal("b", 2)]) == [{"a": 1}, {"b": 2}]


def test_node_rejects_other_types():
    with pytest.raises(TypeError, match="Unsupported where clause"):
        to_where_node(42)


# ── Tree coercion ────────────────────────────────────────

def test_tree_from_mapping_splits_keys_in_order():
    tree = to_where_tree({"status": "Active", "OR": [{"a": 1}, {"b": 2}]})
    assert tree == [{"status": "Active"}, {"OR": [{"a": 1}, {"b": 2}]}]


def test_tree_from_none_is_empty():
    assert to_where_tree(None) == []


def test_tree_rejects_scalars():
    with pytest.raises(TypeError):
        to_where_tree("status")
