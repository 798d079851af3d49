"""
Unit tests -- Repository shortcuts.
"""
import pytest

from src.orm.collection import EntityCollection, SthCollection
from src.orm.entity_manager import EntityManager
from src.orm.mapper.memory import MemoryMapper
from src.orm.query.select import Select
from src.orm.repository.query import EntityTypeMismatchError, RepositoryQuery


@pytest.fixture
def repo():
    mapper = MemoryMapper({
        "Contact": [
            {"firstName": "Ann", "lastName": "Lee", "age": 31},
            {"firstName": "Bob", "lastName": "Ng", "age": 45},
            {"firstName": "Cy", "lastName": "Lee", "age": 27},
        ],
    })
    return EntityManager(mapper).get_repository("Contact")


def test_get_by_id(repo):
    assert repo.get_by_id(2).get("firstName") == "Bob"
    assert repo.get_by_id(99) is None


def test_each_shortcut_opens_a_fresh_query(repo):
    first = repo.where("lastName", "Lee")
    second = repo.order("age")
    assert isinstance(first, RepositoryQuery)
    assert first is not second
    assert second.build().where_clause == ()
    assert first.build().order_by == ()


def test_terminal_shortcuts(repo):
    assert isinstance(repo.find(), EntityCollection)
    assert len(repo.find()) == 3
    assert repo.count() == 3
    assert repo.max("age") == 45
    assert repo.min("age") == 27
    assert repo.sum("age") == 103


def test_legacy_params_through_repository(repo):
    with pytest.warns(DeprecationWarning):
        assert repo.count({"whereClause": {"lastName": "Lee"}}) == 2
    with pytest.warns(DeprecationWarning):
        assert repo.find_one({"whereClause": {"age>": 40}}).get("firstName") == "Bob"


def test_sth_shortcut(repo):
    assert isinstance(repo.sth().find(), SthCollection)


def test_fluent_chain_from_repository(repo):
    names = [e.get("firstName") for e in repo.where("lastName", "Lee").order("age", "DESC").find()]
    assert names == ["Ann", "Cy"]


def test_select_builder_targets_repository_type(repo):
    assert repo.select_builder().build() == Select(from_="Contact")


def test_clone_keeps_seed(repo):
    query = repo.clone(Select(from_="Contact", where_clause=[{"age<": 30}]))
    assert [e.get("firstName") for e in query.find()] == ["Cy"]


def test_clone_rejects_other_type(repo):
    with pytest.raises(EntityTypeMismatchError):
        repo.clone(Select(from_="Account"))
