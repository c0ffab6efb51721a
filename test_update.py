import pytest

from mockdb.errors import InvalidUpdateError
from mockdb.update import apply_update, build_upsert_document


def test_set_overwrites_and_adds_fields():
    doc = {'name': 'Alice', 'age': 30}
    assert apply_update(doc, {'$set': {'age': 31, 'city': 'Boston'}})
    assert doc == {'name': 'Alice', 'age': 31, 'city': 'Boston'}


def test_set_counts_as_modified_even_without_change():
    doc = {'age': 30}
    assert apply_update(doc, {'$set': {'age': 30}})


def test_set_values_are_copied():
    tags = ['a']
    doc = {}
    apply_update(doc, {'$set': {'tags': tags}})
    tags.append('b')
    assert doc['tags'] == ['a']


def test_unset_removes_present_fields_only():
    doc = {'name': 'Alice', 'city': 'NYC'}
    assert apply_update(doc, {'$unset': {'city': 1, 'zip': ''}})
    assert doc == {'name': 'Alice'}
    assert not apply_update(doc, {'$unset': {'city': 1}})


def test_unknown_update_operators_are_ignored():
    doc = {'count': 1}
    assert not apply_update(doc, {'$inc': {'count': 1}})
    assert doc == {'count': 1}


def test_non_mapping_payload_is_rejected():
    with pytest.raises(InvalidUpdateError):
        apply_update({}, {'$set': ['age', 1]})
    with pytest.raises(InvalidUpdateError):
        build_upsert_document({}, {'$set': 'age'})


def test_upsert_document_merges_filter_and_set():
    doc = build_upsert_document({'name': 'David'}, {'$set': {'age': 28, 'name': 'Dave'}})
    assert doc == {'name': 'Dave', 'age': 28}


def test_upsert_document_keeps_only_equality_conditions():
    doc = build_upsert_document(
        {'name': {'$eq': 'David'}, 'age': {'$gt': 20}, 'tags': ['x']},
        {'$unset': {'tags': 1}},
    )
    assert doc == {'name': 'David', 'tags': ['x']}


def test_upsert_document_from_empty_filter():
    assert build_upsert_document(None, {'$set': {'a': 1}}) == {'a': 1}
    assert build_upsert_document({}, {}) == {}


@pytest.mark.parametrize('update', [{'$set': None}, {'$unset': None}])
def test_null_payload_is_rejected(update):
    with pytest.raises(InvalidUpdateError):
        apply_update({'a': 1}, update)
