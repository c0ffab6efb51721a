import pytest
from pydantic import ValidationError

from mockdb import MockDatabase, configure_logging, disable_logging
from mockdb.selector import compile_document_selector
from mockdb.settings import MockDbSettings


def test_defaults(monkeypatch):
    for name in ('MOCKDB_ID_FIELD', 'MOCKDB_LOG_LEVEL', 'MOCKDB_COPY_RESULTS'):
        monkeypatch.delenv(name, raising=False)
    settings = MockDbSettings()
    assert settings.id_field == '_id'
    assert settings.log_level == 'WARNING'
    assert settings.copy_results is True


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv('MOCKDB_ID_FIELD', 'uid')
    monkeypatch.setenv('MOCKDB_LOG_LEVEL', 'debug')
    monkeypatch.setenv('MOCKDB_COPY_RESULTS', 'false')
    settings = MockDbSettings()
    assert settings.id_field == 'uid'
    assert settings.log_level == 'DEBUG'
    assert settings.copy_results is False


def test_explicit_options_win(monkeypatch):
    monkeypatch.setenv('MOCKDB_ID_FIELD', 'uid')
    assert MockDatabase({'id_field': 'key'}).settings.id_field == 'key'


def test_invalid_options():
    with pytest.raises(ValidationError):
        MockDatabase({'namespace': 'nope'})
    with pytest.raises(ValidationError):
        MockDbSettings(id_field='')


def test_unknown_operator_is_logged():
    messages = []
    configure_logging('WARNING', sink=messages.append)
    try:
        compile_document_selector({'age': {'$bogus': 1}})
    finally:
        disable_logging()

    assert any("'$bogus'" in message for message in messages)


def test_logging_is_silent_by_default():
    messages = []
    configure_logging('DEBUG', sink=messages.append)
    disable_logging()
    compile_document_selector({'age': {'$bogus': 1}})
    assert messages == []


@pytest.mark.asyncio()
async def test_level_limits_package_output(capfd):
    messages = []
    configure_logging('WARNING', sink=messages.append)
    try:
        await MockDatabase()['users'].insert_one({'a': 1})
    finally:
        disable_logging()

    assert 'DEBUG' not in capfd.readouterr().err
    assert messages == []


@pytest.mark.asyncio()
async def test_level_from_database_settings():
    db = MockDatabase({'log_level': 'debug'})
    messages = []
    configure_logging(sink=messages.append, config=db.settings)
    try:
        await db['users'].insert_one({'a': 1})
    finally:
        disable_logging()

    assert any('DEBUG' in message and "Creating collection 'users'" in message for message in messages)
