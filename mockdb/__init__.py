"""In-memory imitation of a MongoDB database for unit tests.

Example usage:

    from mockdb import MockDatabase

    async def test_adults():
        db = MockDatabase()
        await db['users'].insert_one({'name': 'Alice', 'age': 30})
        assert await db['users'].find({'age': {'$gte': 18}})
"""

from loguru import logger

from .db import MockCollection, MockDatabase
from .errors import (
    InvalidCollectionNameError,
    InvalidDocumentError,
    InvalidUpdateError,
    MockDbError,
)
from .logging_config import configure_logging, disable_logging
from .results import DeleteResult, InsertOneResult, UpdateResult
from .selector import MISSING, compile_document_selector, match_all, matches
from .settings import MockDbSettings, settings

logger.disable(__name__)

__all__ = [
    "MockDatabase",
    "MockCollection",
    "MockDbSettings",
    "settings",
    "InsertOneResult",
    "DeleteResult",
    "UpdateResult",
    "MockDbError",
    "InvalidCollectionNameError",
    "InvalidDocumentError",
    "InvalidUpdateError",
    "MISSING",
    "compile_document_selector",
    "match_all",
    "matches",
    "configure_logging",
    "disable_logging",
]
