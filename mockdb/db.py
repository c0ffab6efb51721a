import copy
import uuid
from collections.abc import Mapping
from functools import cmp_to_key
from typing import Any, Dict, List, Optional, Union

from loguru import logger

from .errors import InvalidCollectionNameError, InvalidDocumentError, InvalidUpdateError
from .results import DeleteResult, InsertOneResult, UpdateResult
from .selector import compile_sort, match_all
from .settings import MockDbSettings
from .update import apply_update, build_upsert_document


class MockDatabase:
    """In-memory stand-in for a MongoDB database handle"""

    def __init__(self, options: Optional[Union[Dict, MockDbSettings]] = None):
        if isinstance(options, MockDbSettings):
            self.settings = options
        else:
            self.settings = MockDbSettings(**(options or {}))
        self.collections: Dict[str, 'MockCollection'] = {}

    def collection(self, name: str) -> 'MockCollection':
        """Get a collection, creating it on first access"""
        if not isinstance(name, str) or not name.strip():
            raise InvalidCollectionNameError('Collection name must be a non-empty string')

        if name not in self.collections:
            logger.debug(f"Creating collection {name!r}")
            self.collections[name] = MockCollection(name, self.settings)

        return self.collections[name]

    def __getitem__(self, name: str) -> 'MockCollection':
        return self.collection(name)

    def drop_collection(self, name: str) -> bool:
        """Drop a collection; False if it did not exist"""
        if name in self.collections:
            del self.collections[name]
            logger.debug(f"Dropped collection {name!r}")
            return True
        return False

    def list_collections(self) -> List[str]:
        """Get names of all collections"""
        return list(self.collections.keys())

    def has_collection(self, name: str) -> bool:
        return name in self.collections

    def clear(self):
        """Drop every collection"""
        self.collections = {}

    def clear_all_data(self):
        """Empty every collection but keep them registered"""
        for collection in self.collections.values():
            collection.clear()

    def stats(self) -> Dict[str, Any]:
        """Collection and document counts"""
        stats = {
            'collections': len(self.collections),
            'total_documents': 0,
            'collection_stats': {},
        }

        for name, collection in self.collections.items():
            doc_count = collection.count()
            stats['total_documents'] += doc_count
            stats['collection_stats'][name] = {'documents': doc_count}

        return stats


class MockCollection:
    """A named list of documents exposing the driver's CRUD coroutines.

    The coroutines never await, so each call runs to completion on the event
    loop and sees the document list as it was when the call started.
    """

    def __init__(self, name: str, settings: Optional[MockDbSettings] = None):
        self.name = name
        self.settings = settings or MockDbSettings()
        self.documents: List[Dict] = []

    @property
    def id_field(self) -> str:
        return self.settings.id_field

    async def insert_one(self, document: Mapping) -> InsertOneResult:
        """Insert a copy of a document, generating an id when it has none"""
        if not isinstance(document, Mapping):
            raise InvalidDocumentError('Document must be a mapping')

        # Keep an independent copy so the caller cannot modify stored data
        doc_to_insert = copy.deepcopy(dict(document))
        if not doc_to_insert.get(self.id_field):
            doc_to_insert[self.id_field] = self._generate_id()

        self.documents.append(doc_to_insert)
        logger.debug(f"{self.name}: inserted {doc_to_insert[self.id_field]!r}")
        return InsertOneResult(inserted_id=doc_to_insert[self.id_field])

    async def find(self, query: Optional[Mapping] = None, options: Optional[Dict] = None) -> List[Dict]:
        """Find documents matching a query"""
        results = self._process_find(match_all(self.documents, query), options or {})
        if self.settings.copy_results:
            return copy.deepcopy(results)
        return results

    async def find_one(self, query: Optional[Mapping] = None, options: Optional[Dict] = None) -> Optional[Dict]:
        """Find the first document matching a query"""
        results = await self.find(query, options)
        return results[0] if results else None

    async def delete_one(self, query: Optional[Mapping] = None) -> DeleteResult:
        """Delete the first document matching a query"""
        doc = self._first_match(query)
        if doc is None:
            return DeleteResult(deleted_count=0)

        self._remove_document(doc)
        logger.debug(f"{self.name}: deleted {doc.get(self.id_field)!r}")
        return DeleteResult(deleted_count=1)

    async def update_one(self, filter: Optional[Mapping], update: Mapping, upsert: bool = False) -> UpdateResult:
        """Update the first document matching a filter, optionally upserting"""
        if not isinstance(update, Mapping):
            raise InvalidUpdateError('Update must be a mapping')

        doc = self._first_match(filter)

        if doc is None:
            if not upsert:
                return UpdateResult(matched_count=0, modified_count=0)

            insert_result = await self.insert_one(build_upsert_document(filter, update))
            return UpdateResult(
                matched_count=0,
                modified_count=0,
                upserted_count=1,
                upserted_id=insert_result.inserted_id,
            )

        modified = apply_update(doc, update)
        if modified:
            logger.debug(f"{self.name}: updated {doc.get(self.id_field)!r}")
        return UpdateResult(matched_count=1, modified_count=1 if modified else 0)

    def clear(self):
        """Remove all documents"""
        self.documents = []

    def count(self) -> int:
        return len(self.documents)

    def _first_match(self, query: Optional[Mapping]) -> Optional[Dict]:
        """The stored (not copied) first document matching a query"""
        matching = match_all(self.documents, query)
        return matching[0] if matching else None

    def _remove_document(self, doc: Dict):
        for index, stored in enumerate(self.documents):
            if stored is doc:
                del self.documents[index]
                return

    @staticmethod
    def _process_find(docs: List[Dict], options: Dict) -> List[Dict]:
        """Apply sort, skip and limit options"""
        results = docs

        if options.get('sort'):
            results = sorted(results, key=cmp_to_key(compile_sort(options['sort'])))

        skip = options.get('skip') or 0
        if skip < 0:
            raise ValueError(f"skip must be >= 0, got {skip}")
        if skip:
            results = results[skip:]

        # A negative limit means the same as its absolute value
        limit = abs(options.get('limit') or 0)
        if limit:
            results = results[:limit]

        return results

    @staticmethod
    def _generate_id() -> str:
        return uuid.uuid4().hex
