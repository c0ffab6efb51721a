"""Write results shaped like the ones returned by the PyMongo driver."""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class InsertOneResult:
    inserted_id: Any
    acknowledged: bool = True


@dataclass
class DeleteResult:
    deleted_count: int
    acknowledged: bool = True


@dataclass
class UpdateResult:
    matched_count: int
    modified_count: int
    upserted_count: int = 0
    upserted_id: Optional[Any] = None
    acknowledged: bool = True
