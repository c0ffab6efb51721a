"""Application of update documents (``$set`` / ``$unset``) and upsert construction."""

import copy
from collections.abc import Mapping
from typing import Any, Dict, Optional

from loguru import logger

from .errors import InvalidUpdateError
from .selector import is_operator_object

SUPPORTED_UPDATE_OPERATORS = ('$set', '$unset')


def _operator_payload(update: Mapping, operator: str) -> Optional[Mapping]:
    if operator not in update:
        return None
    payload = update[operator]
    if not isinstance(payload, Mapping):
        raise InvalidUpdateError(f"{operator} payload must be a mapping, got {type(payload).__name__}")
    return payload


def apply_update(doc: Dict[str, Any], update: Mapping) -> bool:
    """Apply ``update`` to ``doc`` in place and report whether it was modified.

    ``$set`` always counts as a modification, even when the values are unchanged.
    ``$unset`` counts only when at least one named field was present.
    """
    for operator in update:
        if operator not in SUPPORTED_UPDATE_OPERATORS:
            logger.warning(f"Ignoring unsupported update operator {operator!r}")

    set_fields = _operator_payload(update, '$set')
    unset_fields = _operator_payload(update, '$unset')
    modified = False

    if set_fields is not None:
        doc.update(copy.deepcopy(dict(set_fields)))
        modified = True

    if unset_fields is not None:
        for key in unset_fields:
            if key in doc:
                del doc[key]
                modified = True

    return modified


def build_upsert_document(selector: Optional[Mapping], update: Mapping) -> Dict[str, Any]:
    """Build the document inserted by an upsert that matched nothing.

    Literal filter fields are copied as they are; an operator-object field
    contributes its ``$eq`` operand and is skipped otherwise. The ``$set``
    payload is applied on top.
    """
    doc: Dict[str, Any] = {}
    for key, value in (selector or {}).items():
        if not is_operator_object(value):
            doc[key] = copy.deepcopy(value)
        elif '$eq' in value:
            doc[key] = copy.deepcopy(value['$eq'])

    set_fields = _operator_payload(update, '$set')
    if set_fields is not None:
        doc.update(copy.deepcopy(dict(set_fields)))
    return doc
