"""
Schema-driven merge of untrusted JSON onto a known-good pydantic model.

The fallback model's declared fields are the schema: every field of the result
comes from the candidate when it validates against that field's annotation,
otherwise from the fallback. Nothing in the result is ever left unset.
"""

import copy
import logging
from typing import Annotated, Any, List, Optional, TypeVar, get_args, get_origin

from pydantic import BaseModel, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def merge_with_default(candidate: Any, fallback: M) -> M:
    """
    Merge `candidate` onto `fallback` field by field.

    - Nested models recurse when the candidate value is a dict.
    - List fields take the candidate list when it is a list; invalid items
      are dropped, and items whose `id` matches a fallback item are merged
      onto that item instead of being validated alone.
    - Scalars take the candidate value when it validates, else the fallback.

    Pure: neither argument is mutated and the result shares no objects with
    the fallback.
    """
    if not isinstance(candidate, dict):
        return fallback.model_copy(deep=True)

    values = {}
    for name, field in type(fallback).model_fields.items():
        default_value = getattr(fallback, name)
        key = _candidate_key(candidate, name, field.alias)
        if key is None:
            values[name] = copy.deepcopy(default_value)
            continue
        annotation = Annotated[(field.annotation, *field.metadata)] if field.metadata else field.annotation
        values[name] = _merge_value(candidate[key], default_value, annotation, name)

    try:
        return type(fallback).model_validate(values)
    except ValidationError as e:
        logger.warning(f"Merged {type(fallback).__name__} failed validation, keeping fallback: {e.error_count()} errors")
        return fallback.model_copy(deep=True)


def _candidate_key(candidate: dict, name: str, alias: Optional[str]) -> Optional[str]:
    if alias and alias in candidate:
        return alias
    if name in candidate:
        return name
    return None


def _merge_value(raw: Any, default: Any, annotation: Any, name: str) -> Any:
    if isinstance(default, BaseModel):
        if isinstance(raw, dict):
            return merge_with_default(raw, default)
        return default.model_copy(deep=True)

    if isinstance(default, list):
        if not isinstance(raw, list):
            return copy.deepcopy(default)
        return _merge_list(raw, default, annotation, name)

    try:
        return TypeAdapter(annotation).validate_python(raw)
    except ValidationError:
        logger.debug(f"Discarding invalid value for '{name}'")
        return copy.deepcopy(default)


def _merge_list(raw: List[Any], default: List[Any], annotation: Any, name: str) -> List[Any]:
    if get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]
    args = get_args(annotation)
    adapter = TypeAdapter(args[0] if args else Any)
    defaults_by_id = {
        item.id: item for item in default
        if isinstance(item, BaseModel) and isinstance(getattr(item, "id", None), str)
    }

    merged = []
    for item in raw:
        item_id = item.get("id") if isinstance(item, dict) else None
        matched = defaults_by_id.get(item_id) if isinstance(item_id, str) else None
        if matched is not None:
            merged.append(merge_with_default(item, matched))
            continue
        try:
            merged.append(adapter.validate_python(item))
        except ValidationError:
            logger.debug(f"Dropping invalid item in '{name}'")
    return merged
