"""Shared configuration and field types for the domain records.

Records are immutable pydantic models. Python attributes are snake_case;
the camelCase spelling used by the browser-era data is accepted on input and
produced by ``model_dump(by_alias=True)``. Timestamps are unix milliseconds.
"""

from __future__ import annotations

import time
import uuid
from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    return uuid.uuid4().hex


def _to_millis(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, datetime):
        return int(value.timestamp() * 1000)
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return int(text)
        try:
            return int(datetime.fromisoformat(text.replace("Z", "+00:00")).timestamp() * 1000)
        except ValueError:
            return value
    return value


def _to_millis_optional(value: Any) -> Any:
    if value is None or value == "":
        return None
    return _to_millis(value)


def _to_id(value: Any) -> Any:
    if isinstance(value, (int, uuid.UUID)) and not isinstance(value, bool):
        return str(value)
    return value


def _unique_ids(value: Any) -> Any:
    if value is None:
        return ()
    if isinstance(value, (list, tuple, set, frozenset)):
        seen: dict[str, None] = {}
        for item in value:
            seen.setdefault(str(_to_id(item)), None)
        return tuple(seen)
    return value


Timestamp = Annotated[int, BeforeValidator(_to_millis)]
OptionalTimestamp = Annotated[int | None, BeforeValidator(_to_millis_optional)]
Identifier = Annotated[str, BeforeValidator(_to_id)]
OptionalIdentifier = Annotated[str | None, BeforeValidator(_to_id)]
IdSet = Annotated[tuple[str, ...], BeforeValidator(_unique_ids)]


def unique_ids(ids: Any) -> tuple[str, ...]:
    """Order-preserving de-duplication used wherever membership sets are built."""
    return _unique_ids(ids)


class DomainModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )
