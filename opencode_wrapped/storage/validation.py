"""
Shape validation for OpenCode storage files.

Each parser checks a decoded JSON document and returns a ParseResult that
either carries a typed record or the reason the document was rejected.
Rejected files are skipped by the repository.
"""

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from opencode_wrapped.core.dates import local_datetime
from opencode_wrapped.core.token_counter import TokenUsage
from .models import ROLE_ASSISTANT, ROLE_USER, MessageRecord, ProjectRecord, SessionRecord


class RecordValidationError(ValueError):
    """Raised internally when a document does not have the expected shape."""


@dataclass(frozen=True)
class ParseResult:
    """Outcome of reading and validating a single storage file."""
    record: Optional[Any] = None
    error: Optional[str] = None
    path: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.record is not None


def _is_number(value: Any) -> bool:
    """Finite int or float; json.load also yields NaN and Infinity."""
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _require_str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise RecordValidationError(f"'{key}' must be a non-empty string")
    return value


def _optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise RecordValidationError(f"'{key}' must be a string")
    return value


def _optional_count(data: Dict[str, Any], key: str) -> int:
    """Non-negative whole count; ``2.0`` is accepted, ``1.5`` is not."""
    value = data.get(key)
    if value is None:
        return 0
    if not _is_number(value) or value < 0:
        raise RecordValidationError(f"'{key}' must be a non-negative number")
    if isinstance(value, float) and not value.is_integer():
        raise RecordValidationError(f"'{key}' must be a whole number")
    return int(value)


def _timestamp(value: Any, key: str) -> int:
    """Epoch millis that the local calendar can represent."""
    if not _is_number(value):
        raise RecordValidationError(f"'time.{key}' must be a number")
    try:
        local_datetime(value)
    except (OverflowError, OSError, ValueError):
        raise RecordValidationError(f"'time.{key}' is out of range: {value}")
    return int(value)


def _parse_time(data: Dict[str, Any]) -> Dict[str, int]:
    """Extract created/updated/completed timestamps (epoch millis)."""
    time_data = data.get("time")
    if not isinstance(time_data, dict):
        raise RecordValidationError("'time' must be an object")

    times = {"created": _timestamp(time_data.get("created"), "created")}
    for key in ("updated", "completed"):
        value = time_data.get(key)
        if value is not None:
            times[key] = _timestamp(value, key)
    return times


def _parse_tokens(value: Any) -> Optional[TokenUsage]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise RecordValidationError("'tokens' must be an object")

    cache = value.get("cache") or {}
    if not isinstance(cache, dict):
        raise RecordValidationError("'tokens.cache' must be an object")

    return TokenUsage(
        input=_optional_count(value, "input"),
        output=_optional_count(value, "output"),
        reasoning=_optional_count(value, "reasoning"),
        cache_read=_optional_count(cache, "read"),
        cache_write=_optional_count(cache, "write"),
    )


def _build_session(data: Dict[str, Any]) -> SessionRecord:
    times = _parse_time(data)
    return SessionRecord(
        id=_require_str(data, "id"),
        project_id=_require_str(data, "projectID"),
        created_ms=times["created"],
        updated_ms=times.get("updated", times["created"]),
        directory=_optional_str(data, "directory"),
        title=_optional_str(data, "title"),
        version=_optional_str(data, "version"),
    )


def _build_message(data: Dict[str, Any]) -> MessageRecord:
    role = data.get("role")
    if role not in (ROLE_USER, ROLE_ASSISTANT):
        raise RecordValidationError(f"unknown role: {role!r}")

    cost = data.get("cost")
    if cost is not None and not _is_number(cost):
        raise RecordValidationError("'cost' must be a number")

    times = _parse_time(data)
    return MessageRecord(
        id=_require_str(data, "id"),
        session_id=_require_str(data, "sessionID"),
        role=role,
        created_ms=times["created"],
        model_id=_optional_str(data, "modelID"),
        provider_id=_optional_str(data, "providerID"),
        cost=float(cost) if cost is not None else None,
        tokens=_parse_tokens(data.get("tokens")),
        completed_ms=times.get("completed"),
        agent=_optional_str(data, "agent"),
        mode=_optional_str(data, "mode"),
    )


def _build_project(data: Dict[str, Any]) -> ProjectRecord:
    times = _parse_time(data)
    return ProjectRecord(
        id=_require_str(data, "id"),
        worktree=_require_str(data, "worktree"),
        created_ms=times["created"],
        updated_ms=times.get("updated", times["created"]),
        vcs=_optional_str(data, "vcs"),
    )


def _validate(builder: Callable[[Dict[str, Any]], Any], data: Any) -> ParseResult:
    if not isinstance(data, dict):
        return ParseResult(error="document is not a JSON object")
    try:
        return ParseResult(record=builder(data))
    except (ValueError, OverflowError) as e:
        # RecordValidationError included
        return ParseResult(error=str(e))


def parse_session(data: Any) -> ParseResult:
    """Validate a decoded session document."""
    return _validate(_build_session, data)


def parse_message(data: Any) -> ParseResult:
    """Validate a decoded message document."""
    return _validate(_build_message, data)


def parse_project(data: Any) -> ParseResult:
    """Validate a decoded project document."""
    return _validate(_build_project, data)


def parse_file(path: Path, parser: Callable[[Any], ParseResult]) -> ParseResult:
    """Read a JSON file and validate it with ``parser``.

    Args:
        path: File to read
        parser: One of parse_session, parse_message or parse_project

    Returns:
        ParseResult tagged with ``path``; never raises for unreadable or
        malformed files
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        return ParseResult(error=f"unreadable JSON: {e}", path=path)

    result = parser(data)
    return ParseResult(record=result.record, error=result.error, path=path)
