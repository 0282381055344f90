"""Audit record extractor: pull the JSON payload out of a raw log line."""

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

RFC3339_PATTERN = re.compile(
    r"\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})"
)


@dataclass(frozen=True)
class AuditEvent:
    timestamp: datetime
    error: str
    path: str = ""
    remote_address: str = ""
    namespace: str = ""
    operation: str = ""


def parse_timestamp(text: str) -> datetime:
    """Parse an RFC3339 timestamp. Anything unusable becomes ZERO_TIME."""
    if not RFC3339_PATTERN.fullmatch(text):
        return ZERO_TIME
    if text[-1] in "Zz":
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return ZERO_TIME
    if parsed.tzinfo is None:
        return ZERO_TIME
    return parsed


def _string_field(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"field {key!r} is {type(value).__name__}, not str")
    return value


def _object_field(data: dict, key: str) -> dict:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"field {key!r} is {type(value).__name__}, not object")
    return value


def extract_event(line: str) -> AuditEvent | None:
    """Decode the payload starting at the first '{' in *line*.

    Returns None for lines without a payload, undecodable payloads, and
    events whose error field is empty.
    """
    start = line.find("{")
    if start == -1:
        return None

    try:
        data = json.loads(line[start:])
        if not isinstance(data, dict):
            raise TypeError("payload is not an object")
        error = _string_field(data, "error")
        timestamp = _string_field(data, "time")
        request = _object_field(data, "request")
        namespace = _object_field(request, "namespace")
        event = AuditEvent(
            timestamp=parse_timestamp(timestamp),
            error=error,
            path=_string_field(request, "path"),
            remote_address=_string_field(request, "remote_address"),
            namespace=_string_field(namespace, "path"),
            operation=_string_field(request, "operation"),
        )
    except (json.JSONDecodeError, TypeError, RecursionError) as e:
        logger.debug("Skipping undecodable line: %s", e)
        return None

    if not event.error:
        return None
    return event
