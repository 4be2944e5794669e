from datetime import datetime
from typing import Any, Mapping, Optional

import attrs
import orjson


def parse_correlation_id(path_params: Mapping[str, Any], names: tuple[str, ...]) -> Optional[int]:
    """First present path parameter among `names` as an integer; None when absent or not numeric."""
    for name in names:
        raw = path_params.get(name)
        if raw is None or raw == '':
            continue
        try:
            return int(str(raw).strip())
        except ValueError:
            return None
    return None


def extract_error_message(status: int, body: Optional[bytes]) -> Optional[str]:
    if status < 400 or not body:
        return None
    try:
        payload = orjson.loads(body)
    except orjson.JSONDecodeError:
        return None
    if isinstance(payload, dict) and isinstance(payload.get('message'), str):
        return payload['message']
    return None


def serialize_body(body: Optional[bytes], *, max_chars: Optional[int] = None) -> Optional[str]:
    """JSON bodies are stored compact, anything else as decoded text, empty as NULL.

    Text longer than `max_chars` is cut.
    """
    if not body:
        return None
    try:
        text = orjson.dumps(orjson.loads(body)).decode()
    except orjson.JSONDecodeError:
        text = body.decode('utf-8', errors='replace')
    if max_chars is not None and len(text) > max_chars:
        return text[:max_chars]
    return text


def serialize_headers(raw_headers: list[tuple[bytes, bytes]]) -> str:
    headers: dict[str, str] = {}
    for name, value in raw_headers:
        key = name.decode('latin-1').lower()
        text = value.decode('latin-1')
        headers[key] = f'{headers[key]}, {text}' if key in headers else text
    return orjson.dumps(headers).decode()


@attrs.define(frozen=True)
class AuditRecord:
    """One completed request/response cycle. Insert-only."""

    method: str
    path: str
    headers: str
    request_body: Optional[str]
    response_status: int
    response_body: Optional[str]
    request_timestamp: datetime
    response_timestamp: datetime
    duration_ms: int
    client_ip: Optional[str] = None
    user_agent: Optional[str] = None
    license_key: Optional[str] = attrs.field(default=None, repr=False)
    correlation_id: Optional[int] = None
    error_message: Optional[str] = None
