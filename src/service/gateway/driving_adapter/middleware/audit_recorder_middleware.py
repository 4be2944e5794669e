"""
Audit Recorder (pure ASGI middleware)

Exactly one audit record per request that reaches completion, whatever the
downstream outcome, without altering the response:

- The request body is buffered up front and replayed downstream unchanged;
  bodies over the size limit are answered with a 413 envelope (still audited)
- Stored request and response bodies are cut to a bounded length
- `send` is wrapped: the status comes from `http.response.start`, body
  chunks are accumulated, and the completion hook fires once, after the
  final chunk has been handed to the server
- The hook schedules persistence as a background task and logs the request
- If downstream raises before a response started, the generic 500 envelope
  is sent (and audited) here; once started, the exception propagates
"""

import time
from datetime import datetime, timezone
from typing import Callable, Optional

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from src.platform.constant.route_constant import CORRELATION_PATH_PARAMS
from src.platform.exception.exception_handlers import INTERNAL_ERROR_MESSAGE, error_response
from src.platform.exception.exceptions import PayloadTooLargeError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.gateway_metrics import metrics
from src.service.gateway.app.command.record_audit_use_case import RecordAuditUseCase
from src.service.gateway.domain.entity.audit_record_entity import (
    AuditRecord,
    extract_error_message,
    parse_correlation_id,
    serialize_body,
    serialize_headers,
)
from src.service.gateway.driving_adapter.middleware.asgi_scope import client_host, header_value


CompletionHook = Callable[[int, bytes], None]


class ResponseCapture:
    """Wraps an ASGI `send`, observing the response as it is streamed out."""

    def __init__(
        self, send: Send, *, on_complete: CompletionHook, max_body_bytes: Optional[int] = None
    ) -> None:
        self._send = send
        self._on_complete = on_complete
        self._max_body_bytes = max_body_bytes
        self._chunks: list[bytes] = []
        self._captured = 0
        self._completed = False
        self.status: Optional[int] = None

    @property
    def started(self) -> bool:
        return self.status is not None

    async def send(self, message: Message) -> None:
        if message['type'] == 'http.response.start':
            self.status = message['status']
        elif message['type'] == 'http.response.body':
            self._keep(message.get('body', b''))

        await self._send(message)

        if (
            message['type'] == 'http.response.body'
            and not message.get('more_body', False)
            and not self._completed
        ):
            self._completed = True
            try:
                self._on_complete(self.status or 500, b''.join(self._chunks))
            except Exception as e:
                Logger.base.exception(f'❌ [Audit] Completion hook failed: {type(e).__name__}: {e}')

    def _keep(self, chunk: bytes) -> None:
        if self._max_body_bytes is not None:
            chunk = chunk[: max(self._max_body_bytes - self._captured, 0)]
        if chunk:
            self._chunks.append(chunk)
            self._captured += len(chunk)


async def buffer_request(
    receive: Receive, *, max_bytes: Optional[int] = None
) -> tuple[bytes, Receive]:
    """Read the whole request body; return it with a `receive` that replays it.

    Raises PayloadTooLargeError as soon as more than `max_bytes` have arrived.
    """
    chunks: list[bytes] = []
    pending: list[Message] = []
    size = 0
    while True:
        message = await receive()
        if message['type'] != 'http.request':
            pending.append(message)
            break
        chunk = message.get('body', b'')
        chunks.append(chunk)
        size += len(chunk)
        if max_bytes is not None and size > max_bytes:
            raise PayloadTooLargeError(max_bytes, received=b''.join(chunks)[:max_bytes])
        if not message.get('more_body', False):
            break

    body = b''.join(chunks)
    replayed = False

    async def replay() -> Message:
        nonlocal replayed
        if not replayed:
            replayed = True
            return {'type': 'http.request', 'body': body, 'more_body': False}
        if pending:
            return pending.pop(0)
        return await receive()

    return body, replay


def declared_length(scope: Scope) -> Optional[int]:
    raw = header_value(scope, 'content-length')
    if raw is None or not raw.strip().isdigit():
        return None
    return int(raw)


class AuditRecorderMiddleware:
    def __init__(
        self,
        app: ASGIApp,
        *,
        use_case_provider: Callable[[], RecordAuditUseCase],
        header_name: str,
        correlation_params: tuple[str, ...] = CORRELATION_PATH_PARAMS,
        max_request_body_bytes: Optional[int] = None,
        audit_body_max_chars: Optional[int] = None,
    ) -> None:
        self.app = app
        self.use_case_provider = use_case_provider
        self.header_name = header_name
        self.correlation_params = correlation_params
        self.max_request_body_bytes = max_request_body_bytes
        self.audit_body_max_chars = audit_body_max_chars

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope['type'] != 'http':
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        request_timestamp = datetime.now(timezone.utc)
        request_body = b''

        def on_complete(status: int, response_body: bytes) -> None:
            elapsed = time.perf_counter() - started
            duration_ms = int(round(elapsed * 1000))
            record = AuditRecord(
                method=scope['method'],
                path=scope['path'],
                headers=serialize_headers(scope.get('headers', [])),
                request_body=serialize_body(request_body, max_chars=self.audit_body_max_chars),
                response_status=status,
                response_body=serialize_body(response_body, max_chars=self.audit_body_max_chars),
                request_timestamp=request_timestamp,
                response_timestamp=datetime.now(timezone.utc),
                duration_ms=duration_ms,
                client_ip=client_host(scope),
                user_agent=header_value(scope, 'user-agent'),
                license_key=header_value(scope, self.header_name),
                correlation_id=parse_correlation_id(
                    scope.get('path_params', {}), self.correlation_params
                ),
                error_message=extract_error_message(status, response_body),
            )
            self.use_case_provider().schedule(record=record)
            metrics.record_request(method=record.method, status=status, duration_seconds=elapsed)
            Logger.base.info(f'{record.method} {record.path} - {status} ({duration_ms}ms)')

        capture = ResponseCapture(
            send, on_complete=on_complete, max_body_bytes=self.audit_body_max_chars
        )
        limit = self.max_request_body_bytes
        try:
            length = declared_length(scope)
            if limit is not None and length is not None and length > limit:
                raise PayloadTooLargeError(limit)
            request_body, replay = await buffer_request(receive, max_bytes=limit)
        except PayloadTooLargeError as e:
            request_body = e.received
            Logger.base.warning(f'⚠️ [HTTP] {scope["method"]} {scope["path"]}: {e.message}')
            response = error_response(status_code=e.status_code, message=e.message)
            await response(scope, receive, capture.send)
            return

        try:
            await self.app(scope, replay, capture.send)
        except Exception as e:
            if capture.started:
                raise
            Logger.base.exception(f'💥 [HTTP] Unhandled {type(e).__name__}: {e}')
            response = error_response(status_code=500, message=INTERNAL_ERROR_MESSAGE)
            await response(scope, replay, capture.send)
