import orjson
import pytest

from src.service.gateway.domain.entity.audit_record_entity import (
    extract_error_message,
    parse_correlation_id,
    serialize_body,
    serialize_headers,
)


PARAMS = ('confirmation_no', 'name_id')


@pytest.mark.unit
class TestCorrelationId:
    def test_confirmation_no(self) -> None:
        assert parse_correlation_id({'confirmation_no': '123'}, PARAMS) == 123

    def test_name_id(self) -> None:
        assert parse_correlation_id({'name_id': '77'}, PARAMS) == 77

    def test_absent_or_unparsable(self) -> None:
        assert parse_correlation_id({}, PARAMS) is None
        assert parse_correlation_id({'confirmation_no': 'abc'}, PARAMS) is None


@pytest.mark.unit
class TestErrorMessage:
    def test_copied_for_error_status(self) -> None:
        assert extract_error_message(404, b'{"error":"Not Found","message":"gone"}') == 'gone'

    def test_ignored_for_success(self) -> None:
        assert extract_error_message(200, b'{"message":"fine"}') is None

    def test_ignored_without_string_message(self) -> None:
        assert extract_error_message(500, b'{"message": 5}') is None
        assert extract_error_message(500, b'plain text') is None
        assert extract_error_message(500, b'') is None


@pytest.mark.unit
class TestSerialization:
    def test_json_body_is_compacted(self) -> None:
        assert serialize_body(b'{ "a" : 1 }') == '{"a":1}'

    def test_text_body_kept(self) -> None:
        assert serialize_body(b'hello') == 'hello'

    def test_empty_body_is_null(self) -> None:
        assert serialize_body(b'') is None

    def test_repeated_headers_are_joined(self) -> None:
        headers = serialize_headers([(b'Accept', b'a'), (b'accept', b'b'), (b'x-api-key', b'k')])

        assert orjson.loads(headers) == {'accept': 'a, b', 'x-api-key': 'k'}

    def test_long_body_is_cut(self) -> None:
        assert serialize_body(b'x' * 50, max_chars=10) == 'x' * 10
        assert serialize_body(b'{"a": 1}', max_chars=100) == '{"a":1}'
