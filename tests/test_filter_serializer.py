"""Filter token encoding: URL-safe, reversible, never raises on bad input."""

import base64
import json

import pytest

from crm.app.schemas.analytics import FilterRow
from crm.app.services.filters.serializer import deserialize_filters, serialize_filters


def _encode(payload) -> str:
    return base64.urlsafe_b64encode(json.dumps(payload).encode()).decode().rstrip("=")


ROWS = [
    FilterRow(id="r1", field="status", operator="in", value="NEW,CONTACTED"),
    FilterRow(id="r2", field="score", operator="between", value="10", value2="90"),
    FilterRow(id="r3", field="tags", operator="contains", value="vip/ünïcode?&="),
    FilterRow(id="r4", field="createdAt", operator="last7days"),
]


class TestRoundTrip:
    def test_rows_survive(self):
        assert deserialize_filters(serialize_filters(ROWS)) == ROWS

    def test_token_is_url_safe(self):
        token = serialize_filters(ROWS)
        assert not set(token) & {"+", "/", "="}

    def test_empty_list_matches_absent_token(self):
        assert deserialize_filters(serialize_filters([])) == []
        assert deserialize_filters(None) == []
        assert deserialize_filters("") == []

    def test_unknown_operator_is_kept_for_the_compiler(self):
        rows = [FilterRow(id="r1", field="status", operator="gt", value="NEW")]
        assert deserialize_filters(serialize_filters(rows)) == rows

    def test_padded_token_accepted(self):
        padded = base64.urlsafe_b64encode(json.dumps([{"id": "a", "field": "score", "operator": "gt", "value": "5"}]).encode())
        rows = deserialize_filters(padded.decode())
        assert [r.id for r in rows] == ["a"]


class TestResilience:
    @pytest.mark.parametrize(
        "token",
        [
            "not base64 at all!!",
            "%%%",
            "a",
            "ünïcode",
            _encode({"id": "r1"}),
            _encode("string"),
            _encode(None),
            _encode(42),
            base64.urlsafe_b64encode(b"{not json").decode(),
            base64.urlsafe_b64encode(b"\xff\xfe\xfd").decode(),
            _encode([[[[[]]]]]),
        ],
    )
    def test_garbage_yields_empty_list(self, token):
        assert deserialize_filters(token) == []

    def test_deep_nesting_does_not_raise(self):
        token = base64.urlsafe_b64encode(b"[" * 100000 + b"]" * 100000).decode()
        assert deserialize_filters(token) == []

    def test_malformed_rows_are_dropped(self):
        token = _encode(
            [
                {"id": "ok", "field": "score", "operator": "gt", "value": "5"},
                {"id": "bad-field", "field": "password", "operator": "equals", "value": "x"},
                {"field": "score", "operator": "gt"},
                "row",
            ]
        )
        assert [r.id for r in deserialize_filters(token)] == ["ok"]
