"""Tests for the @traced_engine decorator and input fingerprints."""

from decimal import Decimal

from invoice_engines.tracer import compute_input_fingerprint, traced_engine
from tests.conftest import make_item


@traced_engine("sample", "2.1", fingerprint_fields=("amount", "items"))
def _sample_engine(amount, items=(), note=None):
    return amount


class TestFingerprint:
    def test_deterministic(self):
        args = {"amount": Decimal("1.50"), "items": [make_item()]}

        assert compute_input_fingerprint(("amount", "items"), args) == \
            compute_input_fingerprint(("amount", "items"), dict(args))

    def test_sensitive_to_values(self):
        first = compute_input_fingerprint(("items",), {"items": [make_item(unit_price="10")]})
        second = compute_input_fingerprint(("items",), {"items": [make_item(unit_price="11")]})

        assert first != second

    def test_dict_key_order_ignored(self):
        assert compute_input_fingerprint(("d",), {"d": {"a": 1, "b": 2}}) == \
            compute_input_fingerprint(("d",), {"d": {"b": 2, "a": 1}})

    def test_missing_field_is_null(self):
        assert len(compute_input_fingerprint(("absent",), {})) == 16


class TestTracedEngine:
    def test_returns_result(self):
        assert _sample_engine(Decimal("3")) == Decimal("3")

    def test_emits_trace(self, captured_logs):
        _sample_engine(Decimal("3"), items=[make_item()])

        trace = next(r for r in captured_logs() if r["message"] == "INVOICE_ENGINE_TRACE")
        assert trace["engine_name"] == "sample"
        assert trace["engine_version"] == "2.1"
        assert trace["duration_ms"] >= 0
        assert len(trace["input_fingerprint"]) == 16

    def test_positional_and_keyword_calls_match(self, captured_logs):
        item = make_item()
        _sample_engine(Decimal("3"), [item])
        _sample_engine(amount=Decimal("3"), items=[item])

        fingerprints = [
            r["input_fingerprint"]
            for r in captured_logs()
            if r["message"] == "INVOICE_ENGINE_TRACE"
        ]
        assert fingerprints[0] == fingerprints[1]

    def test_unfingerprinted_arguments_ignored(self, captured_logs):
        _sample_engine(Decimal("3"), note="a")
        _sample_engine(Decimal("3"), note="b")

        fingerprints = [
            r["input_fingerprint"]
            for r in captured_logs()
            if r["message"] == "INVOICE_ENGINE_TRACE"
        ]
        assert fingerprints[0] == fingerprints[1]
