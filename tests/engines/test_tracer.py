"""Tests for the engine tracer."""

from decimal import Decimal
from uuid import uuid4

from recon_engines.exits import ExitAggregator
from recon_engines.tracer import compute_input_fingerprint, traced_engine
from recon_kernel.domain.dtos import QtyValue


class TestInputFingerprint:
    def test_deterministic(self):
        kwargs = {"a": {"y": 1, "x": 2}, "b": [Decimal("1.0")]}
        assert compute_input_fingerprint(("a", "b"), kwargs) == compute_input_fingerprint(
            ("a", "b"), {"b": [Decimal("1.00")], "a": {"x": 2, "y": 1}}
        )

    def test_length(self):
        assert len(compute_input_fingerprint(("a",), {"a": 1})) == 16

    def test_changes_with_input(self):
        assert compute_input_fingerprint(("a",), {"a": QtyValue(Decimal("1"))}) != (
            compute_input_fingerprint(("a",), {"a": QtyValue(Decimal("2"))})
        )

    def test_missing_field_is_null(self):
        assert compute_input_fingerprint(("a",), {}) == compute_input_fingerprint(
            ("a",), {"a": None}
        )


class TestTracedEngine:
    def test_emits_trace(self, captured_logs):
        ExitAggregator().aggregate(lines=[], batch_ids=(uuid4(),))

        traces = [r for r in captured_logs() if r["message"] == "RECON_ENGINE_TRACE"]
        assert len(traces) == 1
        assert traces[0]["engine_name"] == "exits"
        assert traces[0]["engine_version"] == "1.0"
        assert len(traces[0]["input_fingerprint"]) == 16

    def test_returns_result_unchanged(self):
        @traced_engine("double", "0.1", fingerprint_fields=("x",))
        def double(*, x):
            return x * 2

        assert double(x=4) == 8
