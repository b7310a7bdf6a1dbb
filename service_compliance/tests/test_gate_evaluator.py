"""
Unit tests for the Compliance gate evaluator.
"""

import pytest
from unittest.mock import patch
from prometheus_client import CollectorRegistry

from service_compliance.app.gates.evaluator import GateEvaluator
from service_compliance.app.gates.models import (
    CommercialStatus, DatasetFlags, GateOutcome
)
from shared.config import BaseConfig
from shared.errors import ForbiddenFieldError, HardBlockError, MissingLicenseError
from shared.metrics import MetricsCollector
from shared.test_helpers import GateDataFactory, create_context


class TestGateEvaluator:
    """Test cases for GateEvaluator."""

    @pytest.fixture
    def registry(self):
        return CollectorRegistry()

    @pytest.fixture
    def evaluator(self, registry):
        """Create GateEvaluator instance with isolated metrics."""
        return GateEvaluator(metrics=MetricsCollector("compliance", registry))

    @pytest.fixture
    def record(self):
        return {"license_id": "lic-1", "value": 42}

    def test_admits_clean_record(self, evaluator, record):
        decision = evaluator.evaluate(record, create_context(source_name="BLS"))

        assert decision.outcome == GateOutcome.ADMITTED
        assert decision.record is record
        assert decision.displayable is True
        assert decision.reasons == []

    @pytest.mark.parametrize("status", [CommercialStatus.CONDITIONAL, CommercialStatus.DISALLOWED])
    def test_blocks_non_allowed_license_from_production(self, evaluator, record, status):
        decision = evaluator.evaluate(record, create_context(status=status))

        assert decision.outcome == GateOutcome.BLOCKED_FROM_PRODUCTION
        assert decision.blocked_from_production is True
        assert decision.storable is True
        assert decision.displayable is False
        assert f"commercial_status:{status.value}" in decision.reasons

    def test_unresolved_license_blocks_production(self, evaluator, record):
        decision = evaluator.evaluate(record, create_context(status=None))

        assert decision.outcome == GateOutcome.BLOCKED_FROM_PRODUCTION
        assert "license_unresolved" in decision.reasons

    def test_missing_license_snapshot_raises_when_enforced(self, registry):
        evaluator = GateEvaluator(
            metrics=MetricsCollector("compliance", registry),
            enforce_license_snapshot=True
        )

        with pytest.raises(MissingLicenseError):
            evaluator.evaluate({"value": 1}, create_context())

    def test_license_snapshot_not_enforced_by_default(self, evaluator):
        decision = evaluator.evaluate({"value": 1}, create_context())

        assert evaluator.enforce_license_snapshot is False
        assert decision.outcome == GateOutcome.ADMITTED

    def test_license_snapshot_optional_per_context(self):
        evaluator = GateEvaluator(enforce_license_snapshot=True)

        decision = evaluator.evaluate({"value": 1}, create_context(license_required=False))

        assert decision.outcome == GateOutcome.ADMITTED

    def test_snapshot_enforcement_follows_config(self, monkeypatch):
        monkeypatch.setenv("COMPLIANCE_ENFORCE_LICENSE_SNAPSHOT", "true")

        evaluator = GateEvaluator.from_config(BaseConfig())

        assert evaluator.enforce_license_snapshot is True
        with pytest.raises(MissingLicenseError):
            evaluator.evaluate({"value": 1}, create_context())

    def test_hard_block_takes_precedence(self, evaluator, registry):
        """A FRED source is refused before any other gate can run."""
        context = create_context(
            source_name="FRED",
            status=CommercialStatus.DISALLOWED,
            dataset_flags=DatasetFlags(third_party_flag=True),
            news_content=True,
        )

        with patch("service_compliance.app.gates.evaluator.require_license_snapshot") as mock_snapshot:
            with pytest.raises(HardBlockError):
                evaluator.evaluate({"article_body": "x"}, context)

            mock_snapshot.assert_not_called()

        assert registry.get_sample_value("hard_blocks_total", {"service": "compliance"}) == 1.0

    def test_geo_scoped_record_filtered(self, evaluator):
        context = create_context(geo_scoped=True, dataset_flags=DatasetFlags(unclear_license=True))

        dropped = evaluator.evaluate({"geo": "US", "license_id": "lic-1"}, context)
        kept = evaluator.evaluate({"geo": "eu", "license_id": "lic-1"}, context)

        assert dropped.outcome == GateOutcome.GEO_FILTERED
        assert dropped.storable is False
        assert "geo_not_allowed" in dropped.reasons
        assert kept.outcome == GateOutcome.QUARANTINED

    def test_geo_ignored_when_not_scoped(self, evaluator):
        decision = evaluator.evaluate({"geo": "US", "license_id": "lic-1"}, create_context())

        assert decision.outcome == GateOutcome.ADMITTED

    def test_quarantine_outranks_production_block(self, evaluator, record):
        context = create_context(
            status=CommercialStatus.CONDITIONAL,
            dataset_flags=DatasetFlags(restriction_notes="internal use only"),
        )

        decision = evaluator.evaluate(record, context)

        assert decision.outcome == GateOutcome.QUARANTINED
        assert decision.quarantined is True
        assert decision.blocked_from_production is True
        assert decision.storable is True
        assert decision.displayable is False
        assert "dataset_restricted" in decision.reasons

    def test_news_publisher_content_rejected(self, evaluator):
        context = create_context(source_name="GDELT", news_content=True)

        with pytest.raises(ForbiddenFieldError) as exc_info:
            evaluator.evaluate({"license_id": "lic-1", "publisher_headline": "x"}, context)

        assert exc_info.value.field == "publisher_headline"

    def test_news_check_skipped_for_non_news(self, evaluator):
        decision = evaluator.evaluate({"license_id": "lic-1", "body": "x"}, create_context())

        assert decision.outcome == GateOutcome.ADMITTED

    def test_decisions_are_counted(self, evaluator, registry, record):
        evaluator.evaluate(record, create_context())
        evaluator.evaluate(record, create_context(status=CommercialStatus.DISALLOWED))

        assert registry.get_sample_value(
            "gate_decisions_total", {"outcome": "admitted", "service": "compliance"}
        ) == 1.0
        assert registry.get_sample_value(
            "gate_decisions_total", {"outcome": "blocked_from_production", "service": "compliance"}
        ) == 1.0

    def test_works_without_metrics(self, record):
        decision = GateEvaluator().evaluate(record, create_context())

        assert decision.outcome == GateOutcome.ADMITTED


class TestGateEvaluatorBatch:
    """Test cases for batch evaluation."""

    @pytest.fixture
    def registry(self):
        return CollectorRegistry()

    @pytest.fixture
    def evaluator(self, registry):
        return GateEvaluator(metrics=MetricsCollector("compliance", registry))

    def test_rejected_item_does_not_abort_batch(self, evaluator, registry):
        items = GateDataFactory.create_news_items()
        context = create_context(source_name="GDELT", news_content=True)

        result = evaluator.evaluate_batch(items, context)

        assert [d.record["item_id"] for d in result.admitted] == ["n-1", "n-3"]
        assert len(result.rejected) == 1
        rejected = result.rejected[0]
        assert rejected.index == 1
        assert rejected.record["item_id"] == "n-2"
        assert rejected.error.code == "FORBIDDEN_FIELD"
        assert rejected.error.details["field"] == "article_body"
        assert registry.get_sample_value(
            "policy_violations_total", {"code": "FORBIDDEN_FIELD", "service": "compliance"}
        ) == 1.0

    def test_missing_license_rejects_single_item(self, registry):
        evaluator = GateEvaluator(
            metrics=MetricsCollector("compliance", registry),
            enforce_license_snapshot=True
        )
        items = [{"license_id": "lic-1"}, {"value": 2}, {"license_id": "lic-1"}]

        result = evaluator.evaluate_batch(items, create_context(source_name="ECB"))

        assert len(result.decisions) == 2
        assert result.rejected[0].index == 1
        assert result.rejected[0].error.code == "MISSING_LICENSE"

    def test_default_evaluator_geo_filters_plain_rows(self):
        """Rows without license references are geo-filtered, not rejected."""
        rows = [{"geo": "EU", "value": 1}, {"geo": "US", "value": 2}, {"geo": "EFTA", "value": 3}]

        result = GateEvaluator().evaluate_batch(rows, create_context(geo_scoped=True))

        assert result.storable == [{"geo": "EU", "value": 1}, {"geo": "EFTA", "value": 3}]
        assert [d.record["geo"] for d in result.geo_filtered] == ["US"]
        assert result.rejected == []

    def test_hard_block_aborts_batch_before_items(self, evaluator):
        items = GateDataFactory.create_eurostat_rows()

        with patch.object(evaluator, "_evaluate_record") as mock_evaluate:
            with pytest.raises(HardBlockError):
                evaluator.evaluate_batch(items, create_context(source_name="fred-mirror"))

            mock_evaluate.assert_not_called()

    def test_eurostat_batch(self, evaluator):
        rows = GateDataFactory.create_eurostat_rows()

        result = evaluator.evaluate_batch(rows, create_context(geo_scoped=True))

        assert [r["value"] for r in result.storable] == [1, 3, 5]
        assert len(result.geo_filtered) == 2
        assert result.summary()["admitted"] == 3

    def test_unexpected_errors_propagate(self, evaluator):
        with patch.object(evaluator, "_evaluate_record", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                evaluator.evaluate_batch([{"license_id": "x"}], create_context())

    def test_accepts_generators(self, evaluator):
        rows = ({"geo": g, "license_id": "l"} for g in ("EU", "US"))

        result = evaluator.evaluate_batch(rows, create_context(geo_scoped=True))

        assert len(result.decisions) == 2
        assert len(result.admitted) == 1
