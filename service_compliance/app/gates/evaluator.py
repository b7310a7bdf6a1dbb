"""
Gate evaluation engine for the Compliance Service.
"""

from typing import Any, Iterable, Optional

from shared.logging import get_logger
from shared.errors import HardBlockError, PolicyViolationError
from shared.metrics import MetricsCollector
from .models import (
    BatchResult, GateContext, GateDecision, GateOutcome, RejectedItem
)
from .rules import (
    assert_no_fred,
    ensure_news_metadata_only,
    filter_eurostat_rows_by_geo,
    must_block_in_production,
    require_license_snapshot,
    should_quarantine_dataset,
)


class GateEvaluator:
    """Applies the compliance rules to ingested records in a fixed order.

    1. hard source block
    2. optional license snapshot, then production commercial-status block
    3. geographic filter for geo-scoped sources
    4. dataset quarantine
    5. metadata-only check for third-party news

    Hard blocks and policy violations raise. Production block and
    quarantine are decision states, never errors.
    """

    def __init__(self, metrics: Optional[MetricsCollector] = None, enforce_license_snapshot: bool = False):
        self.logger = get_logger("compliance.gate_evaluator")
        self.metrics = metrics
        self.enforce_license_snapshot = enforce_license_snapshot

    @classmethod
    def from_config(cls, config, metrics: Optional[MetricsCollector] = None) -> "GateEvaluator":
        return cls(metrics=metrics, enforce_license_snapshot=config.enforce_license_snapshot)

    def evaluate(self, record: Any, context: GateContext) -> GateDecision:
        """Evaluate a single record."""
        self._check_source(context)
        decision = self._evaluate_record(record, context)
        if self.metrics:
            self.metrics.record_decision(decision.outcome.value)
        return decision

    def evaluate_batch(self, records: Iterable[Any], context: GateContext) -> BatchResult:
        """Evaluate a batch from one source.

        The source is checked once before any item, so a hard block aborts
        the whole batch. A policy violation rejects only the offending item.
        """
        self._check_source(context)

        result = BatchResult(source_name=context.source_name)
        if self.metrics:
            with self.metrics.time_operation("gate_batch_duration_seconds"):
                self._fill_batch(result, records, context)
        else:
            self._fill_batch(result, records, context)

        self.logger.info(
            "Batch evaluated",
            source_name=context.source_name,
            **result.summary()
        )
        return result

    def _fill_batch(self, result: BatchResult, records: Iterable[Any], context: GateContext) -> None:
        for index, record in enumerate(records):
            try:
                decision = self._evaluate_record(record, context)
            except PolicyViolationError as e:
                self.logger.warning(
                    "Record rejected",
                    source_name=context.source_name,
                    index=index,
                    code=e.code,
                    reason=e.message
                )
                if self.metrics:
                    self.metrics.record_policy_violation(e.code)
                result.rejected.append(RejectedItem(index=index, record=record, error=e.to_response()))
                continue

            if self.metrics:
                self.metrics.record_decision(decision.outcome.value)
            result.decisions.append(decision)

    def _check_source(self, context: GateContext) -> None:
        try:
            assert_no_fred(context.source_name)
        except HardBlockError:
            self.logger.error("Source hard blocked", source_name=context.source_name)
            if self.metrics:
                self.metrics.record_hard_block()
            raise

    def _evaluate_record(self, record: Any, context: GateContext) -> GateDecision:
        reasons = []

        if self.enforce_license_snapshot and context.license_required:
            require_license_snapshot(record)

        if context.license is None:
            blocked = True
            reasons.append("license_unresolved")
        else:
            blocked = must_block_in_production(context.license.commercial_status)
            if blocked:
                reasons.append(f"commercial_status:{context.license.commercial_status.value}")

        if context.geo_scoped and not filter_eurostat_rows_by_geo([record]):
            return GateDecision(
                record=record,
                outcome=GateOutcome.GEO_FILTERED,
                blocked_from_production=blocked,
                reasons=reasons + ["geo_not_allowed"]
            )

        quarantined = should_quarantine_dataset(context.dataset_flags)
        if quarantined:
            reasons.append("dataset_restricted")

        if context.news_content:
            ensure_news_metadata_only(record)

        if quarantined:
            outcome = GateOutcome.QUARANTINED
        elif blocked:
            outcome = GateOutcome.BLOCKED_FROM_PRODUCTION
        else:
            outcome = GateOutcome.ADMITTED

        decision = GateDecision(
            record=record,
            outcome=outcome,
            blocked_from_production=blocked,
            quarantined=quarantined,
            reasons=reasons
        )

        self.logger.debug(
            "Gate evaluation result",
            source_name=context.source_name,
            outcome=outcome.value,
            reasons=reasons
        )
        return decision
