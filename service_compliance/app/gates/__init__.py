"""
Compliance gates package.

Defines the gate models, the catalog of compliance rules and the
evaluator that applies them in a fixed order, returning an
admit/block/quarantine decision with reasons for observability.

Modules of interest:
- models: License, dataset flag, context and decision types.
- rules: Independent predicates and transforms, one per policy.
- evaluator: Fixed-order composition over records and batches.
"""

from .evaluator import GateEvaluator
from .models import (
    BatchResult,
    CommercialStatus,
    DatasetFlags,
    GateContext,
    GateDecision,
    GateOutcome,
    LicenseRecord,
    RejectedItem,
    load_license_record,
)

__all__ = [
    "BatchResult",
    "CommercialStatus",
    "DatasetFlags",
    "GateContext",
    "GateDecision",
    "GateEvaluator",
    "GateOutcome",
    "LicenseRecord",
    "RejectedItem",
    "load_license_record",
]
