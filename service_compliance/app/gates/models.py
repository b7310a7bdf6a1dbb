"""
Gate data models for the Compliance Service.
"""

from typing import Dict, Any, Optional, List, Mapping
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, HttpUrl
from pydantic import ValidationError as PydanticValidationError

from shared.errors import ErrorResponse, LicenseValidationError


class CommercialStatus(str, Enum):
    """Commercial use status attached to a license."""
    ALLOWED = "allowed"
    CONDITIONAL = "conditional"
    DISALLOWED = "disallowed"


class GateOutcome(str, Enum):
    """Per-record gate outcome."""
    ADMITTED = "admitted"
    BLOCKED_FROM_PRODUCTION = "blocked_from_production"
    QUARANTINED = "quarantined"
    GEO_FILTERED = "geo_filtered"


class LicenseRecord(BaseModel):
    """License metadata for a data source. Immutable once validated."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., min_length=1, description="License code")
    commercial_status: CommercialStatus = Field(..., description="Commercial use status")
    attribution_required: bool = Field(False, description="Whether attribution must be displayed")
    attribution_template: Optional[str] = Field(None, description="Attribution text template")
    policy_url: Optional[HttpUrl] = Field(None, description="Provider policy page")


def load_license_record(payload: Mapping[str, Any]) -> LicenseRecord:
    """Validate raw license metadata into a LicenseRecord."""
    try:
        return LicenseRecord.model_validate(dict(payload))
    except PydanticValidationError as e:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]) or "<root>", "message": err["msg"]}
            for err in e.errors()
        ]
        raise LicenseValidationError(
            f"Invalid license record: {len(errors)} error(s)",
            details={"errors": errors}
        ) from e


@dataclass(frozen=True)
class DatasetFlags:
    """Publisher-declared dataset restrictions."""
    third_party_flag: bool = False
    unclear_license: bool = False
    restriction_notes: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DatasetFlags":
        notes = data.get("restriction_notes")
        return cls(
            third_party_flag=bool(data.get("third_party_flag", False)),
            unclear_license=bool(data.get("unclear_license", False)),
            restriction_notes=None if notes is None else str(notes),
        )


@dataclass
class GateContext:
    """Source and dataset context a record is evaluated under."""
    source_name: str
    license: Optional[LicenseRecord] = None
    dataset_flags: Optional[DatasetFlags] = None
    geo_scoped: bool = False
    news_content: bool = False
    license_required: bool = True


@dataclass
class GateDecision:
    """Result of evaluating one record."""
    record: Any
    outcome: GateOutcome
    blocked_from_production: bool = False
    quarantined: bool = False
    reasons: List[str] = field(default_factory=list)

    @property
    def storable(self) -> bool:
        return self.outcome != GateOutcome.GEO_FILTERED

    @property
    def displayable(self) -> bool:
        return self.outcome == GateOutcome.ADMITTED


@dataclass
class RejectedItem:
    """Batch item rejected by a record-level policy violation."""
    index: int
    record: Any
    error: ErrorResponse


@dataclass
class BatchResult:
    """Result of evaluating a batch from a single source."""
    source_name: str
    decisions: List[GateDecision] = field(default_factory=list)
    rejected: List[RejectedItem] = field(default_factory=list)

    def _with_outcome(self, outcome: GateOutcome) -> List[GateDecision]:
        return [d for d in self.decisions if d.outcome == outcome]

    @property
    def admitted(self) -> List[GateDecision]:
        return self._with_outcome(GateOutcome.ADMITTED)

    @property
    def quarantined(self) -> List[GateDecision]:
        return self._with_outcome(GateOutcome.QUARANTINED)

    @property
    def blocked_from_production(self) -> List[GateDecision]:
        return self._with_outcome(GateOutcome.BLOCKED_FROM_PRODUCTION)

    @property
    def geo_filtered(self) -> List[GateDecision]:
        return self._with_outcome(GateOutcome.GEO_FILTERED)

    @property
    def storable(self) -> List[Any]:
        """Records that may be persisted, in input order."""
        return [d.record for d in self.decisions if d.storable]

    def summary(self) -> Dict[str, int]:
        counts = {outcome.value: 0 for outcome in GateOutcome}
        for decision in self.decisions:
            counts[decision.outcome.value] += 1
        counts["rejected"] = len(self.rejected)
        return counts
