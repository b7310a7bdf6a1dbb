"""
Compliance gate rules.

Each rule enforces one licensing, attribution or jurisdiction constraint
against a record or field set. Rules are pure: they either return a value
or raise a compliance error at the point of detection, and never log or
swallow a violation themselves.
"""

import hashlib
from typing import Any, Iterable, List, Mapping, Optional, Union

from shared.errors import ForbiddenFieldError, HardBlockError, MissingLicenseError
from .models import CommercialStatus, DatasetFlags


EUROSTAT_ALLOWED_GEO = frozenset({
    "EU",
    "EA",
    "EFTA",
    "AL",
    "BA",
    "MD",
    "ME",
    "MK",
    "RS",
    "TR",
    "UA",
})

# Scan order matters: the first present field is the one reported.
BANNED_NEWS_FIELDS = (
    "publisher_headline",
    "headline_original",
    "article_body",
    "body",
    "publisher_image",
    "image_url",
    "quote_text",
)

HARD_BLOCKED_SOURCE_MARKER = "FRED"
ECB_DERIVED_SUFFIX = "__DERIVED"


def _get(record: Any, key: str, default: Any = None) -> Any:
    """Read a field from a mapping or an attribute-style record."""
    if isinstance(record, Mapping):
        return record.get(key, default)
    return getattr(record, key, default)


def assert_no_fred(source_name: str) -> None:
    """Refuse any source whose name contains FRED, in any letter case."""
    if HARD_BLOCKED_SOURCE_MARKER in source_name.upper():
        raise HardBlockError(
            "FRED hard block: data ingestion/display is prohibited in production.",
            details={"source_name": source_name}
        )


def must_block_in_production(status: Union[CommercialStatus, str]) -> bool:
    """True unless the license is commercially ``allowed``.

    ``conditional`` and ``disallowed`` block alike; callers needing the
    distinction must inspect the status directly.
    """
    return CommercialStatus(status) != CommercialStatus.ALLOWED


def require_license_snapshot(record: Any) -> Any:
    if not _get(record, "license_id"):
        raise MissingLicenseError()
    return record


def filter_eurostat_rows_by_geo(rows: Iterable[Any]) -> List[Any]:
    """Keep rows whose ``geo`` is on the Eurostat allow-list, preserving order.

    Rows with a missing or empty ``geo`` are dropped.
    """
    kept = []
    for row in rows:
        geo = _get(row, "geo")
        if not geo:
            continue
        if str(geo).upper() in EUROSTAT_ALLOWED_GEO:
            kept.append(row)
    return kept


def should_quarantine_dataset(flags: Union[DatasetFlags, Mapping[str, Any], None]) -> bool:
    """True when the publisher declared any third-party or license restriction."""
    if flags is None:
        return False
    if isinstance(flags, Mapping):
        flags = DatasetFlags.from_mapping(flags)

    if flags.third_party_flag:
        return True

    if flags.unclear_license:
        return True

    notes = flags.restriction_notes
    if notes and notes.strip():
        return True

    return False


def ensure_news_metadata_only(item: Mapping[str, Any]) -> Mapping[str, Any]:
    """Reject feed items that carry publisher-owned content.

    A banned field counts only when the key exists with a non-null value.
    """
    for key in BANNED_NEWS_FIELDS:
        if key in item and item[key] is not None:
            raise ForbiddenFieldError(key)
    return item


def ecb_derived_series_id(raw_code: str) -> str:
    return f"{raw_code}{ECB_DERIVED_SUFFIX}"


def _sha256_hex(payload: Union[str, bytes]) -> str:
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def ecb_raw_unchanged(previous_raw: Union[str, bytes], next_raw: Union[str, bytes]) -> bool:
    """Raw ECB payloads are immutable; True when both payloads hash the same."""
    return _sha256_hex(previous_raw) == _sha256_hex(next_raw)


def sec_declared_user_agent(user_agent: Optional[str]) -> bool:
    """SEC fair-access check: User-Agent must name a company and a contact e-mail."""
    if not user_agent:
        return False
    has_email = "@" in user_agent
    has_company_text = len(user_agent.strip().split(" ")) >= 2
    return has_email and has_company_text
