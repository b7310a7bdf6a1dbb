"""
Compliance Service package for the news ingestion pipeline.

This package decides, for every ingested record, whether it may be
stored, displayed, or must be blocked or quarantined because of
licensing, attribution or jurisdiction constraints. It provides:

- app.gates: Compliance rules, gate models and the evaluator that
  composes them into per-record and per-batch decisions.
- app.ratelimit: Limiters that throttle calls to regulated external
  data sources.

Guidelines:
- The gates are pure; they never perform I/O.
- Keep evaluation deterministic and observable (metrics + logs).
- Waiting and backoff after a refused acquire belong to the caller.
"""
