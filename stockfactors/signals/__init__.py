"""L3 — Factor detection, daily scoring, aggregation and transaction enrichment."""
