"""
ledger_ingestion -- Tally XML and spreadsheet import into the canonical ledger.

Pipeline: adapters (parse) -> mapping (normalize, validate, map) ->
services (identity resolution, reconciliation, staging workflow, import
lock, audit log).
"""
