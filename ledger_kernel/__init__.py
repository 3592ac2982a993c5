"""
ledger_kernel -- canonical customer ledger, persistence and shared infrastructure.

Holds the ORM models every import path reconciles into (customers, ledger
entries, bills, payments, invoices, products), the engine/session layer,
read-only selectors, structured logging, the typed exception hierarchy and
the injectable clock. Nothing in here knows about file formats.
"""
