"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Valuation math and models are pure and deterministic

Design Decisions:
    - Functional core, imperative shell: providers, Redis and the database are
      reached only from services/ and infrastructure/
"""
