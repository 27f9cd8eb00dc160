"""Pydantic Schemas — request validation at the API boundary.

Invariants:
    - Validation errors surface as 400 VALIDATION_ERROR (api/error_handlers.py)
"""
