"""Pydantic Schemas: request/response validation for API endpoints.

Invariants:
    - Schemas validate shape at the system boundary; business rules stay in core/
    - Response schemas read ORM rows directly (from_attributes)

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
