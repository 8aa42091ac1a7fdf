"""Core Layer: pure marketplace rules, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, models/ or db/
    - Rule functions are pure and deterministic; violations raise core/errors.py types
"""
