"""HelpMarket Application Package: local-services marketplace backend.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
