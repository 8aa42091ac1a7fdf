"""Infrastructure Layer: database sessions, SQL repositories, payment gateway, logging.

Invariants:
    - Implements the Protocols in core/repository_protocols.py; core never imports from here
"""
