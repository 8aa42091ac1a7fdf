"""Services Layer: the async shell around core/ rules.

Invariants:
    - Each service loads through a Protocol, checks with a pure core/ function,
      persists, then runs side effects (notifications, rating recompute)
    - Services are wired by constructor injection (api/dependencies.py)

Design Decisions:
    - One service per aggregate; cross-aggregate writes go through the owning
      service (EscrowPaymentFlow -> JobLifecycle.mark_paid / mark_released)
"""
