"""Infrastructure Layer — database sessions, logging setup, outbound Telegram calls.

Invariants:
    - Infrastructure never imports from services/ or api/
    - Outbound calls map failures to return values or DatabaseError, never raw driver errors
"""
