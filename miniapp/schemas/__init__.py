"""API Schemas — Pydantic models at the HTTP boundary.

Invariants:
    - Schemas never import ORM models; routes map between the two
"""
