"""Core Layer — launch-data verification, identity decoding, error types.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - No IO, no async, no DB

Design Decisions:
    - Functional core separated from the imperative shell: the verifier is testable
      with fixed vectors and no store or network
"""
