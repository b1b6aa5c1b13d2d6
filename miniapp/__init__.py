"""Telegram Mini App backend — launch-data verification and user preference store.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
