"""Services Layer — user store access and the launch-time user sync.

Invariants:
    - Services receive their AsyncSession/store explicitly (no module-level handles)
"""
