"""Telegram Mini App Schemas — response models for the launch and preference endpoints.

Invariants:
    - UserView is flat: identity fields plus the stored bpm, no envelope
    - Request bodies are urlencoded forms (initData, user_id, bpm), declared on the routes

Design Decisions:
    - Form fields over JSON bodies: the web app posts what Telegram.WebApp exposes as-is
"""

from pydantic import BaseModel


class UserView(BaseModel):
    """Launch response — who the user is and their current bpm."""
    user_id: int
    first_name: str
    username: str
    photo_url: str
    bpm: int


class PreferencesUpdated(BaseModel):
    success: bool = True
