"""
User Model.

Mirror of the Supabase ``profiles`` row (which extends ``auth.users``).
The ``id`` is the authenticated user's UUID and is the owner key every
repository query filters on.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from monetrix.models.enums import Currency, UserRole


class User(BaseModel):
    """Represents the signed-in user."""

    id: str  # Supabase UUID
    email: str = ""
    name: str = ""
    avatar_url: Optional[str] = None
    role: UserRole = UserRole.USER
    currency: Currency = Currency.BRL
    locale: str = "pt-BR"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
