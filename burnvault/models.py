"""Records and results exchanged between the store and its backends."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SecretRecord(BaseModel):
    """A stored secret. Only ciphertext is ever persisted."""

    public_id: str = Field(min_length=1)
    ciphertext: bytes = Field(repr=False)
    max_views: int = Field(ge=1)
    remaining_views: int = Field(ge=0)
    expires_at: Optional[datetime] = None

    model_config = {"frozen": True}

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now

    def has_remaining_views(self) -> bool:
        return self.remaining_views > 0


class RetrievedSecret(BaseModel):
    """Result of a successful retrieval."""

    text: str = Field(repr=False)
    remaining_views: int


class SecretInfo(BaseModel):
    """Non-consuming view of a live secret, without its content."""

    public_id: str
    max_views: int
    remaining_views: int
    expires_at: Optional[datetime] = None
