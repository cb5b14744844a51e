"""Inventory data models."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field

ID_MAX_LENGTH = 36
PATH_MAX_LENGTH = 1024
CONTENT_HASH_MAX_LENGTH = 32


def _now() -> datetime:
    return datetime.now(timezone.utc)


def new_record_id() -> str:
    """Return a fresh opaque identifier for an inventory record."""
    return str(uuid.uuid4())


class InventoryRecord(BaseModel):
    """A previously indexed library file."""

    id: str = Field(default_factory=new_record_id)
    path: str
    content_hash: str
    size_bytes: int
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class InventoryState(BaseModel):
    """Serialized form of the inventory file."""

    version: int = 1
    records: List[InventoryRecord] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=_now)


__all__ = [
    "CONTENT_HASH_MAX_LENGTH",
    "ID_MAX_LENGTH",
    "PATH_MAX_LENGTH",
    "InventoryRecord",
    "InventoryState",
    "new_record_id",
]
