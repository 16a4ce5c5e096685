"""Pydantic schemas for the Settings module."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SettingUpdateRequest(BaseModel):
    value: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None


class SettingResponse(BaseModel):
    """Response with setting details."""

    key: str
    value: str
    description: Optional[str]
    updated_by: Optional[UUID]
    updated_at: str
