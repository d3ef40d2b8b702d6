"""Sprint schemas."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic import Field, field_validator

from .common import CamelModel, SprintState


class SprintField(str, Enum):
    NAME = "name"
    GOAL = "goal"
    STATE = "state"
    START_DATE = "startDate"
    END_DATE = "endDate"


class SprintCreate(CamelModel):
    meridian_id: UUID
    name: str = Field(..., max_length=100)
    goal: Optional[str] = None
    state: SprintState = SprintState.PLANNING
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v


class SprintFieldUpdate(CamelModel):
    field: SprintField
    value: Any = None


class SprintRead(CamelModel):
    id: UUID
    meridian_id: UUID
    name: str
    goal: Optional[str] = None
    state: SprintState
    start_date: Optional[date] = None
    end_date: Optional[date] = None
