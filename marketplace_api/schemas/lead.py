from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from marketplace_api.schemas.common import CamelModel


class LeadIn(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    phone: str = Field(min_length=1, max_length=32)
    source: Optional[str] = Field(default=None, max_length=100)


class LeadOut(CamelModel):
    id: int
    name: str
    phone: str
    source: str
    status: str
    notes: str = ""
    created_at: datetime
    updated_at: datetime


class LeadUpdate(CamelModel):
    status: Optional[Literal["new", "contacted", "converted", "closed"]] = None
    notes: Optional[str] = Field(default=None, max_length=5000)
