# marketplace_api/schemas/seller_inquiry.py
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from marketplace_api.schemas.common import CamelModel
from marketplace_api.schemas.registry import RegistryRecord


class SellerInquiryOut(RegistryRecord):
    id: int
    name: str
    phone: str
    reg_no: str
    km_driven: float
    demand: float
    vehicle_type: str = Field(alias="type")

    photos: List[str] = Field(default_factory=list)
    rc_card: str = ""

    status: str
    notes: str = ""

    created_at: datetime
    updated_at: datetime


class SellerInquiryUpdate(CamelModel):
    """Administrative edit; only the supplied fields change."""

    status: Optional[Literal["new", "contacted", "completed", "rejected"]] = None
    notes: Optional[str] = Field(default=None, max_length=5000)
