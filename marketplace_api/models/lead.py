# marketplace_api/models/lead.py
from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, Enum, String, Text

from marketplace_api.db.base import Base

LEAD_STATUSES = ("new", "contacted", "converted", "closed")


class Lead(Base):
    __tablename__ = "leads"

    name = Column(String(200), nullable=False)
    phone = Column(String(32), nullable=False, unique=True)
    source = Column(String(100), nullable=False, default="welcome_popup", server_default="welcome_popup")

    status = Column(Enum(*LEAD_STATUSES, name="lead_status"), nullable=False, default="new", server_default="new")
    notes = Column(Text, nullable=False, default="")

    __table_args__ = (
        CheckConstraint("length(phone) > 0", name="check_phone_not_empty"),
    )
