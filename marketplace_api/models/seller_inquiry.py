# marketplace_api/models/seller_inquiry.py
from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Boolean, Column, Enum, Float, Index, String, Text, false

from marketplace_api.db.base import Base

VEHICLE_TYPES = ("car", "bike", "commercial")
INQUIRY_STATUSES = ("new", "contacted", "completed", "rejected")


def _registry_text() -> Column:
    # Upstream value lengths are not under our control
    return Column(Text, nullable=False, default="", server_default="")


class SellerInquiry(Base):
    __tablename__ = "seller_inquiries"

    # Submitted by the seller
    name = Column(String(200), nullable=False)
    phone = Column(String(32), nullable=False)
    reg_no = Column(String(20), nullable=False)
    km_driven = Column(Float, nullable=False)
    demand = Column(Float, nullable=False)  # asking price
    vehicle_type = Column(Enum(*VEHICLE_TYPES, name="vehicle_type"), nullable=False, default="car", server_default="car")

    # Media, written by enrichment
    photos = Column(JSON, nullable=False, default=list)
    rc_card = Column(Text, nullable=False, default="", server_default="")

    # Registry details, written by enrichment
    make = _registry_text()
    model = _registry_text()
    variant = _registry_text()
    variant_display_name = _registry_text()
    year = _registry_text()
    regn_year = _registry_text()
    color = _registry_text()
    body_type = _registry_text()

    fuel_type = _registry_text()
    raw_fuel_type = _registry_text()
    transmission_type = _registry_text()

    registered_place = _registry_text()
    registered_at = _registry_text()
    vehicle_category = _registry_text()
    vehicle_class_desc = _registry_text()
    rc_model = _registry_text()
    rc_status = _registry_text()
    rc_owner_count = _registry_text()
    rc_owner_name_masked = _registry_text()

    insurance_company = _registry_text()
    insurance_up_to = _registry_text()
    fitness_up_to = _registry_text()
    puc_up_to = _registry_text()
    tax_up_to = _registry_text()

    hypothecation = Column(Boolean, nullable=False, default=False, server_default=false())
    financier = _registry_text()
    rto_noc_issued = _registry_text()

    manufacturing_month_yr = _registry_text()
    unladen_wt = _registry_text()
    seat_cap = _registry_text()

    # Administrative
    status = Column(Enum(*INQUIRY_STATUSES, name="seller_inquiry_status"), nullable=False, default="new", server_default="new")
    notes = Column(Text, nullable=False, default="")

    __table_args__ = (
        Index("idx_seller_inquiries_reg_no", "reg_no"),
        Index("idx_seller_inquiries_status_created", "status", "created_at"),
    )

    @classmethod
    def new(cls, **values: Any) -> "SellerInquiry":
        """Build an instance with every column default applied up front."""
        row: dict[str, Any] = {}
        for column in cls.__table__.columns:
            default = column.default
            if column.primary_key or default is None:
                continue
            if default.is_scalar:
                row[column.key] = default.arg
            elif default.is_callable:
                row[column.key] = default.arg(None)
        row.update(values)
        return cls(**row)
