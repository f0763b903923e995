# marketplace_api/models/__init__.py
"""
SQLAlchemy ORM models for database entities.
"""

from marketplace_api.models.lead import LEAD_STATUSES, Lead
from marketplace_api.models.seller_inquiry import INQUIRY_STATUSES, VEHICLE_TYPES, SellerInquiry

__all__ = [
    "Lead",
    "SellerInquiry",
    "LEAD_STATUSES",
    "INQUIRY_STATUSES",
    "VEHICLE_TYPES",
]
