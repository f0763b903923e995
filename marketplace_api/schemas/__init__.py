# marketplace_api/schemas/__init__.py
"""
Pydantic schemas for request/response validation and serialization.
"""

from marketplace_api.schemas.common import CamelModel, envelope
from marketplace_api.schemas.lead import LeadIn, LeadOut, LeadUpdate
from marketplace_api.schemas.registry import REGISTRY_FIELDS, RegistryLookupOut, RegistryRecord
from marketplace_api.schemas.seller_inquiry import SellerInquiryOut, SellerInquiryUpdate

__all__ = [
    "CamelModel",
    "envelope",
    "LeadIn",
    "LeadOut",
    "LeadUpdate",
    "REGISTRY_FIELDS",
    "RegistryLookupOut",
    "RegistryRecord",
    "SellerInquiryOut",
    "SellerInquiryUpdate",
]
