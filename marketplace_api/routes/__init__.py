# marketplace_api/routes/__init__.py
"""
API route handlers organized by domain.
"""

from marketplace_api.routes.health import router as health_router
from marketplace_api.routes.leads import router as leads_router
from marketplace_api.routes.seller_inquiries import router as seller_inquiries_router

__all__ = [
    "health_router",
    "leads_router",
    "seller_inquiries_router",
]
