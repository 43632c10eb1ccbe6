# planexpiry/routers/__init__.py
"""
API routers.
"""

from planexpiry.routers.admin_expiry import router as admin_expiry_router

__all__ = ["admin_expiry_router"]
