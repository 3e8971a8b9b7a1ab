"""API v1 router aggregator.

All v1 endpoint routers are included here, mounted at /api/v1.
"""

from fastapi import APIRouter

from falcon_core.api.v1 import monitoring, portal_auth

router = APIRouter()

# =============================================================================
# Customer portal authentication
# =============================================================================

router.include_router(portal_auth.router, prefix="/portal-auth", tags=["portal-auth"])

# =============================================================================
# Monitoring dashboard (admin)
# =============================================================================

router.include_router(monitoring.router, prefix="/monitoring", tags=["monitoring"])
