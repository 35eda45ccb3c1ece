"""
Business configuration API Routes.
"""

from fastapi import APIRouter

from ..services import get_services
from qualification.exceptions import ConfigurationError

router = APIRouter()


@router.get("/config")
async def get_business_config():
    """Active business configuration (read-only)."""
    services = get_services()
    if services.business_config is None:
        raise services.config_error or ConfigurationError(
            "Business configuration not loaded",
            remediation="Check BUSINESS_CONFIG_PATH and restart the service.",
        )
    return services.business_config.to_dict()
