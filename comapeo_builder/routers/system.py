from fastapi import APIRouter, Depends

from comapeo_builder.dependencies import get_build_api_client
from comapeo_builder.services.build_api import BuildApiClient

router = APIRouter(prefix="/system", tags=["System"])


@router.get("/health")
def read_health(client: BuildApiClient = Depends(get_build_api_client)):
    """
    Service status plus reachability of the build API.
    """
    build_api_ok = client.check_health()
    return {
        "status": "ok" if build_api_ok else "degraded",
        "build_api": {"url": client.base_url, "reachable": build_api_ok},
    }
