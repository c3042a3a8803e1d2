"""API routers."""

from folio.routers.attachments import router as attachments_router
from folio.routers.health import router as health_router

__all__ = [
    "attachments_router",
    "health_router",
]
