"""
app/api/routers package marker.
"""

from app.api.routers.kpi_upload import router as kpi_upload_router
from app.api.routers.kpi_vault import router as kpi_vault_router

__all__ = [
    "kpi_upload_router",
    "kpi_vault_router",
]
