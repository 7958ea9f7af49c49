"""Service catalog router - public listing and admin management"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_staff
from ...database import get_db
from ...models import StaffUser
from .schemas import ServiceCreate, ServiceResponse, ServiceUpdate
from .service import CatalogService

router = APIRouter(prefix="/services", tags=["Services"])
admin_router = APIRouter(prefix="/admin/services", tags=["Admin - Services"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


# ============================================================================
# PUBLIC
# ============================================================================


@router.get("", response_model=list[ServiceResponse])
async def list_active_services(service: CatalogService = Depends(get_catalog_service)):
    """Services customers can book"""
    return service.list_services()


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("", response_model=list[ServiceResponse])
async def list_all_services(
    include_inactive: bool = Query(True),
    current_staff: StaffUser = Depends(get_current_staff),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.list_services(include_inactive=include_inactive)


@admin_router.post("", response_model=ServiceResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    current_staff: StaffUser = Depends(get_current_staff),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create_service(data)


@admin_router.patch("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    current_staff: StaffUser = Depends(get_current_staff),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.update_service(service_id, data)
