"""Service catalog - Business logic for the shop's bookable services"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Service
from .repository import ServiceRepository
from .schemas import ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)


class CatalogService:
    """Service layer for catalog management"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ServiceRepository()

    def list_services(self, include_inactive: bool = False) -> list[Service]:
        return self.repo.get_services(self.db, active_only=not include_inactive)

    def get_service(self, service_id: int) -> Service:
        service = self.repo.get_service_by_id(self.db, service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        return service

    def create_service(self, data: ServiceCreate) -> Service:
        service = self.repo.create_service(self.db, **data.model_dump())
        logger.info(f"✅ Service created: {service.name} ({service.duration_minutes} min)")
        return service

    def update_service(self, service_id: int, data: ServiceUpdate) -> Service:
        """Update a service; durations of already-booked appointments follow the new value"""
        service = self.get_service(service_id)
        updates = data.model_dump(exclude_unset=True)
        service = self.repo.update_service(self.db, service, **updates)
        logger.info(f"✅ Service {service_id} updated: {sorted(updates)}")
        return service
