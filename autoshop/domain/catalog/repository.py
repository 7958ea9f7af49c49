"""Service catalog repository - Database operations for shop services"""

from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ...models import Service


class ServiceRepository:
    """Repository for service catalog database operations"""

    @staticmethod
    def get_services(db: Session, active_only: bool = True) -> list[Service]:
        """Get catalog services ordered by name"""
        query = db.query(Service)
        if active_only:
            query = query.filter(Service.is_active.is_(True))
        return query.order_by(Service.name).all()

    @staticmethod
    def get_service_by_id(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_services_by_ids(db: Session, service_ids: Iterable[int]) -> list[Service]:
        """Get services for the given ids, active or not, in no particular order"""
        ids = list(set(service_ids))
        if not ids:
            return []
        return db.query(Service).filter(Service.id.in_(ids)).all()

    @staticmethod
    def get_durations(db: Session, service_ids: Iterable[int]) -> dict[int, int]:
        """Map service id -> duration in minutes, including inactive services"""
        return {
            service.id: service.duration_minutes
            for service in ServiceRepository.get_services_by_ids(db, service_ids)
        }

    @staticmethod
    def create_service(db: Session, **service_data) -> Service:
        service = Service(**service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def update_service(db: Session, service: Service, **updates) -> Service:
        """Update a service with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(service, key):
                setattr(service, key, value)

        db.commit()
        db.refresh(service)
        return service
