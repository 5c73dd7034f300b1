"""
Service Catalog - the public services complaints are filed against

Listing is public; non-admin callers only ever see active services.
Mutations are admin-only and enforced by the endpoint dependencies.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List, Optional, Tuple
import logging

from app.core.exceptions import ConflictError, ServiceNotFoundError
from app.models.complaint import Complaint
from app.models.service import Service
from app.schemas.service import ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)


class ServiceCatalogService:
    """Service for managing the catalog"""

    async def list_services(
        self,
        db: AsyncSession,
        include_inactive: bool = False,
        category: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        per_page: int = 10
    ) -> Tuple[List[Service], int]:
        query = select(Service)
        if not include_inactive:
            query = query.where(Service.is_active.is_(True))
        if category:
            query = query.where(Service.category == category)
        if search:
            query = query.where(Service.name.ilike(f"%{search}%"))

        total = await db.scalar(select(func.count()).select_from(query.subquery()))
        result = await db.execute(
            query.order_by(Service.name.asc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        return list(result.scalars().all()), total or 0

    async def get_service(self, db: AsyncSession, service_id: str) -> Service:
        service = await db.get(Service, service_id)
        if not service:
            raise ServiceNotFoundError(service_id)
        return service

    async def categories(self, db: AsyncSession) -> List[str]:
        """Distinct non-empty categories, alphabetical"""
        result = await db.execute(
            select(Service.category)
            .where(Service.category.is_not(None), Service.category != "")
            .distinct()
            .order_by(Service.category)
        )
        return [row for row in result.scalars().all()]

    async def create_service(self, db: AsyncSession, data: ServiceCreate) -> Service:
        service = Service(**data.model_dump())
        db.add(service)
        await db.commit()
        await db.refresh(service)
        logger.info(f"[Catalog] Created service {service.id}: {service.name}")
        return service

    async def update_service(self, db: AsyncSession, service_id: str, data: ServiceUpdate) -> Service:
        service = await self.get_service(db, service_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field in ("name", "description", "is_active", "required_documents"):
                continue
            setattr(service, field, value)
        await db.commit()
        await db.refresh(service)
        logger.info(f"[Catalog] Updated service {service.id}")
        return service

    async def delete_service(self, db: AsyncSession, service_id: str) -> None:
        """
        Remove a service.

        Complaints are never deleted, so a service still referenced by one
        cannot go either; deactivate it instead.
        """
        service = await self.get_service(db, service_id)
        in_use = await db.scalar(
            select(func.count(Complaint.id)).where(Complaint.service_id == service.id)
        )
        if in_use:
            raise ConflictError("Service has complaints and cannot be deleted; deactivate it instead")

        await db.delete(service)
        await db.commit()
        logger.info(f"[Catalog] Deleted service {service_id}")


service_catalog_service = ServiceCatalogService()
