"""
Service Catalog Endpoints

Public:
- GET /services - list (active only unless the caller is an admin)
- GET /services/{service_id}
- GET /services-categories - distinct categories

Admin:
- POST /services, PUT /services/{service_id}, DELETE /services/{service_id}
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.config import settings
from app.core.database import get_db
from app.modules.auth.access import Requester
from app.modules.auth.dependencies import get_admin_requester, get_optional_requester
from app.schemas.common import MAX_PAGE, Page, success_response
from app.schemas.service import ServiceCreate, ServiceUpdate, ServiceResponse
from app.services.service_catalog_service import service_catalog_service

router = APIRouter(tags=["Services"])


@router.get("/services")
async def list_services(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    requester: Optional[Requester] = Depends(get_optional_requester),
    db: AsyncSession = Depends(get_db)
):
    per_page = settings.SERVICES_PAGE_SIZE
    services, total = await service_catalog_service.list_services(
        db,
        include_inactive=bool(requester and requester.is_admin),
        category=category,
        search=search,
        page=page,
        per_page=per_page,
    )
    items = [ServiceResponse.model_validate(s) for s in services]
    return success_response(Page.build(items, total, page, per_page))


@router.get("/services-categories")
async def list_categories(db: AsyncSession = Depends(get_db)):
    return success_response(await service_catalog_service.categories(db))


@router.get("/services/{service_id}")
async def get_service(service_id: str, db: AsyncSession = Depends(get_db)):
    service = await service_catalog_service.get_service(db, service_id)
    return success_response(ServiceResponse.model_validate(service))


@router.post("/services", status_code=status.HTTP_201_CREATED)
async def create_service(
    data: ServiceCreate,
    requester: Requester = Depends(get_admin_requester),
    db: AsyncSession = Depends(get_db)
):
    service = await service_catalog_service.create_service(db, data)
    return success_response(ServiceResponse.model_validate(service), message="Service created successfully")


@router.put("/services/{service_id}")
async def update_service(
    service_id: str,
    data: ServiceUpdate,
    requester: Requester = Depends(get_admin_requester),
    db: AsyncSession = Depends(get_db)
):
    service = await service_catalog_service.update_service(db, service_id, data)
    return success_response(ServiceResponse.model_validate(service), message="Service updated successfully")


@router.delete("/services/{service_id}")
async def delete_service(
    service_id: str,
    requester: Requester = Depends(get_admin_requester),
    db: AsyncSession = Depends(get_db)
):
    await service_catalog_service.delete_service(db, service_id)
    return success_response(message="Service deleted successfully")
