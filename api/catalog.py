"""Catalog, customer and company-settings routes."""

from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import success_response
from core.errors import NotFoundError
from core.models import (
    CompanyUpdate,
    CustomerCreate,
    CustomerUpdate,
    ItemCreate,
    ItemUpdate,
)


def create_catalog_router(services: dict) -> APIRouter:
    router = APIRouter()

    catalog_svc = services["catalog"]
    customer_svc = services["customer"]
    company_svc = services["company"]

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    @router.get("/items")
    async def list_items(
        request: Request,
        category: str | None = Query(None),
        limit: int = Query(100, ge=1, le=500),
        offset: int = Query(0, ge=0),
    ):
        items = catalog_svc.list(category=category, limit=limit, offset=offset)
        return success_response(
            [i.model_dump(mode="json") for i in items], request
        ).model_dump(mode="json")

    @router.get("/items/{item_id}")
    async def get_item(request: Request, item_id: UUID):
        item = catalog_svc.get_by_id(item_id)
        if item is None:
            raise NotFoundError("Item", item_id)
        return success_response(item.model_dump(mode="json"), request).model_dump(mode="json")

    @router.post("/items", status_code=201)
    async def create_item(request: Request, body: ItemCreate):
        item = catalog_svc.create(body)
        return success_response(item.model_dump(mode="json"), request).model_dump(mode="json")

    @router.put("/items/{item_id}")
    async def update_item(request: Request, item_id: UUID, body: ItemUpdate):
        item = catalog_svc.update(item_id, body)
        return success_response(item.model_dump(mode="json"), request).model_dump(mode="json")

    @router.delete("/items/{item_id}")
    async def delete_item(request: Request, item_id: UUID):
        catalog_svc.delete(item_id)
        return success_response({"deleted": str(item_id)}, request).model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Customers
    # -------------------------------------------------------------------------

    @router.get("/customers")
    async def list_customers(
        request: Request,
        limit: int = Query(100, ge=1, le=500),
        offset: int = Query(0, ge=0),
    ):
        customers = customer_svc.list(limit=limit, offset=offset)
        return success_response(
            [c.model_dump(mode="json") for c in customers], request
        ).model_dump(mode="json")

    @router.get("/customers/{customer_id}")
    async def get_customer(request: Request, customer_id: UUID):
        customer = customer_svc.get_by_id(customer_id)
        if customer is None:
            raise NotFoundError("Customer", customer_id)
        return success_response(customer.model_dump(mode="json"), request).model_dump(mode="json")

    @router.post("/customers", status_code=201)
    async def create_customer(request: Request, body: CustomerCreate):
        customer = customer_svc.create(body)
        return success_response(customer.model_dump(mode="json"), request).model_dump(mode="json")

    @router.put("/customers/{customer_id}")
    async def update_customer(request: Request, customer_id: UUID, body: CustomerUpdate):
        customer = customer_svc.update(customer_id, body)
        return success_response(customer.model_dump(mode="json"), request).model_dump(mode="json")

    @router.delete("/customers/{customer_id}")
    async def delete_customer(request: Request, customer_id: UUID):
        customer_svc.delete(customer_id)
        return success_response({"deleted": str(customer_id)}, request).model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Company settings
    # -------------------------------------------------------------------------

    @router.get("/company")
    async def get_company(request: Request):
        company = company_svc.get()
        return success_response(company.model_dump(mode="json"), request).model_dump(mode="json")

    @router.put("/company")
    async def update_company(request: Request, body: CompanyUpdate):
        company = company_svc.update(body)
        return success_response(company.model_dump(mode="json"), request).model_dump(mode="json")

    return router
