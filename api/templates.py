"""Job template routes."""

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel

from api.base import success_response
from core.errors import NotFoundError
from core.models import TemplateCreate, TemplateItemCreate, TemplateUpdate


class DefaultQuantityUpdate(BaseModel):
    default_quantity: Decimal


def create_templates_router(services: dict) -> APIRouter:
    router = APIRouter()

    template_svc = services["template"]

    def _template(request: Request, template) -> dict:
        data = template.model_dump(mode="json")
        data["phases"] = [p.model_dump(mode="json") for p in template.ordered_phases]
        return success_response(data, request).model_dump(mode="json")

    @router.get("/templates")
    async def list_templates(
        request: Request,
        active_only: bool = Query(False),
        limit: int = Query(100, ge=1, le=500),
        offset: int = Query(0, ge=0),
    ):
        templates = template_svc.list(active_only=active_only, limit=limit, offset=offset)
        return success_response(
            [t.model_dump(mode="json") for t in templates], request
        ).model_dump(mode="json")

    @router.get("/templates/{template_id}")
    async def get_template(request: Request, template_id: UUID):
        template = template_svc.get_by_id(template_id)
        if template is None:
            raise NotFoundError("Template", template_id)
        return _template(request, template)

    @router.post("/templates", status_code=201)
    async def create_template(request: Request, body: TemplateCreate):
        return _template(request, template_svc.create(body))

    @router.put("/templates/{template_id}")
    async def update_template(request: Request, template_id: UUID, body: TemplateUpdate):
        return _template(request, template_svc.update(template_id, body))

    @router.delete("/templates/{template_id}")
    async def delete_template(request: Request, template_id: UUID):
        template_svc.delete(template_id)
        return success_response({"deleted": str(template_id)}, request).model_dump(mode="json")

    @router.post("/templates/{template_id}/activate")
    async def activate_template(request: Request, template_id: UUID):
        return _template(request, template_svc.activate(template_id))

    @router.post("/templates/{template_id}/deactivate")
    async def deactivate_template(request: Request, template_id: UUID):
        return _template(request, template_svc.deactivate(template_id))

    # -------------------------------------------------------------------------
    # Template items
    # -------------------------------------------------------------------------

    @router.post("/templates/{template_id}/items", status_code=201)
    async def add_template_item(request: Request, template_id: UUID, body: TemplateItemCreate):
        item = template_svc.add_item(template_id, body.item_id, body.default_quantity)
        return success_response(item.model_dump(mode="json"), request).model_dump(mode="json")

    @router.put("/templates/{template_id}/items/{template_item_id}")
    async def update_template_item(
        request: Request,
        template_id: UUID,
        template_item_id: UUID,
        body: DefaultQuantityUpdate,
    ):
        item = template_svc.update_item(template_id, template_item_id, body.default_quantity)
        return success_response(item.model_dump(mode="json"), request).model_dump(mode="json")

    @router.delete("/templates/{template_id}/items/{item_id}")
    async def remove_template_item(request: Request, template_id: UUID, item_id: UUID):
        """item_id is the catalog item id; every reference to it is removed."""
        return _template(request, template_svc.remove_item(template_id, item_id))

    return router
