"""Job routes: lifecycle, items, photos and invoicing."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, File, Form, Query, Request, UploadFile
from pydantic import BaseModel

from api.base import success_response
from core.errors import ExternalUnavailableError, NotFoundError
from core.models import CustomJobItemCreate, JobCreate, JobItemAdd, JobUpdate
from core.services.photo_service import PhotoUpload


class StatusUpdate(BaseModel):
    status: str


class PhaseUpdate(BaseModel):
    phase_id: UUID | None = None


class QuantityUpdate(BaseModel):
    quantity: Decimal


class InvoiceRequest(BaseModel):
    invoice_date: date | None = None


def create_jobs_router(services: dict) -> APIRouter:
    router = APIRouter()

    job_svc = services["job"]
    photo_svc = services.get("photo")
    billing_svc = services.get("billing")

    def _job(request: Request, job) -> dict:
        return success_response(job.model_dump(mode="json"), request).model_dump(mode="json")

    def _require_billing():
        if billing_svc is None:
            raise ExternalUnavailableError("ledger", "not configured")
        return billing_svc

    @router.get("/jobs")
    async def list_jobs(
        request: Request,
        status: str | None = Query(None),
        customer_id: UUID | None = Query(None),
        limit: int = Query(100, ge=1, le=500),
        offset: int = Query(0, ge=0),
    ):
        jobs = job_svc.list(status=status, customer_id=customer_id, limit=limit, offset=offset)
        return success_response(
            [j.model_dump(mode="json") for j in jobs], request
        ).model_dump(mode="json")

    @router.get("/jobs/{job_id}")
    async def get_job(request: Request, job_id: UUID):
        job = job_svc.get_by_id(job_id)
        if job is None:
            raise NotFoundError("Job", job_id)
        return _job(request, job)

    @router.post("/jobs", status_code=201)
    async def create_job(request: Request, body: JobCreate):
        return _job(request, job_svc.create_from_template(body))

    @router.put("/jobs/{job_id}")
    async def update_job(request: Request, job_id: UUID, body: JobUpdate):
        return _job(request, job_svc.update(job_id, body))

    @router.delete("/jobs/{job_id}")
    async def delete_job(request: Request, job_id: UUID):
        job_svc.delete(job_id)
        return success_response({"deleted": str(job_id)}, request).model_dump(mode="json")

    @router.put("/jobs/{job_id}/status")
    async def update_job_status(request: Request, job_id: UUID, body: StatusUpdate):
        return _job(request, job_svc.update_status(job_id, body.status))

    @router.put("/jobs/{job_id}/phase")
    async def update_job_phase(request: Request, job_id: UUID, body: PhaseUpdate):
        return _job(request, job_svc.update_phase(job_id, body.phase_id))

    # -------------------------------------------------------------------------
    # Job items
    # -------------------------------------------------------------------------

    @router.post("/jobs/{job_id}/items", status_code=201)
    async def add_job_item(request: Request, job_id: UUID, body: JobItemAdd):
        return _job(request, job_svc.add_item(job_id, body.item_id, body.quantity))

    @router.post("/jobs/{job_id}/items/custom", status_code=201)
    async def add_custom_job_item(request: Request, job_id: UUID, body: CustomJobItemCreate):
        return _job(request, job_svc.add_custom_item(job_id, body))

    @router.put("/jobs/{job_id}/items/{job_item_id}")
    async def update_job_item(
        request: Request, job_id: UUID, job_item_id: UUID, body: QuantityUpdate
    ):
        return _job(request, job_svc.update_item_quantity(job_id, job_item_id, body.quantity))

    @router.delete("/jobs/{job_id}/items/{job_item_id}")
    async def remove_job_item(request: Request, job_id: UUID, job_item_id: UUID):
        return _job(request, job_svc.remove_item(job_id, job_item_id))

    # -------------------------------------------------------------------------
    # Photos
    # -------------------------------------------------------------------------

    @router.post("/jobs/{job_id}/photos", status_code=201)
    async def upload_job_photos(
        request: Request,
        job_id: UUID,
        photos: list[UploadFile] = File(...),
        caption: str | None = Form(None),
    ):
        if photo_svc is None:
            raise ExternalUnavailableError("blob storage", "not configured")

        uploads = [
            PhotoUpload(filename=f.filename or "", content=await f.read(), caption=caption)
            for f in photos
        ]
        stored = photo_svc.upload_photos(job_id, uploads)
        return success_response(
            [p.model_dump(mode="json") for p in stored], request
        ).model_dump(mode="json")

    @router.delete("/jobs/{job_id}/photos/{photo_id}")
    async def remove_job_photo(request: Request, job_id: UUID, photo_id: UUID):
        if photo_svc is None:
            raise ExternalUnavailableError("blob storage", "not configured")

        photo_svc.remove_photo(job_id, photo_id)
        return success_response({"deleted": str(photo_id)}, request).model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Invoicing
    # -------------------------------------------------------------------------

    @router.get("/jobs/{job_id}/invoice/preview")
    async def preview_invoice(request: Request, job_id: UUID):
        billing = _require_billing()
        preparation = billing.prepare_invoice_lines(job_svc.require(job_id))

        data = preparation.model_dump(mode="json")
        data["total"] = str(preparation.total)
        return success_response(data, request).model_dump(mode="json")

    @router.post("/jobs/{job_id}/invoice", status_code=201)
    async def submit_invoice(request: Request, job_id: UUID, body: InvoiceRequest | None = None):
        billing = _require_billing()
        invoice = billing.submit_invoice(job_id, body.invoice_date if body else None)
        return success_response(invoice.model_dump(mode="json"), request).model_dump(mode="json")

    return router
