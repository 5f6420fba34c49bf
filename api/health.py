"""Connectivity probes for blob storage and the invoicing ledger."""

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from api.base import error_response, success_response, ErrorCodes
from core.errors import ExternalUnavailableError


def _probe(request: Request, service_name: str, service) -> JSONResponse | dict:
    message = None
    if service is None:
        message = f"{service_name} not configured"
    else:
        try:
            service.check_connection()
        except ExternalUnavailableError as e:
            message = str(e)

    if message is None:
        return success_response(
            {"service": service_name, "status": "connected"}, request
        ).model_dump(mode="json")

    content = error_response(ErrorCodes.SERVICE_UNAVAILABLE, message, request).model_dump(mode="json")
    content["data"] = {"service": service_name, "status": "disconnected", "message": message}
    return JSONResponse(status_code=503, content=content)


def create_health_router(services: dict) -> APIRouter:
    router = APIRouter()

    @router.get("/health/storage")
    async def storage_health(request: Request):
        return _probe(request, "storage", services.get("photo"))

    @router.get("/health/ledger")
    async def ledger_health(request: Request):
        return _probe(request, "ledger", services.get("billing"))

    return router
