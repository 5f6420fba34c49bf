"""HTTP interface: response envelope, routers and app wiring."""

from api.base import (
    APIResponse,
    ErrorCodes,
    error_response,
    request_id_of,
    success_response,
)
from api.app import create_app, create_app_from_env
