"""Public API request/response contracts."""

from vehicle_forms.api.contracts.models import (
    ApiErrorResponse,
    DegradationResponse,
    GeneratePdfRequest,
    GeneratePdfResponse,
    HealthResponse,
    IntegrateRequest,
    IntegrateResponse,
)

__all__ = [
    "ApiErrorResponse",
    "DegradationResponse",
    "GeneratePdfRequest",
    "GeneratePdfResponse",
    "HealthResponse",
    "IntegrateRequest",
    "IntegrateResponse",
]
