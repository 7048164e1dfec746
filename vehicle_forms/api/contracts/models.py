"""Pydantic API request/response models used in OpenAPI contracts."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from vehicle_forms.data.models import (
    NormalizedApplicationRecord,
    SealCertificateExtraction,
    VehicleCertificateExtraction,
)


class ApiErrorResponse(BaseModel):
    """Stable error envelope for API responses."""

    error_code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error message")


class HealthResponse(BaseModel):
    """Health check response payload."""

    status: Literal["ok"]


class DegradationResponse(BaseModel):
    """A non-fatal fallback taken while processing."""

    kind: str
    message: str
    details: list[str] = Field(default_factory=list)


class IntegrateRequest(BaseModel):
    """Raw extraction records for both certificates."""

    model_config = ConfigDict(extra="forbid")

    inkan: SealCertificateExtraction
    shaken: VehicleCertificateExtraction


class IntegrateResponse(BaseModel):
    """Normalized record ready for review and stamping."""

    success: bool = True
    transfer_data: NormalizedApplicationRecord
    missing_fields: list[str] = Field(default_factory=list)


class GeneratePdfRequest(BaseModel):
    """Reviewed record and application category to stamp."""

    model_config = ConfigDict(extra="forbid")

    transfer_data: dict[str, Any]
    application_type: str = "transfer"


class GeneratePdfResponse(BaseModel):
    """Location of the stamped PDF plus non-fatal warnings."""

    success: bool = True
    pdf_url: str
    painted_fields: list[str] = Field(default_factory=list)
    warnings: list[DegradationResponse] = Field(default_factory=list)
