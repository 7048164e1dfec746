"""Route registration for integration, stamping and download endpoints."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from fastapi import FastAPI
from fastapi.responses import FileResponse
from pydantic import ValidationError

from vehicle_forms.api.contracts import (
    ApiErrorResponse,
    DegradationResponse,
    GeneratePdfRequest,
    GeneratePdfResponse,
    HealthResponse,
    IntegrateRequest,
    IntegrateResponse,
)
from vehicle_forms.api.errors import ApiError
from vehicle_forms.data.address import AddressLookup
from vehicle_forms.data.integrate import integrate_extractions
from vehicle_forms.data.models import NormalizedApplicationRecord
from vehicle_forms.layout.fields import ApplicationType, parse_application_type
from vehicle_forms.pdf.stamping import TemplateStamper


@dataclass(frozen=True)
class StampingRouteDeps:
    """Dependencies required to mount the stamping routes."""

    stamper: TemplateStamper
    address_lookup: AddressLookup
    read_template: Callable[[ApplicationType], bytes]
    output_dir: Path


def output_filename(application_type: ApplicationType) -> str:
    """Unique per request so concurrent calls never share an output file."""
    return f"{application_type.value}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}.pdf"


def resolve_download_path(output_dir: Path, filename: str) -> Path:
    """Return the generated PDF for ``filename`` or raise a 404 ``ApiError``."""
    candidate = (output_dir / filename).resolve()
    if (
        Path(filename).name != filename
        or candidate.suffix.lower() != ".pdf"
        or candidate.parent != output_dir.resolve()
        or not candidate.is_file()
    ):
        raise ApiError.file_not_found(filename)
    return candidate


def register_stamping_routes(app: FastAPI, *, deps: StampingRouteDeps) -> None:
    """Register health/integrate/generate/download endpoints."""

    @app.get("/api/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post(
        "/api/integrate",
        response_model=IntegrateResponse,
        responses={422: {"model": ApiErrorResponse}},
    )
    def integrate(body: IntegrateRequest) -> IntegrateResponse:
        result = integrate_extractions(body.inkan, body.shaken, deps.address_lookup)
        return IntegrateResponse(
            transfer_data=result.record,
            missing_fields=result.missing_fields,
        )

    @app.post(
        "/api/generate-pdf",
        response_model=GeneratePdfResponse,
        responses={
            400: {"model": ApiErrorResponse},
            422: {"model": ApiErrorResponse},
        },
    )
    def generate_pdf(body: GeneratePdfRequest) -> GeneratePdfResponse:
        try:
            application_type = parse_application_type(body.application_type)
            record = NormalizedApplicationRecord.model_validate(body.transfer_data)
        except (ValidationError, ValueError) as exc:
            raise ApiError.bad_request(str(exc)) from exc

        template_bytes = deps.read_template(application_type)
        filename = output_filename(application_type)
        report = deps.stamper.stamp(
            template_bytes,
            record,
            deps.output_dir / filename,
            application_type,
        )
        return GeneratePdfResponse(
            pdf_url=f"/api/download/{filename}",
            painted_fields=report.painted_fields,
            warnings=[
                DegradationResponse(**item.as_dict()) for item in report.degradations
            ],
        )

    @app.get(
        "/api/download/{filename}",
        responses={404: {"model": ApiErrorResponse}},
    )
    def download(filename: str) -> FileResponse:
        path = resolve_download_path(deps.output_dir, filename)
        return FileResponse(path, media_type="application/pdf", filename=filename)
