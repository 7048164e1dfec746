"""Parse vision-model JSON replies into raw extraction records."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterable
from typing import Literal, TypeVar

from pydantic import ValidationError

from vehicle_forms.data.models import SealCertificateExtraction, VehicleCertificateExtraction

LOGGER = logging.getLogger(__name__)

DocumentType = Literal["inkan", "shaken"]
Extraction = SealCertificateExtraction | VehicleCertificateExtraction
PageT = TypeVar("PageT")

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.I)


class ExtractionError(Exception):
    """Model reply could not be turned into an extraction record."""


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").strip()


def parse_extraction_response(text: str) -> Extraction:
    """Parse a model reply, dispatching on its ``document_type``."""
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise ExtractionError("OCR response is empty.")
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ExtractionError(f"OCR response is not JSON: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise ExtractionError("OCR response must be a JSON object.")

    document_type = payload.get("document_type")
    try:
        if document_type == "inkan":
            return SealCertificateExtraction.model_validate(payload)
        if document_type == "shaken":
            return VehicleCertificateExtraction.model_validate(payload)
    except ValidationError as exc:
        raise ExtractionError(f"OCR response has invalid fields: {exc}") from exc
    raise ExtractionError(f"Unknown document_type: {document_type!r}")


def first_successful_extraction(
    pages: Iterable[PageT],
    extract: Callable[[PageT], Extraction],
    document_type: DocumentType,
) -> Extraction:
    """Run ``extract`` page by page and return the first usable result.

    A result for the wrong document type counts as a failed page.
    """
    failures: list[str] = []
    for page in pages:
        try:
            result = extract(page)
        except ExtractionError as exc:
            LOGGER.warning("OCR failed for page %s, trying next: %s", page, exc)
            failures.append(str(exc))
            continue
        if result.document_type != document_type:
            LOGGER.warning(
                "OCR for page %s returned %s, expected %s.",
                page,
                result.document_type,
                document_type,
            )
            failures.append(f"unexpected document_type {result.document_type}")
            continue
        return result
    detail = "; ".join(failures) if failures else "no pages"
    raise ExtractionError(f"OCR failed for every page ({detail}).")
