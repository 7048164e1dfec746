"""Template file selection per application category."""

from __future__ import annotations

from pathlib import Path

from vehicle_forms.core.errors import TemplateError
from vehicle_forms.layout.fields import ApplicationType

TRANSFER_TEMPLATE = "transfer_template.pdf"
CANCELLATION_TEMPLATE = "cancellation_template.pdf"


def template_path_for(template_dir: Path, application_type: ApplicationType) -> Path:
    if application_type.is_cancellation:
        return template_dir / CANCELLATION_TEMPLATE
    return template_dir / TRANSFER_TEMPLATE


def read_template(path: Path) -> bytes:
    """Read template bytes; any failure is a ``TemplateError``."""
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise TemplateError(f"Template PDF not readable: {path} ({exc.strerror or exc})") from exc
    if not data:
        raise TemplateError(f"Template PDF is empty: {path}")
    return data
