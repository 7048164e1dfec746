"""Load the field layout document, degrading to built-in coordinates."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from vehicle_forms.core.errors import Degradation, DegradationKind
from vehicle_forms.layout.fields import FieldId
from vehicle_forms.layout.models import FieldLayoutEntry, LayoutConfiguration

LOGGER = logging.getLogger(__name__)

DEFAULT_ROTATION = 90


@dataclass(frozen=True)
class LayoutLoadResult:
    """Outcome of loading the layout: either the file or the fallback."""

    layout: LayoutConfiguration
    source: str
    degradation: Degradation | None = None

    @property
    def degraded(self) -> bool:
        return self.degradation is not None


def default_layout() -> LayoutConfiguration:
    """Built-in coordinates for the transfer registration form."""

    def entry(x: float, y: float, font_size: float, spacing: float) -> FieldLayoutEntry:
        return FieldLayoutEntry(x=x, y=y, font_size=font_size, spacing=spacing)

    return LayoutConfiguration(
        fields={
            FieldId.OLD_OWNER_NAME: entry(205, 95, 12, 30),
            FieldId.OLD_OWNER_ADDRESS: entry(515, 370, 10, 14),
            FieldId.OLD_OWNER_ADDRESS_CODE: entry(240, 90, 13, 17),
            FieldId.NEW_OWNER_NAME: entry(300, 95, 12, 30),
            FieldId.NEW_OWNER_ADDRESS: entry(515, 130, 10, 14),
            FieldId.NEW_OWNER_ADDRESS_CODE: entry(340, 90, 13, 17),
            FieldId.VEHICLE_NUMBER_REGION: entry(150, 30, 24, 33),
            FieldId.VEHICLE_NUMBER_CLASS: entry(150, 165, 13, 17),
            FieldId.VEHICLE_NUMBER_KANA: entry(150, 230, 13, 17),
            FieldId.VEHICLE_NUMBER_DIGITS: entry(150, 265, 13, 17),
            FieldId.CHASSIS_NUMBER: entry(150, 348, 13, 17),
        },
        rotation=DEFAULT_ROTATION,
        static_fields={},
    )


def _fallback(path: Path, reason: str) -> LayoutLoadResult:
    degradation = Degradation(
        kind=DegradationKind.CONFIG_DEGRADATION,
        message="Layout configuration unavailable; using built-in defaults.",
        details=(str(path), reason),
    )
    LOGGER.warning(
        "Layout configuration %s unusable (%s); using built-in defaults.",
        path,
        reason,
        extra={"degradation": str(degradation.kind)},
    )
    return LayoutLoadResult(
        layout=default_layout(), source="default", degradation=degradation
    )


def load_layout(path: Path | str | None) -> LayoutLoadResult:
    """Load the layout JSON at ``path``.

    Never raises: a missing, unreadable or invalid document yields the
    built-in default layout together with a ``config_degradation`` notice.
    """
    if path is None:
        return _fallback(Path(""), "no layout path configured")
    config_path = Path(path)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        return _fallback(config_path, f"unreadable: {exc.strerror or exc}")
    except UnicodeDecodeError as exc:
        return _fallback(config_path, f"not UTF-8: {exc.reason} at byte {exc.start}")

    try:
        document = json.loads(raw)
    except json.JSONDecodeError as exc:
        return _fallback(config_path, f"invalid JSON: {exc.msg} at line {exc.lineno}")

    try:
        layout = LayoutConfiguration.from_document(document)
    except (ValidationError, ValueError) as exc:
        return _fallback(config_path, f"invalid layout: {exc}")

    LOGGER.info(
        "Loaded layout configuration %s (%d fields, rotation=%d).",
        config_path,
        len(layout.fields),
        layout.rotation,
    )
    return LayoutLoadResult(layout=layout, source=str(config_path))
