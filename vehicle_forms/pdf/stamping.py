"""Stamp application records onto the single-page government form template."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import fitz  # PyMuPDF

from vehicle_forms.core.config import StampingConfig
from vehicle_forms.core.errors import Degradation, DegradationKind, TemplateError
from vehicle_forms.data.models import NormalizedApplicationRecord
from vehicle_forms.data.vehicle_number import VehicleNumberParts, decompose_vehicle_number
from vehicle_forms.layout.fields import DUPLICATE_FIELDS, ApplicationType, FieldId
from vehicle_forms.layout.loader import LayoutLoadResult, load_layout
from vehicle_forms.layout.models import (
    DEFAULT_STATIC_FONT_SIZE,
    FieldLayoutEntry,
    StaticFieldEntry,
    check_rotation,
)
from vehicle_forms.pdf.fonts import FontLoadResult, load_font, register_font
from vehicle_forms.pdf.renderer import GlyphPainter, PageGlyphPainter, draw_vertical_text

LOGGER = logging.getLogger(__name__)

AUTO_YEAR = "AUTO_YEAR"
AUTO_MONTH = "AUTO_MONTH"
AUTO_DAY = "AUTO_DAY"
REIWA_BASE_YEAR = 2018
CUSTOM_ROTATION = 90

PainterFactory = Callable[[fitz.Page, str], GlyphPainter]


@dataclass
class StampReport:
    """What a stamping call painted, skipped and degraded."""

    painted_fields: list[str] = field(default_factory=list)
    skipped_fields: list[str] = field(default_factory=list)
    static_fields: list[str] = field(default_factory=list)
    paint_calls: int = 0
    degradations: list[Degradation] = field(default_factory=list)
    application_type: str = ""

    def as_dict(self) -> dict[str, Any]:
        return {
            "application_type": self.application_type,
            "painted_fields": list(self.painted_fields),
            "skipped_fields": list(self.skipped_fields),
            "static_fields": list(self.static_fields),
            "paint_calls": self.paint_calls,
            "degradations": [item.as_dict() for item in self.degradations],
        }


@dataclass(frozen=True)
class StampResult:
    pdf_bytes: bytes
    report: StampReport


def resolve_static_text(text: str, today: date, era_base_year: int = REIWA_BASE_YEAR) -> str:
    """Substitute ``AUTO_*`` tokens with the era-relative date parts."""
    if text == AUTO_YEAR:
        return str(today.year - era_base_year)
    if text == AUTO_MONTH:
        return str(today.month)
    if text == AUTO_DAY:
        return str(today.day)
    return text


def build_value_map(
    record: NormalizedApplicationRecord, parts: VehicleNumberParts
) -> dict[FieldId, str]:
    """Map every known field to its literal value, duplicates included."""
    values = {
        FieldId.OLD_OWNER_NAME: record.old_owner_name,
        FieldId.OLD_OWNER_ADDRESS: record.old_owner_address,
        FieldId.OLD_OWNER_ADDRESS_CODE: record.old_owner_address_code,
        FieldId.OLD_OWNER_CHOME: record.old_owner_chome,
        FieldId.OLD_OWNER_BANCHI: record.old_owner_banchi,
        FieldId.NEW_OWNER_NAME: record.new_owner_name,
        FieldId.NEW_OWNER_ADDRESS: record.new_owner_address,
        FieldId.NEW_OWNER_ADDRESS_CODE: record.new_owner_address_code,
        FieldId.NEW_OWNER_CHOME: record.new_owner_chome,
        FieldId.NEW_OWNER_BANCHI: record.new_owner_banchi,
        FieldId.VEHICLE_NUMBER_REGION: parts.region,
        FieldId.VEHICLE_NUMBER_CLASS: parts.class_number,
        FieldId.VEHICLE_NUMBER_KANA: parts.kana,
        FieldId.VEHICLE_NUMBER_DIGITS: parts.digits,
        FieldId.CHASSIS_NUMBER: record.chassis_number,
    }
    for duplicate, source in DUPLICATE_FIELDS.items():
        values[duplicate] = values[source]
    return values


def _write_output(output: Path | str, data: bytes) -> Path:
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


class TemplateStamper:
    """Paint records onto the first page of a form template.

    Layout and font are loaded once by the caller and shared read-only; each
    call opens its own in-memory document.
    """

    def __init__(
        self,
        layout: LayoutLoadResult,
        font: FontLoadResult,
        *,
        era_base_year: int = REIWA_BASE_YEAR,
        today: Callable[[], date] = date.today,
        painter_factory: PainterFactory = PageGlyphPainter,
    ) -> None:
        self._layout = layout
        self._font = font
        self._era_base_year = era_base_year
        self._today = today
        self._painter_factory = painter_factory

    @classmethod
    def from_config(cls, config: StampingConfig) -> "TemplateStamper":
        """Load layout and font once from configured paths."""
        return cls(
            load_layout(config.field_positions_path),
            load_font(config.font_path),
            era_base_year=config.era_base_year,
        )

    @property
    def layout(self) -> LayoutLoadResult:
        return self._layout

    def _startup_degradations(self) -> list[Degradation]:
        return [
            item
            for item in (self._layout.degradation, self._font.degradation)
            if item is not None
        ]

    @contextmanager
    def _open_first_page(self, template_bytes: bytes) -> Iterator[tuple[fitz.Document, GlyphPainter]]:
        try:
            doc = fitz.open(stream=template_bytes, filetype="pdf")
        except Exception as exc:
            raise TemplateError(f"Template PDF could not be parsed: {exc}") from exc
        try:
            if doc.page_count == 0:
                raise TemplateError("Template PDF has no pages.")
            if doc.page_count > 1:
                LOGGER.warning(
                    "Template has %d pages; only the first page is stamped.",
                    doc.page_count,
                )
            page = doc[0]
            fontname = register_font(page, self._font)
            yield doc, self._painter_factory(page, fontname)
        finally:
            doc.close()

    @staticmethod
    def _serialize(doc: fitz.Document) -> bytes:
        # Keep the trailer /ID so identical input produces identical bytes.
        return doc.tobytes(no_new_id=True)

    def _paint_static(
        self,
        painter: GlyphPainter,
        static_fields: Mapping[str, StaticFieldEntry],
        rotation: int,
        report: StampReport,
    ) -> None:
        today = self._today()
        for name, entry in static_fields.items():
            text = resolve_static_text(entry.text, today, self._era_base_year)
            if not text:
                continue
            font_size = entry.effective_font_size(DEFAULT_STATIC_FONT_SIZE)
            if entry.spacing and len(text) > 1:
                report.paint_calls += draw_vertical_text(
                    painter, text, entry.x, entry.y, font_size, entry.spacing, rotation
                )
            else:
                painter.paint(text, entry.x, entry.y, font_size, rotation)
                report.paint_calls += 1
            report.static_fields.append(name)
            LOGGER.debug(
                "Static field %s = %r @ (%s, %s)", name, text, entry.x, entry.y,
                extra={"field": name},
            )

    def _paint_fields(
        self,
        painter: GlyphPainter,
        positions: Mapping[str, FieldLayoutEntry],
        values: Mapping[str, str],
        rotation: int,
        report: StampReport,
    ) -> None:
        for name, entry in positions.items():
            value = values.get(name, "")
            if not value:
                report.skipped_fields.append(name)
                continue
            font_size = entry.effective_font_size()
            report.paint_calls += draw_vertical_text(
                painter,
                value,
                entry.x,
                entry.y,
                font_size,
                entry.effective_spacing(font_size),
                rotation,
            )
            report.painted_fields.append(name)
            LOGGER.debug(
                "Field %s = %r @ (%s, %s)", name, value, entry.x, entry.y,
                extra={"field": name},
            )

    def render(
        self,
        template_bytes: bytes,
        record: NormalizedApplicationRecord | Mapping[str, Any],
        application_type: ApplicationType = ApplicationType.TRANSFER,
    ) -> StampResult:
        """Stamp ``record`` and return the serialized PDF with its report."""
        if not isinstance(record, NormalizedApplicationRecord):
            record = NormalizedApplicationRecord.model_validate(dict(record))
        layout = self._layout.layout
        report = StampReport(
            application_type=application_type.value,
            degradations=self._startup_degradations(),
        )

        parts = decompose_vehicle_number(record.vehicle_number)
        if record.vehicle_number and not parts.matched:
            report.degradations.append(
                Degradation(
                    kind=DegradationKind.FIELD_PARSE_DEGRADATION,
                    message="Vehicle number did not match the plate pattern; printed whole as region.",
                    details=(record.vehicle_number,),
                )
            )
            LOGGER.warning(
                "Vehicle number %r not decomposable; using it as region.",
                record.vehicle_number,
                extra={"degradation": str(DegradationKind.FIELD_PARSE_DEGRADATION)},
            )
        values = {str(key): value for key, value in build_value_map(record, parts).items()}
        positions = {str(key): entry for key, entry in layout.fields.items()}

        with self._open_first_page(template_bytes) as (doc, painter):
            self._paint_static(
                painter,
                layout.static_fields_for(application_type),
                layout.rotation,
                report,
            )
            self._paint_fields(painter, positions, values, layout.rotation, report)
            pdf_bytes = self._serialize(doc)

        LOGGER.info(
            "Stamped %d fields (%d static, %d skipped).",
            len(report.painted_fields),
            len(report.static_fields),
            len(report.skipped_fields),
            extra={"application_type": application_type.value},
        )
        return StampResult(pdf_bytes=pdf_bytes, report=report)

    def stamp(
        self,
        template_bytes: bytes,
        record: NormalizedApplicationRecord | Mapping[str, Any],
        output: Path | str,
        application_type: ApplicationType = ApplicationType.TRANSFER,
    ) -> StampReport:
        """Stamp ``record`` and write the PDF to ``output``.

        Raises ``TemplateError`` before anything is written when the template
        cannot be used.
        """
        result = self.render(template_bytes, record, application_type)
        path = _write_output(output, result.pdf_bytes)
        LOGGER.info("PDF written: %s", path, extra={"application_type": application_type.value})
        return result.report

    def render_with_positions(
        self,
        template_bytes: bytes,
        values: Mapping[str, Any],
        positions: Mapping[str, FieldLayoutEntry | Mapping[str, Any]],
        rotation: int = CUSTOM_ROTATION,
    ) -> StampResult:
        """Stamp arbitrary values at caller-supplied positions.

        Static fields and the configured layout are not used; field names are
        free-form keys shared by ``values`` and ``positions``.
        """
        rotation = check_rotation(rotation)
        entries = {
            name: entry if isinstance(entry, FieldLayoutEntry) else FieldLayoutEntry.model_validate(entry)
            for name, entry in positions.items()
        }
        texts = {
            name: "" if value is None else str(value)
            for name, value in values.items()
        }
        report = StampReport(
            application_type="custom",
            degradations=[self._font.degradation] if self._font.degradation else [],
        )
        with self._open_first_page(template_bytes) as (doc, painter):
            self._paint_fields(painter, entries, texts, rotation, report)
            pdf_bytes = self._serialize(doc)
        return StampResult(pdf_bytes=pdf_bytes, report=report)

    def stamp_with_positions(
        self,
        template_bytes: bytes,
        values: Mapping[str, Any],
        output: Path | str,
        positions: Mapping[str, FieldLayoutEntry | Mapping[str, Any]],
        rotation: int = CUSTOM_ROTATION,
    ) -> StampReport:
        result = self.render_with_positions(template_bytes, values, positions, rotation)
        _write_output(output, result.pdf_bytes)
        return result.report
