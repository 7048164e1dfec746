"""Japanese font loading with a Latin fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import fitz  # PyMuPDF

from vehicle_forms.core.errors import Degradation, DegradationKind

LOGGER = logging.getLogger(__name__)

EMBEDDED_FONT_NAME = "notojp"
FALLBACK_FONT_NAME = "helv"


@dataclass(frozen=True)
class FontLoadResult:
    """Font bytes to embed, or ``None`` when falling back to Helvetica."""

    font_buffer: bytes | None
    source: str
    degradation: Degradation | None = None

    @property
    def fontname(self) -> str:
        return EMBEDDED_FONT_NAME if self.font_buffer else FALLBACK_FONT_NAME


def fallback_font(reason: str = "") -> FontLoadResult:
    degradation = None
    if reason:
        degradation = Degradation(
            kind=DegradationKind.CONFIG_DEGRADATION,
            message=(
                "Japanese font unavailable; using built-in Helvetica. "
                "Non-Latin glyphs will not render correctly."
            ),
            details=(reason,),
        )
    return FontLoadResult(font_buffer=None, source=FALLBACK_FONT_NAME, degradation=degradation)


def load_font(path: Path | str | None) -> FontLoadResult:
    """Read and validate the preferred font file; never raises."""
    if path is None:
        return fallback_font("no font path configured")
    font_path = Path(path)
    try:
        buffer = font_path.read_bytes()
    except OSError as exc:
        result = fallback_font(f"{font_path}: {exc.strerror or exc}")
    else:
        try:
            fitz.Font(fontbuffer=buffer)
        except Exception as exc:
            result = fallback_font(f"{font_path}: not a usable font ({exc})")
        else:
            LOGGER.info("Loaded font %s.", font_path)
            return FontLoadResult(font_buffer=buffer, source=str(font_path))

    LOGGER.warning(
        "Font fallback to %s: %s",
        FALLBACK_FONT_NAME,
        result.degradation.details[0] if result.degradation else "",
        extra={"degradation": str(DegradationKind.CONFIG_DEGRADATION)},
    )
    return result


def register_font(page: fitz.Page, font: FontLoadResult) -> str:
    """Make the font available on ``page`` and return the name to paint with."""
    if font.font_buffer:
        page.insert_font(fontname=EMBEDDED_FONT_NAME, fontbuffer=font.font_buffer)
    return font.fontname
