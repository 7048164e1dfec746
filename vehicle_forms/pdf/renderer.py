"""Glyph-by-glyph vertical text rendering."""

from __future__ import annotations

from typing import Protocol

import fitz  # PyMuPDF

BLACK = (0.0, 0.0, 0.0)


class GlyphPainter(Protocol):
    """Paints text on one page at a point given in PDF user space."""

    def paint(
        self, text: str, x: float, y: float, font_size: float, rotation: int
    ) -> None: ...


class PageGlyphPainter:
    """Paint into a PyMuPDF page's content stream.

    ``x``/``y`` are PDF user-space points of the unrotated page (bottom-left
    origin); ``rotation`` is the counter-clockwise glyph rotation in that
    space, independent of the page's own ``/Rotate``.
    """

    def __init__(
        self,
        page: fitz.Page,
        fontname: str,
        color: tuple[float, float, float] = BLACK,
    ) -> None:
        self._page = page
        self._fontname = fontname
        self._color = color

    def to_page_point(self, x: float, y: float) -> fitz.Point:
        # PDF space -> unrotated MuPDF space (top-left origin).
        return fitz.Point(x, y) * self._page.transformation_matrix

    def paint(
        self, text: str, x: float, y: float, font_size: float, rotation: int
    ) -> None:
        self._page.insert_text(
            self.to_page_point(x, y),
            text,
            fontsize=font_size,
            fontname=self._fontname,
            color=self._color,
            rotate=rotation,
        )


def draw_vertical_text(
    painter: GlyphPainter,
    text: str,
    x: float,
    y: float,
    font_size: float,
    spacing: float,
    rotation: int,
) -> int:
    """Paint ``text`` one character at a time, advancing ``spacing`` along +y.

    Returns the number of paint calls made; empty text paints nothing.
    """
    current_y = y
    count = 0
    for char in text:
        painter.paint(char, x, current_y, font_size, rotation)
        current_y += spacing
        count += 1
    return count
