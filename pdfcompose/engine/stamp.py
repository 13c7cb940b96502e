"""Text watermark overlays drawn with reportlab and merged with pypdf."""

from __future__ import annotations

from io import BytesIO
from typing import Sequence

from pypdf import PageObject, PdfReader, Transformation
from reportlab.pdfgen import canvas

from ..core.utils import get_logger
from ..exceptions import InvalidWatermarkError

LOGGER = get_logger("pdfcompose.stamp")

WATERMARK_FONT = "Helvetica-Bold"


def validate_watermark(
    text: str,
    *,
    font_size: float,
    opacity: float,
    rotation: float,
    color: Sequence[float],
) -> None:
    if not isinstance(text, str) or not text.strip():
        raise InvalidWatermarkError("Watermark text must not be empty")
    if not _is_number(font_size) or font_size <= 0:
        raise InvalidWatermarkError(f"Watermark font size must be positive, got {font_size!r}")
    if not _is_number(opacity) or not 0 <= opacity <= 1:
        raise InvalidWatermarkError(f"Watermark opacity must be between 0 and 1, got {opacity!r}")
    if not _is_number(rotation):
        raise InvalidWatermarkError(f"Watermark rotation must be a number of degrees, got {rotation!r}")
    if len(color) != 3 or not all(_is_number(part) and 0 <= part <= 1 for part in color):
        raise InvalidWatermarkError(f"Watermark color must be three values between 0 and 1, got {color!r}")


class WatermarkStamp:
    """Applies one text watermark to many pages.

    An overlay is rendered once per distinct page size and reused for every
    page of that size; it is shifted onto each page's media box when merged.
    """

    def __init__(
        self,
        text: str,
        *,
        font_size: float = 48,
        opacity: float = 0.3,
        rotation: float = 45,
        color: Sequence[float] = (0.5, 0.5, 0.5),
    ) -> None:
        validate_watermark(text, font_size=font_size, opacity=opacity, rotation=rotation, color=color)
        self.text = text
        self.font_size = float(font_size)
        self.opacity = float(opacity)
        self.rotation = float(rotation)
        self.color = tuple(float(part) for part in color)
        self._overlays: dict[tuple[float, float], PageObject] = {}

    def apply(self, page: PageObject) -> None:
        box = page.mediabox
        overlay = self.overlay(float(box.width), float(box.height))
        page.merge_transformed_page(overlay, Transformation().translate(float(box.left), float(box.bottom)))

    def overlay(self, width: float, height: float) -> PageObject:
        key = (round(width, 3), round(height, 3))
        cached = self._overlays.get(key)
        if cached is None:
            LOGGER.debug("Rendering %gx%g watermark overlay", *key)
            cached = self._overlays[key] = self._render(*key)
        return cached

    def _render(self, width: float, height: float) -> PageObject:
        buffer = BytesIO()
        sheet = canvas.Canvas(buffer, pagesize=(width, height), invariant=1)
        sheet.setFont(WATERMARK_FONT, self.font_size)
        sheet.setFillColorRGB(*self.color, alpha=self.opacity)
        sheet.translate(width / 2, height / 2)
        sheet.rotate(self.rotation)
        sheet.drawCentredString(0, -self.font_size / 2, self.text)
        sheet.showPage()
        sheet.save()
        return PdfReader(BytesIO(buffer.getvalue())).pages[0]


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


__all__ = ["WatermarkStamp", "validate_watermark", "WATERMARK_FONT"]
