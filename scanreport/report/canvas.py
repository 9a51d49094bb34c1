from __future__ import annotations

import io
import logging
from dataclasses import dataclass, replace
from typing import Sequence

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas as pdfcanvas


logger = logging.getLogger(__name__)

Color = tuple[int, int, int]

BLACK: Color = (0, 0, 0)
WHITE: Color = (255, 255, 255)

# line spacing for multi-line text blocks, as a multiple of the font size
LINE_HEIGHT_FACTOR = 1.15
POINT_IN_MM = 25.4 / 72.0


@dataclass(frozen=True)
class TextStyle:
    font: str = 'Times-Roman'
    size: float = 8
    color: Color = BLACK

    def with_(self, **changes) -> 'TextStyle':
        return replace(self, **changes)

    @property
    def height(self) -> float:
        """Font size expressed in millimetres."""
        return self.size * POINT_IN_MM


def _rgb(color: Color) -> tuple[float, float, float]:
    r, g, b = color
    return r / 255.0, g / 255.0, b / 255.0


class ReportCanvas:
    """A4 drawing surface addressed in millimetres from the top-left corner.

    Every primitive takes its style explicitly; nothing set by one call leaks
    into the next, so renderers can be composed by threading the returned
    vertical cursor only.
    """

    def __init__(
        self,
        *,
        pagesize: tuple[float, float] = A4,
        title: str | None = None,
        author: str | None = None,
    ):
        self._buffer = io.BytesIO()
        self._canvas = pdfcanvas.Canvas(self._buffer, pagesize=pagesize)
        self._canvas.setCreator('scanreport')
        if title:
            self._canvas.setTitle(title)
        if author:
            self._canvas.setAuthor(author)
        self.page_width = pagesize[0] / mm
        self.page_height = pagesize[1] / mm
        self._page_count = 1
        self._output: bytes | None = None

    @property
    def page_count(self) -> int:
        return self._page_count

    def _x(self, x: float) -> float:
        return x * mm

    def _y(self, y: float) -> float:
        return (self.page_height - y) * mm

    def add_page(self) -> None:
        self._ensure_open()
        self._canvas.showPage()
        self._page_count += 1

    def text(
        self,
        value: str | Sequence[str],
        x: float,
        y: float,
        style: TextStyle,
        *,
        align: str = 'left',
        line_height: float | None = None,
    ) -> None:
        self._ensure_open()
        lines = [value] if isinstance(value, str) else list(value)
        step = line_height if line_height is not None else style.height * LINE_HEIGHT_FACTOR

        c = self._canvas
        c.saveState()
        c.setFont(style.font, style.size)
        c.setFillColorRGB(*_rgb(style.color))
        for index, line in enumerate(lines):
            px = self._x(x)
            py = self._y(y + index * step)
            if align == 'center':
                c.drawCentredString(px, py, line)
            elif align == 'right':
                c.drawRightString(px, py, line)
            else:
                c.drawString(px, py, line)
        c.restoreState()

    def text_width(self, value: str, style: TextStyle) -> float:
        return stringWidth(value, style.font, style.size) / mm

    def split_text(self, value: str, max_width: float, style: TextStyle) -> list[str]:
        if not value:
            return []
        return simpleSplit(value, style.font, style.size, max(1.0, max_width) * mm)

    def line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        *,
        color: Color = BLACK,
        width: float = 0.2,
    ) -> None:
        self._ensure_open()
        c = self._canvas
        c.saveState()
        c.setStrokeColorRGB(*_rgb(color))
        c.setLineWidth(width * mm)
        c.line(self._x(x1), self._y(y1), self._x(x2), self._y(y2))
        c.restoreState()

    def circle(
        self,
        x: float,
        y: float,
        radius: float,
        *,
        fill: Color | None = None,
        stroke: Color | None = None,
        width: float = 0.2,
        dashed: bool = False,
    ) -> None:
        self._ensure_open()
        c = self._canvas
        c.saveState()
        self._apply_paint(fill, stroke, width, dashed)
        c.circle(self._x(x), self._y(y), radius * mm, stroke=int(stroke is not None), fill=int(fill is not None))
        c.restoreState()

    def rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        *,
        fill: Color | None = None,
        stroke: Color | None = None,
        line_width: float = 0.2,
    ) -> None:
        self._ensure_open()
        c = self._canvas
        c.saveState()
        self._apply_paint(fill, stroke, line_width, False)
        c.rect(
            self._x(x),
            self._y(y + height),
            width * mm,
            height * mm,
            stroke=int(stroke is not None),
            fill=int(fill is not None),
        )
        c.restoreState()

    def rounded_rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        radius: float,
        *,
        fill: Color | None = None,
        stroke: Color | None = None,
        line_width: float = 0.2,
    ) -> None:
        self._ensure_open()
        c = self._canvas
        c.saveState()
        self._apply_paint(fill, stroke, line_width, False)
        c.roundRect(
            self._x(x),
            self._y(y + height),
            width * mm,
            height * mm,
            radius * mm,
            stroke=int(stroke is not None),
            fill=int(fill is not None),
        )
        c.restoreState()

    def image(self, data: bytes, x: float, y: float, width: float, height: float) -> bool:
        self._ensure_open()
        if not data:
            logger.warning('Skipped empty image at (%.1f, %.1f)', x, y)
            return False
        try:
            self._canvas.drawImage(
                ImageReader(io.BytesIO(data)),
                self._x(x),
                self._y(y + height),
                width=width * mm,
                height=height * mm,
                mask='auto',
            )
        except Exception as exc:
            logger.warning('Failed to draw image at (%.1f, %.1f): %s', x, y, exc)
            return False
        return True

    def link(self, x: float, y: float, width: float, height: float, url: str) -> None:
        self._ensure_open()
        self._canvas.linkURL(
            url,
            (self._x(x), self._y(y + height), self._x(x + width), self._y(y)),
            relative=0,
            thickness=0,
        )

    def to_bytes(self) -> bytes:
        if self._output is None:
            self._canvas.save()
            self._output = self._buffer.getvalue()
        return self._output

    def _apply_paint(self, fill: Color | None, stroke: Color | None, width: float, dashed: bool) -> None:
        c = self._canvas
        if fill is not None:
            c.setFillColorRGB(*_rgb(fill))
        if stroke is not None:
            c.setStrokeColorRGB(*_rgb(stroke))
            c.setLineWidth(width * mm)
            if dashed:
                c.setDash(1, 1)

    def _ensure_open(self) -> None:
        if self._output is not None:
            raise RuntimeError('ReportCanvas already saved; create a new canvas for more pages')
