from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol, Sequence

from ..assets import CERTIFICATE, AssetRegistry
from ..config import Settings
from .canvas import BLACK, WHITE, Color, TextStyle


ARC_SEGMENTS = 100
ARC_LINE_WIDTH = 4
LINKED_LINE_HEIGHT = 4
LINK_ROW_HEIGHT = 6
WRAP_MARGIN = 30
FOOTER_HEIGHT = 10

LIGHT_GREY: Color = (200, 200, 200)
GREY: Color = (169, 169, 169)
DIVIDER: Color = (192, 192, 192)
ORANGE: Color = (255, 87, 34)
BLUE: Color = (0, 102, 204)
LINK_BLUE: Color = (173, 216, 230)
IDENTICAL_RED: Color = (255, 0, 0)
MINOR_RED: Color = (255, 102, 102)
PARAPHRASED_AMBER: Color = (255, 165, 0)
OMITTED_BLUE: Color = (0, 0, 255)
AI_PURPLE: Color = (204, 153, 255)
HUMAN_GREY: Color = (211, 211, 211)
HIGHLIGHT_TEXT: Color = (128, 0, 128)

SCORE_STYLE = TextStyle('Times-Bold', 14)
BODY_STYLE = TextStyle('Times-Roman', 8)
HEADING_STYLE = TextStyle('Times-Bold', 10)
TABLE_TITLE_STYLE = TextStyle('Times-Bold', 12)
TABLE_HEADER_STYLE = TextStyle('Helvetica-Bold', 10)
TABLE_ROW_STYLE = TextStyle('Helvetica', 8)
FOOTER_STYLE = TextStyle('Times-Roman', 10)
PAGE_TITLE_STYLE = TextStyle('Times-Bold', 40)


class Canvas(Protocol):
    page_width: float
    page_height: float

    def add_page(self) -> None: ...
    def text(self, value, x: float, y: float, style: TextStyle, *, align: str = 'left', line_height=None) -> None: ...
    def text_width(self, value: str, style: TextStyle) -> float: ...
    def split_text(self, value: str, max_width: float, style: TextStyle) -> list[str]: ...
    def line(self, x1: float, y1: float, x2: float, y2: float, *, color: Color = BLACK, width: float = 0.2) -> None: ...
    def circle(self, x: float, y: float, radius: float, **paint) -> None: ...
    def rect(self, x: float, y: float, width: float, height: float, **paint) -> None: ...
    def rounded_rect(self, x: float, y: float, width: float, height: float, radius: float, **paint) -> None: ...
    def image(self, data: bytes, x: float, y: float, width: float, height: float) -> bool: ...
    def link(self, x: float, y: float, width: float, height: float, url: str) -> None: ...


Segment = tuple[float, float, float, float]


def format_score(score: float) -> str:
    return f'{score:g}%'


def arc_angles(score: float) -> tuple[float, float]:
    """Start and end angle (radians) of the score arc, clockwise from 12 o'clock."""
    clamped = min(100.0, max(0.0, float(score)))
    start = -math.pi / 2
    return start, start + 2 * math.pi * (clamped / 100.0)


def draw_score_arc(canvas: Canvas, score: float, x: float, y: float, radius: float) -> list[Segment]:
    clamped = min(100.0, max(0.0, float(score)))
    start, end = arc_angles(clamped)

    canvas.circle(x, y, radius, fill=WHITE, stroke=LIGHT_GREY)

    increment = (end - start) / ARC_SEGMENTS
    segments: list[Segment] = []
    angle = start
    for _ in range(ARC_SEGMENTS):
        x1 = x + radius * math.cos(angle)
        y1 = y + radius * math.sin(angle)
        angle += increment
        x2 = x + radius * math.cos(angle)
        y2 = y + radius * math.sin(angle)
        canvas.line(x1, y1, x2, y2, color=ORANGE, width=ARC_LINE_WIDTH)
        segments.append((x1, y1, x2, y2))

    canvas.text(format_score(clamped), x, y + 2, SCORE_STYLE, align='center')
    return segments


def draw_text_with_link(
    canvas: Canvas,
    text: str,
    link_text: str,
    x: float,
    y: float,
    link_color: Color,
    url: str,
    div: float = 2,
    *,
    style: TextStyle = BODY_STYLE,
) -> float:
    """Draw wrapped body text followed by a clickable link label; return the next free y."""
    max_width = canvas.page_width / div - WRAP_MARGIN
    lines = canvas.split_text(text, max_width, style)
    canvas.text(lines, x, y, style, line_height=LINKED_LINE_HEIGHT)
    y += len(lines) * LINKED_LINE_HEIGHT

    link_style = style.with_(color=link_color)
    canvas.text(link_text, x, y, link_style)
    canvas.link(x, y - link_style.height, canvas.text_width(link_text, link_style), link_style.height, url)
    y += LINK_ROW_HEIGHT
    return y


@dataclass(frozen=True)
class LegendRow:
    label: str
    color: Color
    words: str
    coverage: str | None = None
    omitted: bool = False


def draw_legend_dot(canvas: Canvas, x: float, y: float, color: Color, *, radius: float = 1.5, omitted: bool = False) -> None:
    if omitted:
        canvas.circle(x, y, radius, fill=LINK_BLUE, stroke=LINK_BLUE, width=0.5, dashed=True)
    else:
        canvas.circle(x, y, radius, fill=color)


def draw_analytics_table(
    canvas: Canvas,
    rows: Sequence[LegendRow],
    *,
    x: float,
    y: float,
    right: float,
    headers: Sequence[str] = ('Plagiarism Types', 'Test Coverage', 'Words'),
    header_offsets: Sequence[float] = (0, 40, 70),
    coverage_offset: float = 45,
    words_offset: float = 70,
    row_gap: float = 5,
    header_gap: float = 15,
    title_rule: bool = True,
) -> float:
    """Analytics title, column headers and one dot-labelled row per entry.

    An ``omitted`` row is preceded by a divider. Returns the y of the last row.
    """
    canvas.text('Analytics', x, y, TABLE_TITLE_STYLE)
    if title_rule:
        canvas.line(x, y + 5, right, y + 5, color=GREY, width=0.5)

    table_y = y + header_gap
    for label, offset in zip(headers, header_offsets):
        if label:
            canvas.text(label, x + offset, table_y, TABLE_HEADER_STYLE)
    canvas.line(x, table_y + 5, right, table_y + 5, color=GREY, width=0.5)

    current_y = table_y + 15
    for index, row in enumerate(rows):
        if index:
            current_y += row_gap
        if row.omitted:
            canvas.line(x, current_y, right, current_y, color=GREY, width=0.5)
            current_y += row_gap
        draw_legend_dot(canvas, x, current_y - 1.5, row.color, omitted=row.omitted)
        canvas.text(row.label, x + 3, current_y, TABLE_ROW_STYLE)
        if row.coverage is not None:
            canvas.text(row.coverage, x + coverage_offset, current_y, TABLE_ROW_STYLE)
        canvas.text(row.words, x + words_offset, current_y, TABLE_ROW_STYLE)
    return current_y


def draw_category_block(
    canvas: Canvas,
    x: float,
    y: float,
    color: Color,
    title: str,
    body: str,
    url: str,
    *,
    omitted: bool = False,
) -> float:
    if omitted:
        canvas.circle(x, y - 3, 3, stroke=OMITTED_BLUE, width=0.5, dashed=True)
    else:
        canvas.circle(x, y - 3, 3, fill=color)
    canvas.text(title, x + 5, y - 2, HEADING_STYLE)
    return draw_text_with_link(canvas, body, 'Learn more', x, y + 5, LINK_BLUE, url)


def draw_paired_blocks(
    canvas: Canvas,
    y: float,
    blocks: Sequence[tuple[Color, str, str, str, bool]],
    *,
    left_x: float = 15,
    row_spacing: float = 10,
) -> float:
    """Lay ``(color, title, body, url, omitted)`` blocks out two per row."""
    right_x = canvas.page_width / 2 + 5
    for index in range(0, len(blocks), 2):
        row = blocks[index:index + 2]
        ends = []
        for column, (color, title, body, url, omitted) in enumerate(row):
            column_x = left_x if column == 0 else right_x
            ends.append(draw_category_block(canvas, column_x, y, color, title, body, url, omitted=omitted))
        y = max(ends)
        if index + 2 < len(blocks):
            y += row_spacing
    return y


def draw_full_width_sections(
    canvas: Canvas,
    y: float,
    sections: Sequence[tuple[str, str, str]],
    *,
    x: float = 10,
) -> float:
    """Divider followed by ``(title, body, url)`` sections spanning the page."""
    y += 2
    canvas.line(x, y, canvas.page_width - x, y, color=DIVIDER, width=0.5)
    y += 3
    for title, body, url in sections:
        y += 2
        canvas.text(title, x, y, HEADING_STYLE)
        y = draw_text_with_link(canvas, body, 'Learn more', x, y + 5, LINK_BLUE, url, 1)
    return y


def draw_about_paragraph(canvas: Canvas, title: str, body: str, y: float, *, x: float = 10, right_margin: float = 20) -> float:
    canvas.text(title, x, y, HEADING_STYLE)
    lines = canvas.split_text(body, canvas.page_width - x - right_margin, BODY_STYLE)
    canvas.text(lines, x, y + 5, BODY_STYLE)
    return y + 5 + len(lines) * LINKED_LINE_HEIGHT


def draw_footer(canvas: Canvas, assets: AssetRegistry, settings: Settings, *, certified_caption: bool = False) -> None:
    width = canvas.page_width
    height = canvas.page_height

    canvas.text(settings.footer_text, width / 2, height - FOOTER_HEIGHT, FOOTER_STYLE, align='center')
    canvas.image(assets.load_asset(CERTIFICATE), 0, height - FOOTER_HEIGHT - 5, 50, 15)
    if certified_caption:
        canvas.text('Certified by', 5, height - FOOTER_HEIGHT - 10, TextStyle('Times-Bold', 16, GREY))

    margin = width - 60
    icon_y = height - FOOTER_HEIGHT - 5
    for index, (icon_name, url) in enumerate(settings.social_links()):
        icon_x = margin + index * 15
        canvas.image(assets.load_asset(icon_name), icon_x, icon_y, 10, 10)
        canvas.link(icon_x, icon_y, 10, 10, url)
