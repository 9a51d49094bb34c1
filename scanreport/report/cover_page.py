from __future__ import annotations

from datetime import datetime

from ..assets import BANNER, AssetRegistry
from ..config import Settings
from ..types import ScanResult
from .canvas import BLACK, TextStyle
from .drawing import (
    BLUE,
    IDENTICAL_RED,
    MINOR_RED,
    ORANGE,
    PAGE_TITLE_STYLE,
    PARAPHRASED_AMBER,
    Canvas,
    LegendRow,
    draw_analytics_table,
    draw_footer,
    draw_score_arc,
)


BANNER_HEIGHT = 45
SCORE_RADIUS = 25

SUBTITLE_STYLE = TextStyle('Helvetica-Bold', 14)
FILENAME_STYLE = TextStyle('Courier-Oblique', 16, ORANGE)
DETAILS_TITLE_STYLE = TextStyle('Courier-Bold', 8)
DETAILS_LABEL_STYLE = TextStyle('Courier', 8)
DETAILS_VALUE_STYLE = TextStyle('Courier-Oblique', 8)
SECTION_STYLE = TextStyle('Times-Bold', 16, BLACK)


def format_scan_time(value: datetime | None) -> str:
    if value is None:
        return '-'
    local = value.astimezone() if value.tzinfo is not None else value
    return local.strftime('%x, %X')


def build_cover_page(canvas: Canvas, scan: ScanResult, assets: AssetRegistry, settings: Settings) -> None:
    """Draw the cover page onto the canvas' current (first) page."""
    width = canvas.page_width
    document = scan.scanned_document
    score = scan.score

    canvas.image(assets.load_asset(BANNER), 0, 0, width, BANNER_HEIGHT)
    draw_footer(canvas, assets, settings, certified_caption=True)

    canvas.text('Analysis Report', 10, BANNER_HEIGHT + 20, PAGE_TITLE_STYLE.with_(color=BLUE))
    canvas.text('Plagiarism Detection and AI Detection Report', 12, BANNER_HEIGHT + 30, SUBTITLE_STYLE)
    canvas.text(document.metadata.filename, 12, BANNER_HEIGHT + 36, FILENAME_STYLE)

    details_y = BANNER_HEIGHT + 30
    details_x = width - 60
    canvas.text('Scan Details', details_x, details_y, DETAILS_TITLE_STYLE)
    details = (
        ('Scan Time:', format_scan_time(document.creation_time), DETAILS_VALUE_STYLE),
        ('Total Pages:', '1', DETAILS_LABEL_STYLE),
        ('Total Words:', str(document.total_words), DETAILS_LABEL_STYLE),
    )
    for offset, (label, value, value_style) in zip((5, 9, 13), details):
        canvas.text(label, details_x, details_y + offset, DETAILS_LABEL_STYLE)
        canvas.text(value, details_x + 20, details_y + offset, value_style)

    sections_y = details_y + 20
    canvas.text('Plagiarism Detection', 25, sections_y, SECTION_STYLE)
    draw_score_arc(canvas, score.aggregated_score, 75, sections_y + 40, SCORE_RADIUS)

    draw_analytics_table(
        canvas,
        [
            LegendRow('Identical Insights', IDENTICAL_RED, str(score.identical_words)),
            LegendRow('Minor Changes', MINOR_RED, str(score.minor_changed_words)),
            LegendRow('Paraphrased', PARAPHRASED_AMBER, str(score.related_meaning_words)),
        ],
        x=25,
        y=sections_y + 80,
        right=width / 2 - 10,
        row_gap=10,
    )
