from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Sequence

from ..assets import AssetRegistry
from ..config import Settings
from ..types import AiDetectionResult, CrawledVersion
from .canvas import BLACK, WHITE, TextStyle
from .drawing import (
    AI_PURPLE,
    HIGHLIGHT_TEXT,
    HUMAN_GREY,
    LINK_BLUE,
    PAGE_TITLE_STYLE,
    Canvas,
    LegendRow,
    draw_about_paragraph,
    draw_analytics_table,
    draw_footer,
    draw_full_width_sections,
    draw_paired_blocks,
    draw_score_arc,
)


logger = logging.getLogger(__name__)

PAGE_TOP = 20
PAGE_BOTTOM = 280
LEFT_MARGIN = 10
COLUMN_PADDING = 5
PHRASE_ROW_HEIGHT = 10
PHRASE_EXTRA_LINE = 5
TEXT_LINE_HEIGHT = 8

PHRASE_HEADER_STYLE = TextStyle('Helvetica-Bold', 10)
BADGE_STYLE = TextStyle('Helvetica-Bold', 10, WHITE)
PHRASE_STYLE = TextStyle('Helvetica-Bold', 10)
STATISTIC_STYLE = TextStyle('Helvetica', 10)
WORD_STYLE = TextStyle('Helvetica', 10)

ABOUT_TEXT = (
    'Our AI Detector is the only enterprise-level solution that can verify if the content was written '
    'by a human or generated by AI, including source code and text that has been plagiarized or modified'
)


@dataclass(frozen=True)
class AiBreakdown:
    total_ai_words: int
    total_words: int
    ai_percentage: float
    human_words: int
    human_percentage: float


@dataclass(frozen=True)
class InsufficientData:
    """The detection result carries no usable total word count."""

    reason: str
    total_ai_words: int = 0
    total_words: int = 0
    ai_percentage: float = 0.0
    human_words: int = 0
    human_percentage: float = 0.0


@dataclass(frozen=True)
class PhraseStat:
    phrase: str
    ratio: float
    ai_count: float
    human_count: float
    start: int
    length: int

    @property
    def badge(self) -> str:
        # half-up rounding of the AI/human frequency ratio
        return f'{int(math.floor(self.ratio + 0.5))}X'


@dataclass(frozen=True)
class PlacedWord:
    page: int
    x: float
    y: float
    width: float
    word: str
    highlighted: bool


def compute_ai_breakdown(ai: AiDetectionResult) -> AiBreakdown | InsufficientData:
    total_ai_words = sum(ai.lengths)
    total_words = ai.total_word_count
    if total_words <= 0:
        return InsufficientData(
            reason='total word count is zero',
            total_ai_words=total_ai_words,
            total_words=total_words,
        )

    ai_percentage = total_ai_words / total_words * 100
    return AiBreakdown(
        total_ai_words=total_ai_words,
        total_words=total_words,
        ai_percentage=ai_percentage,
        human_words=total_words - total_ai_words,
        human_percentage=100 - ai_percentage,
    )


def phrase_ratio(ai_count: float, human_count: float) -> float:
    if not human_count:
        return 0.0
    return ai_count / human_count


def slice_phrase(tokens: Sequence[str], start: int, length: int) -> str:
    if start < 0 or length <= 0 or start >= len(tokens):
        return ''
    return ' '.join(tokens[start:start + length])


def tokenize_text(crawled: CrawledVersion) -> list[str]:
    """Whitespace tokens that the detector's word-index spans refer to."""
    return crawled.text.value.split()


def build_phrase_stats(
    ai: AiDetectionResult,
    crawled: CrawledVersion,
    tokens: Sequence[str] | None = None,
) -> list[PhraseStat]:
    if tokens is None:
        tokens = tokenize_text(crawled)
    stats = [
        PhraseStat(
            phrase=slice_phrase(tokens, span.start, span.length),
            ratio=phrase_ratio(span.ai_count, span.human_count),
            ai_count=span.ai_count,
            human_count=span.human_count,
            start=span.start,
            length=span.length,
        )
        for span in ai.spans()
    ]
    return sorted(stats, key=lambda stat: stat.ratio, reverse=True)


def layout_highlighted_words(
    tokens: Sequence[str],
    starts: Sequence[int],
    measure: Callable[[str], float],
    page_width: float,
) -> list[PlacedWord]:
    """Greedy left-to-right word placement with wrapping and page breaks.

    ``measure`` returns the advance width of a token including its trailing space.
    """
    highlighted_indices = set(starts)
    right_edge = page_width - LEFT_MARGIN
    page = 0
    x = float(LEFT_MARGIN)
    y = float(PAGE_TOP)
    placed: list[PlacedWord] = []

    for index, word in enumerate(tokens):
        if not word.strip():
            continue
        width = measure(word + ' ')
        if x > LEFT_MARGIN and x + width > right_edge:
            x = float(LEFT_MARGIN)
            y += TEXT_LINE_HEIGHT
            if y > PAGE_BOTTOM:
                page += 1
                y = float(PAGE_TOP)
        placed.append(PlacedWord(page, x, y, width, word, index in highlighted_indices))
        x += width
    return placed


def _draw_summary_page(
    canvas: Canvas,
    breakdown: AiBreakdown | InsufficientData,
    assets: AssetRegistry,
    settings: Settings,
) -> None:
    width = canvas.page_width
    canvas.text('AI Content', 20, 20, PAGE_TITLE_STYLE)
    draw_score_arc(canvas, round(breakdown.ai_percentage, 2), 180, 30, 20)

    table_x = width / 2 + 10
    top = 70
    last_row_y = draw_analytics_table(
        canvas,
        [
            LegendRow('AI Text', AI_PURPLE, str(breakdown.total_ai_words), f'{breakdown.ai_percentage:.2f}%'),
            LegendRow('Human Text', HUMAN_GREY, str(breakdown.human_words), f'{breakdown.human_percentage:.2f}%'),
            LegendRow('Omitted Words', LINK_BLUE, '0', '0%', omitted=True),
        ],
        x=table_x,
        y=top,
        right=table_x + (width / 2 - 20) - 10,
        headers=('', 'Test Coverage', 'Words'),
        header_gap=5,
        title_rule=False,
    )

    section_y = last_row_y + 20
    draw_about_paragraph(canvas, 'About Our AI Detection', ABOUT_TEXT, section_y)

    y = draw_paired_blocks(
        canvas,
        section_y + 25,
        [
            (
                AI_PURPLE,
                'AI Text',
                'A body of the text that has been generated or altered by AI technology.',
                settings.learn_more_url('ai-text'),
                False,
            ),
            (
                HUMAN_GREY,
                'Human Text',
                'Any text that has been fully written by a human and has not been altered or generated by AI.',
                settings.learn_more_url('human-text'),
                False,
            ),
        ],
    )

    draw_full_width_sections(
        canvas,
        y,
        [
            (
                f'{settings.organisation_name} AI Detector Effectiveness',
                'Credible data at scale, coupled with machine learning and widespread adoption, allows us '
                'to continually refine and improve our ability to understand complex text patterns, '
                'resulting in over 99% accuracy, far higher than any other AI detector, and improving daily.',
                settings.learn_more_url('ai-detector-effectiveness'),
            ),
            (
                'Ideal Text Length',
                'The higher the character count, the easier for our technology to determine irregular '
                'patterns, which results in a higher confidence rating for AI detection.',
                settings.learn_more_url('ideal-text-length'),
            ),
            (
                "Reasons It Might Be AI When You Think It's Not",
                'The AI Detector can detect a variety of AI-generated text, including tools that use AI '
                'technology to paraphrase content, auto-complete sentences, and more.',
                settings.learn_more_url('ai-false-positives'),
            ),
            (
                'User AI Alert History',
                'Historical data of how many times a user has been flagged for potentially having AI text '
                'within their content.',
                settings.learn_more_url('ai-alert-history'),
            ),
            (
                'AI Insights',
                'The number of times a phrase was found more frequently in AI vs. human text is shown '
                'according to low, medium, and high frequency.',
                settings.learn_more_url('ai-insights'),
            ),
        ],
    )

    draw_footer(canvas, assets, settings)


def _phrase_lines(canvas: Canvas, stat: PhraseStat, column_width: float) -> tuple[float, list[str]]:
    badge_width = canvas.text_width(stat.badge, BADGE_STYLE)
    available = max(10.0, column_width - badge_width - 10)
    return badge_width, canvas.split_text(stat.phrase, available, PHRASE_STYLE) or ['']


def _box_height(lines: Sequence[str]) -> float:
    return PHRASE_ROW_HEIGHT + (len(lines) - 1) * PHRASE_EXTRA_LINE


def phrase_block_height(canvas: Canvas, stat: PhraseStat, column_width: float) -> float:
    """Vertical space one phrase entry takes, badge box through the human count line."""
    _, lines = _phrase_lines(canvas, stat, column_width)
    return _box_height(lines) + PHRASE_ROW_HEIGHT + PHRASE_ROW_HEIGHT * 1.2


def _write_phrase(canvas: Canvas, stat: PhraseStat, x: float, y: float, column_width: float) -> float:
    badge_width, lines = _phrase_lines(canvas, stat, column_width)
    line_width = max(canvas.text_width(line, PHRASE_STYLE) for line in lines)
    box_height = _box_height(lines)

    canvas.rounded_rect(
        x,
        y - 6,
        min(column_width, badge_width + line_width + 10),
        box_height,
        3,
        fill=AI_PURPLE,
        stroke=BLACK,
        line_width=0.5,
    )
    canvas.text(stat.badge, x + 2, y, BADGE_STYLE)
    canvas.text(lines, x + badge_width + 5, y, PHRASE_STYLE, line_height=PHRASE_EXTRA_LINE)
    y += box_height

    canvas.text(f'AI text: {stat.ai_count:.2f} / 1,000,000 Documents', x + 5, y, STATISTIC_STYLE)
    y += PHRASE_ROW_HEIGHT
    canvas.text(f'Human text: {stat.human_count:.2f} / 1,000,000 Documents', x + 5, y, STATISTIC_STYLE)
    y += PHRASE_ROW_HEIGHT * 1.2
    return y


def _draw_phrase_pages(canvas: Canvas, stats: Sequence[PhraseStat]) -> None:
    canvas.add_page()
    column_width = (canvas.page_width - 30) / 2
    right_x = LEFT_MARGIN + column_width + COLUMN_PADDING

    y = float(PAGE_TOP)
    canvas.text('AI & Human Phrase Analysis', LEFT_MARGIN, y, PHRASE_HEADER_STYLE)
    y += 15
    page_start = y

    for index in range(0, len(stats), 2):
        row = stats[index:index + 2]
        row_height = max(phrase_block_height(canvas, stat, column_width) for stat in row)
        # a row never starts a page it cannot fit on, unless it is the page's first row
        if y + row_height > PAGE_BOTTOM and y > page_start:
            canvas.add_page()
            y = page_start = float(PAGE_TOP)

        row_end = _write_phrase(canvas, row[0], LEFT_MARGIN, y, column_width)
        if len(row) > 1:
            row_end = max(row_end, _write_phrase(canvas, row[1], right_x, y, column_width))
        y = row_end


def _draw_highlighted_text_pages(canvas: Canvas, tokens: Sequence[str], starts: Sequence[int]) -> int:
    canvas.add_page()
    placed = layout_highlighted_words(
        tokens,
        starts,
        lambda value: canvas.text_width(value, WORD_STYLE),
        canvas.page_width,
    )

    current_page = 0
    highlighted = 0
    for word in placed:
        while word.page > current_page:
            canvas.add_page()
            current_page += 1
        if word.highlighted:
            highlighted += 1
            canvas.rect(word.x - 1, word.y - WORD_STYLE.height - 1, word.width + 1, WORD_STYLE.height + 2.5, fill=AI_PURPLE)
            canvas.text(word.word, word.x, word.y, WORD_STYLE.with_(color=HIGHLIGHT_TEXT))
        else:
            canvas.text(word.word, word.x, word.y, WORD_STYLE)
    return highlighted


def build_ai_report(
    canvas: Canvas,
    ai: AiDetectionResult,
    crawled: CrawledVersion,
    assets: AssetRegistry,
    settings: Settings,
) -> AiBreakdown | InsufficientData:
    """Draw the AI summary, phrase analysis and highlighted text pages.

    The summary uses the canvas' current page; the other sections start new pages.
    Phrases and highlights index the same whitespace tokens.
    """
    breakdown = compute_ai_breakdown(ai)
    if isinstance(breakdown, InsufficientData):
        logger.warning('AI breakdown unavailable (%s); rendering 0%% placeholders.', breakdown.reason)

    _draw_summary_page(canvas, breakdown, assets, settings)

    tokens = tokenize_text(crawled)
    stats = build_phrase_stats(ai, crawled, tokens)
    _draw_phrase_pages(canvas, stats)

    highlighted = _draw_highlighted_text_pages(canvas, tokens, ai.starts)
    logger.info('AI report drawn: %s phrases, %s highlighted words', len(stats), highlighted)
    return breakdown
