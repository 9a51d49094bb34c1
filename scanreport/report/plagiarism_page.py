from __future__ import annotations

from ..assets import CATEGORY_ICONS, AssetRegistry
from ..config import Settings
from ..types import ScanResult
from .canvas import TextStyle
from .drawing import (
    IDENTICAL_RED,
    LINK_BLUE,
    MINOR_RED,
    PAGE_TITLE_STYLE,
    PARAPHRASED_AMBER,
    TABLE_TITLE_STYLE,
    Canvas,
    LegendRow,
    draw_about_paragraph,
    draw_analytics_table,
    draw_footer,
    draw_full_width_sections,
    draw_paired_blocks,
    draw_score_arc,
)


CIRCLE_X = 180
CIRCLE_Y = 30
CIRCLE_RADIUS = 20

ICON_SIZE = 10
ICON_COLUMN_SPACING = 25
ICON_ROW_SPACING = 20
ICON_OFFSET_LEFT = 50

CATEGORY_CAPTIONS = (
    'Repository',
    'Internal Database',
    'Filtered/Excluded',
    'Internet Sources',
    'Current Batch',
)
CAPTION_STYLE = TextStyle('Times-Roman', 10)

ABOUT_TEXT = (
    'Our AI-powered plagiarism scans offer three layers of text similarity detection: Identical, '
    'Minor Changes, and Paraphrased. Based on your scan settings, we also provide insights on how '
    'much of the text you are not scanning for plagiarism (Omitted words).'
)


def icon_row_start(page_width: float, count: int) -> float:
    """Left edge of a centred row of ``count`` icons, shifted left by the offset correction."""
    row_width = count * ICON_SIZE + (count - 1) * ICON_COLUMN_SPACING
    return (page_width - row_width) / 2 - ICON_OFFSET_LEFT


def icon_positions(page_width: float, top: float) -> list[tuple[float, float]]:
    positions: list[tuple[float, float]] = []
    y = top
    for count in (3, 2):
        x = icon_row_start(page_width, count)
        for _ in range(count):
            positions.append((x, y))
            x += ICON_SIZE + ICON_COLUMN_SPACING
        y += ICON_SIZE + ICON_ROW_SPACING
    return positions


def draw_category_icons(canvas: Canvas, assets: AssetRegistry, top: float) -> None:
    positions = icon_positions(canvas.page_width, top)
    for (x, y), icon_name, caption in zip(positions, CATEGORY_ICONS, CATEGORY_CAPTIONS):
        canvas.image(assets.load_asset(icon_name), x, y, ICON_SIZE, ICON_SIZE)
        center = x + ICON_SIZE / 2
        canvas.text(caption, center, y + ICON_SIZE + 5, CAPTION_STYLE, align='center')
        canvas.text('0', center, y + ICON_SIZE + 10, CAPTION_STYLE, align='center')


def build_plagiarism_page(canvas: Canvas, scan: ScanResult, assets: AssetRegistry, settings: Settings) -> None:
    """Append the plagiarism analysis page."""
    canvas.add_page()
    width = canvas.page_width
    score = scan.score

    canvas.text('Plagiarism', 20, 20, PAGE_TITLE_STYLE)
    draw_score_arc(canvas, score.aggregated_score, CIRCLE_X, CIRCLE_Y, CIRCLE_RADIUS)
    canvas.text('Result (0)', width / 8, CIRCLE_Y + CIRCLE_RADIUS + 10, TABLE_TITLE_STYLE, align='center')

    top = CIRCLE_Y + CIRCLE_RADIUS + 20
    draw_category_icons(canvas, assets, top)

    table_x = width / 2 + 10
    last_row_y = draw_analytics_table(
        canvas,
        [
            LegendRow('Identical Insights', IDENTICAL_RED, str(score.identical_words), '100%'),
            LegendRow('Minor Changes', MINOR_RED, str(score.minor_changed_words), '0%'),
            LegendRow('Paraphrased', PARAPHRASED_AMBER, str(score.related_meaning_words), '0%'),
            LegendRow(
                'Omitted Words',
                LINK_BLUE,
                str(scan.scanned_document.total_excluded),
                '0%',
                omitted=True,
            ),
        ],
        x=table_x,
        y=top,
        right=table_x + (width / 2 - 20) - 10,
    )

    section_y = last_row_y + 20
    draw_about_paragraph(canvas, 'About Our Plagiarism Detection', ABOUT_TEXT, section_y)

    y = draw_paired_blocks(
        canvas,
        section_y + 25,
        [
            (
                IDENTICAL_RED,
                'Identical',
                'One-to-one exact word matches.',
                settings.learn_more_url('identical'),
                False,
            ),
            (
                MINOR_RED,
                'Minor Changes',
                "Words that hold nearly the same meaning but have a change of their form "
                "(e.g., 'large' becomes 'largely').",
                settings.learn_more_url('minor-changes'),
                False,
            ),
            (
                PARAPHRASED_AMBER,
                'Paraphrased',
                "Different words that hold the same meaning that replace the original content "
                "(e.g., 'large' becomes 'big').",
                settings.learn_more_url('paraphrased'),
                False,
            ),
            (
                LINK_BLUE,
                'Omitted Words',
                "The portion of text not being scanned for plagiarism based on the scan settings "
                "(e.g., the 'ignore quotation' setting is enabled, and the document is 20% quotation, "
                "making the omitted words percentage 20%).",
                settings.learn_more_url('omitted-words'),
                True,
            ),
        ],
    )

    draw_full_width_sections(
        canvas,
        y,
        [
            (
                f'{settings.organisation_name} Internal Database',
                'Our Internal Database is a collection of millions of user-submitted documents that you '
                'can utilize as a scan resource and choose whether or not you would like to submit the '
                'file you are scanning into the Internal Database.',
                settings.learn_more_url('internal-database'),
            ),
            (
                'Filtered and Excluded Results',
                'The report will generate a complete list of results. There is always the option to '
                'exclude specific results that are not relevant. Note, by unchecking certain results, '
                'the similarity percentage may change.',
                settings.learn_more_url('filtered-excluded-results'),
            ),
            (
                'Current Batch Results',
                'These are the results displayed from the collection, or batch, of files uploaded for a '
                'scan at the same time.',
                settings.learn_more_url('current-batch-results'),
            ),
        ],
    )

    draw_footer(canvas, assets, settings)
