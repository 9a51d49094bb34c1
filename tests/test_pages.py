"""
Tests for the cover page and plagiarism page builders, run against a recording canvas.
"""

import io

import pytest
from pypdf import PdfReader

from scanreport.assets import BANNER, CATEGORY_ICONS, CERTIFICATE, InMemoryAssetRegistry
from scanreport.pipeline import build_plagiarism_section
from scanreport.report.cover_page import build_cover_page, format_scan_time
from scanreport.report.drawing import SCORE_STYLE, TABLE_ROW_STYLE
from scanreport.report.merge import merge_pdfs
from scanreport.report.plagiarism_page import CATEGORY_CAPTIONS, build_plagiarism_page, icon_positions
from scanreport.types import ScanResult


@pytest.fixture
def scan(scan_payload):
    return ScanResult.model_validate(scan_payload)


@pytest.fixture
def assets():
    names = (BANNER, CERTIFICATE, 'instagram_icon', 'facebook_icon', 'linkedin_icon', 'twitter_icon') + CATEGORY_ICONS
    return InMemoryAssetRegistry({name: name.encode('ascii') for name in names})


def styled(canvas, style):
    return [call[1] for call in canvas.of('text') if call[4] == style]


def value_after(canvas, label):
    texts = canvas.texts()
    return texts[texts.index(label) + 1]


class TestCoverPage:
    def test_legend_rows_carry_word_counts(self, fake_canvas, scan, assets, settings):
        build_cover_page(fake_canvas, scan, assets, settings)

        assert styled(fake_canvas, TABLE_ROW_STYLE) == [
            'Identical Insights', '30',
            'Minor Changes', '10',
            'Paraphrased', '11',
        ]
        assert styled(fake_canvas, SCORE_STYLE) == ['42.5%']

    def test_scan_details(self, fake_canvas, scan, assets, settings):
        build_cover_page(fake_canvas, scan, assets, settings)

        assert value_after(fake_canvas, 'Total Pages:') == '1'
        assert value_after(fake_canvas, 'Total Words:') == '120'
        scan_time = value_after(fake_canvas, 'Scan Time:')
        assert scan_time == format_scan_time(scan.scanned_document.creation_time)
        assert scan_time != '-'
        assert 'essay.docx' in fake_canvas.texts()
        assert 'Certified by' in fake_canvas.texts()

    def test_social_icons_link_to_configured_urls(self, fake_canvas, scan, assets, settings):
        build_cover_page(fake_canvas, scan, assets, settings)

        links = fake_canvas.of('link')
        assert [call[-1] for call in links] == [url for _, url in settings.social_links()]
        for (icon_name, _), link in zip(settings.social_links(), links):
            image = next(call for call in fake_canvas.of('image') if call[1] == icon_name.encode('ascii'))
            assert image[2:] == link[1:5]

    def test_banner_spans_page_width(self, fake_canvas, scan, assets, settings):
        build_cover_page(fake_canvas, scan, assets, settings)

        banner = next(call for call in fake_canvas.of('image') if call[1] == b'banner')
        assert banner[2:] == (0, 0, 210.0, 45)

    def test_empty_scan_result_uses_placeholders(self, fake_canvas, assets, settings):
        build_cover_page(fake_canvas, ScanResult(), assets, settings)

        assert value_after(fake_canvas, 'Scan Time:') == '-'
        assert value_after(fake_canvas, 'Total Words:') == '0'
        assert styled(fake_canvas, TABLE_ROW_STYLE)[1::2] == ['0', '0', '0']
        assert styled(fake_canvas, SCORE_STYLE) == ['0%']


def test_format_scan_time_without_value():
    assert format_scan_time(None) == '-'


def test_icon_positions_three_then_two():
    positions = icon_positions(210, 70)

    assert positions[:3] == [(15.0, 70), (50.0, 70), (85.0, 70)]
    assert positions[3:] == [(32.5, 100), (67.5, 100)]


class TestPlagiarismPage:
    def test_starts_a_new_page(self, fake_canvas, scan, assets, settings):
        build_plagiarism_page(fake_canvas, scan, assets, settings)

        assert fake_canvas.calls[0] == ('add_page',)
        assert fake_canvas.page_count == 2

    def test_table_rows_include_excluded_words(self, fake_canvas, scan, assets, settings):
        build_plagiarism_page(fake_canvas, scan, assets, settings)

        assert styled(fake_canvas, TABLE_ROW_STYLE) == [
            'Identical Insights', '100%', '30',
            'Minor Changes', '0%', '10',
            'Paraphrased', '0%', '11',
            'Omitted Words', '0%', '7',
        ]

    def test_category_icons_and_captions(self, fake_canvas, scan, assets, settings):
        build_plagiarism_page(fake_canvas, scan, assets, settings)

        placed = [
            (call[2], call[3])
            for name in CATEGORY_ICONS
            for call in fake_canvas.of('image')
            if call[1] == name.encode('ascii')
        ]
        assert placed == icon_positions(210.0, 70)
        for caption in CATEGORY_CAPTIONS:
            assert caption in fake_canvas.texts()
        assert 'Result (0)' in fake_canvas.texts()

    def test_explanations_link_to_learn_more_pages(self, fake_canvas, scan, assets, settings):
        build_plagiarism_page(fake_canvas, scan, assets, settings)

        urls = [call[-1] for call in fake_canvas.of('link')]
        for slug in ('identical', 'minor-changes', 'paraphrased', 'omitted-words', 'current-batch-results'):
            assert settings.learn_more_url(slug) in urls
        assert urls[-4:] == [url for _, url in settings.social_links()]

    def test_empty_scan_result_uses_placeholders(self, fake_canvas, assets, settings):
        build_plagiarism_page(fake_canvas, ScanResult(), assets, settings)

        assert styled(fake_canvas, TABLE_ROW_STYLE) == [
            'Identical Insights', '100%', '0',
            'Minor Changes', '0%', '0',
            'Paraphrased', '0%', '0',
            'Omitted Words', '0%', '0',
        ]
        assert styled(fake_canvas, SCORE_STYLE) == ['0%']


def test_section_merged_with_empty_document_keeps_content(scan, settings, empty_pdf):
    section = build_plagiarism_section(scan, InMemoryAssetRegistry(), settings)
    merged = merge_pdfs(section, empty_pdf)

    def texts(pdf_bytes):
        return [page.extract_text() for page in PdfReader(io.BytesIO(pdf_bytes)).pages]

    assert len(texts(merged)) == 2
    assert texts(merged) == texts(section)
