"""
Shared fixtures: a recording canvas, scan payloads and small PDF builders.
"""

import io
import json
from pathlib import Path
from typing import Any, Callable, Dict, List

import pymupdf as fitz
import pytest
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas as pdfcanvas
from pypdf import PdfWriter

from scanreport.config import Settings


class FakeCanvas:
    """Records every drawing call made by the page builders."""

    def __init__(self, page_width: float = 210.0, page_height: float = 297.0, wrap_lines: int | None = None):
        self.page_width = page_width
        self.page_height = page_height
        self.wrap_lines = wrap_lines
        self.calls: List[tuple] = []
        self.page_count = 1

    def add_page(self) -> None:
        self.page_count += 1
        self.calls.append(('add_page',))

    def text(self, value, x, y, style, *, align='left', line_height=None) -> None:
        self.calls.append(('text', value, x, y, style, align))

    def text_width(self, value, style) -> float:
        return len(value) * 2.0

    def split_text(self, value, max_width, style) -> List[str]:
        if not value:
            return []
        if self.wrap_lines is not None:
            return [value] * self.wrap_lines
        return [value]

    def line(self, x1, y1, x2, y2, *, color=(0, 0, 0), width=0.2) -> None:
        self.calls.append(('line', x1, y1, x2, y2, color))

    def circle(self, x, y, radius, **paint) -> None:
        self.calls.append(('circle', x, y, radius, paint))

    def rect(self, x, y, width, height, **paint) -> None:
        self.calls.append(('rect', x, y, width, height, paint))

    def rounded_rect(self, x, y, width, height, radius, **paint) -> None:
        self.calls.append(('rounded_rect', x, y, width, height, paint))

    def image(self, data, x, y, width, height) -> bool:
        self.calls.append(('image', data, x, y, width, height))
        return bool(data)

    def link(self, x, y, width, height, url) -> None:
        self.calls.append(('link', x, y, width, height, url))

    def of(self, kind: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == kind]

    def texts(self) -> List[Any]:
        return [call[1] for call in self.of('text')]


@pytest.fixture
def fake_canvas():
    return FakeCanvas()


@pytest.fixture
def settings(tmp_path):
    reports = tmp_path / 'ScanDoc'
    reports.mkdir()
    return Settings(
        reports_dir=reports,
        assets_dir=tmp_path / 'assets',
        qr_base_url='https://reports.example.com',
        footer_link='https://example.com/certificate',
    )


@pytest.fixture
def png_bytes() -> bytes:
    pix = fitz.Pixmap(fitz.csRGB, fitz.IRect(0, 0, 4, 4), False)
    pix.clear_with(200)
    return pix.tobytes('png')


@pytest.fixture
def scan_payload() -> Dict[str, Any]:
    return {
        'scannedDocument': {
            'metadata': {'filename': 'essay.docx'},
            'creationTime': 1700000000000,
            'totalWords': 120,
            'totalExcluded': 7,
        },
        'results': {
            'score': {
                'aggregatedScore': 42.5,
                'identicalWords': 30,
                'minorChangedWords': 10,
                'relatedMeaningWords': 11,
            }
        },
    }


@pytest.fixture
def ai_payload() -> Dict[str, Any]:
    return {
        'explain': {
            'patterns': {
                'text': {'words': {'starts': [0, 5], 'lengths': [3, 2]}},
                'statistics': {'aiCount': [12.0, 3.0], 'humanCount': [2.0, 1.0]},
            }
        },
        'results': [{'matches': [{'text': {'words': {'starts': [0], 'lengths': [10]}}}]}],
    }


@pytest.fixture
def crawled_payload() -> Dict[str, Any]:
    return {'text': {'value': 'the quick brown fox jumps over the lazy dog today'}}


def build_pdf(num_pages: int, label: str = 'P') -> bytes:
    """A4 PDF whose pages read ``<label>1``, ``<label>2`` and so on."""
    buffer = io.BytesIO()
    c = pdfcanvas.Canvas(buffer, pagesize=A4)
    for index in range(num_pages):
        c.drawString(72, 720, f'{label}{index + 1}')
        c.showPage()
    c.save()
    return buffer.getvalue()


def build_empty_pdf() -> bytes:
    buffer = io.BytesIO()
    PdfWriter().write(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_pdf() -> Callable[..., bytes]:
    return build_pdf


@pytest.fixture
def empty_pdf() -> bytes:
    return build_empty_pdf()


@pytest.fixture
def scan_folder(settings, scan_payload, ai_payload, crawled_payload) -> Path:
    folder = settings.reports_dir / 'user-1' / 'scan-1'
    folder.mkdir(parents=True)
    (folder / 'scan_results.json').write_text(json.dumps(scan_payload), encoding='utf-8')
    (folder / 'ai_result.json').write_text(json.dumps(ai_payload), encoding='utf-8')
    (folder / 'crawled_version.json').write_text(json.dumps(crawled_payload), encoding='utf-8')
    (folder / 'plagiarism_report.pdf').write_bytes(build_pdf(3, 'EXPORT'))
    return folder
