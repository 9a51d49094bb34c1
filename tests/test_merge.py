"""
Tests for concatenating report sections.
"""

import io

import pytest
from pypdf import PdfReader

from scanreport.errors import MergeError
from scanreport.report.merge import count_pages, merge_pdf_files, merge_pdfs


def page_texts(pdf_bytes: bytes):
    return [page.extract_text().strip() for page in PdfReader(io.BytesIO(pdf_bytes)).pages]


class TestMergePdfs:
    def test_skip_first_page_of_second_document(self, make_pdf):
        merged = merge_pdfs(make_pdf(2, 'A'), make_pdf(3, 'B'), skip_first_page=True)
        assert page_texts(merged) == ['A1', 'A2', 'B2', 'B3']

    def test_keep_all_pages(self, make_pdf):
        merged = merge_pdfs(make_pdf(2, 'A'), make_pdf(3, 'B'))
        assert count_pages(merged) == 5
        assert page_texts(merged)[2] == 'B1'

    def test_zero_page_second_document_keeps_first(self, make_pdf, empty_pdf):
        first = make_pdf(2, 'COVER')
        merged = merge_pdfs(first, empty_pdf)
        assert page_texts(merged) == page_texts(first)

    def test_single_page_second_document_skipped_entirely(self, make_pdf):
        merged = merge_pdfs(make_pdf(2, 'A'), make_pdf(1, 'B'), skip_first_page=True)
        assert count_pages(merged) == 2

    def test_garbage_input_raises(self, make_pdf):
        with pytest.raises(MergeError):
            merge_pdfs(make_pdf(1), b'this is not a pdf at all')

    def test_empty_bytes_raise(self, make_pdf):
        with pytest.raises(MergeError):
            merge_pdfs(b'', make_pdf(1))


def test_merge_pdf_files(tmp_path, make_pdf):
    (tmp_path / 'a.pdf').write_bytes(make_pdf(1, 'A'))
    (tmp_path / 'b.pdf').write_bytes(make_pdf(2, 'B'))

    merged = merge_pdf_files(tmp_path / 'a.pdf', tmp_path / 'b.pdf', skip_first_page=True)
    assert page_texts(merged) == ['A1', 'B2']


def test_count_pages_rejects_garbage():
    with pytest.raises(MergeError):
        count_pages(b'garbage')
