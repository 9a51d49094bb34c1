from __future__ import annotations

import io
import logging
from pathlib import Path

import pymupdf as fitz
from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError

from ..errors import MergeError
from ..storage import read_input_bytes


logger = logging.getLogger(__name__)


def _open_reader(pdf_bytes: bytes, label: str) -> PdfReader:
    reader = PdfReader(io.BytesIO(pdf_bytes))
    if getattr(reader, 'is_encrypted', False):
        try:
            reader.decrypt('')
        except Exception as exc:
            raise MergeError(f'{label} is encrypted: {exc}') from exc
    return reader


def _merge_with_pypdf(source_a: bytes, source_b: bytes, skip_first_page: bool) -> bytes:
    reader_a = _open_reader(source_a, 'first PDF')
    reader_b = _open_reader(source_b, 'second PDF')

    writer = PdfWriter()
    for page in reader_a.pages:
        writer.add_page(page)

    pages_b = list(reader_b.pages)
    if skip_first_page:
        pages_b = pages_b[1:]
    for page in pages_b:
        writer.add_page(page)

    output = io.BytesIO()
    writer.write(output)
    return output.getvalue()


def _merge_with_pymupdf(source_a: bytes, source_b: bytes, skip_first_page: bool) -> bytes:
    doc_a = None
    doc_b = None
    merged = None
    try:
        doc_a = fitz.open(stream=source_a, filetype='pdf')
        doc_b = fitz.open(stream=source_b, filetype='pdf')
        for label, doc in (('first PDF', doc_a), ('second PDF', doc_b)):
            if doc.is_encrypted and not doc.authenticate(''):
                raise MergeError(f'{label} is encrypted')

        merged = fitz.open()
        if doc_a.page_count:
            merged.insert_pdf(doc_a)
        first_b = 1 if skip_first_page else 0
        if doc_b.page_count > first_b:
            merged.insert_pdf(doc_b, from_page=first_b, to_page=doc_b.page_count - 1)
        return merged.tobytes(garbage=3, deflate=True)
    finally:
        for doc in (merged, doc_b, doc_a):
            if doc is not None:
                doc.close()


def merge_pdfs(source_a: bytes, source_b: bytes, *, skip_first_page: bool = False) -> bytes:
    """Concatenate the pages of ``source_a`` and ``source_b`` into a new document.

    With ``skip_first_page`` the first page of ``source_b`` is left out. Raises
    ``MergeError`` when neither pypdf nor PyMuPDF can read both inputs.
    """
    if not source_a or not source_b:
        raise MergeError('Cannot merge an empty PDF byte stream')
    for label, source in (('first PDF', source_a), ('second PDF', source_b)):
        if b'%PDF' not in source[:1024]:
            raise MergeError(f'{label} is not a PDF document')

    try:
        return _merge_with_pypdf(source_a, source_b, skip_first_page)
    except MergeError:
        raise
    except (PyPdfError, ValueError, KeyError, TypeError, OSError) as exc:
        logger.warning('pypdf merge failed, retrying with PyMuPDF: %s', exc)

    try:
        return _merge_with_pymupdf(source_a, source_b, skip_first_page)
    except MergeError:
        raise
    except Exception as exc:
        logger.error('Failed to merge PDFs: %s', exc)
        raise MergeError(f'Failed to merge PDFs: {exc}') from exc


def merge_pdf_files(path_a: Path, path_b: Path, *, skip_first_page: bool = False) -> bytes:
    source_a = read_input_bytes(Path(path_a), stage='merge')
    source_b = read_input_bytes(Path(path_b), stage='merge')
    return merge_pdfs(source_a, source_b, skip_first_page=skip_first_page)


def count_pages(pdf_bytes: bytes) -> int:
    try:
        return len(PdfReader(io.BytesIO(pdf_bytes)).pages)
    except (PyPdfError, ValueError, KeyError, TypeError, OSError) as exc:
        raise MergeError(f'Unreadable PDF: {exc}') from exc
