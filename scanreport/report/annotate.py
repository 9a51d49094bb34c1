from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import pymupdf as fitz
from reportlab.graphics import renderPDF
from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing

from ..config import Settings, get_settings
from ..errors import AnnotationError
from ..storage import read_input_bytes


logger = logging.getLogger(__name__)

QR_PAGE_INDEX = 1
QR_SIZE = 200


def build_qr_pdf(value: str, *, size: float = QR_SIZE, border: int = 2) -> bytes:
    """Render ``value`` as a single-page vector QR code (black on white)."""
    widget = QrCodeWidget(value, barBorder=border)
    x0, y0, x1, y1 = widget.getBounds()
    width = max(1e-6, x1 - x0)
    height = max(1e-6, y1 - y0)
    drawing = Drawing(size, size, transform=[size / width, 0, 0, size / height, 0, 0])
    drawing.add(widget)
    return renderPDF.drawToString(drawing)


@contextmanager
def qr_document(value: str, *, border: int = 2) -> Iterator[fitz.Document]:
    """Open the generated QR code as a PyMuPDF document and always close it."""
    doc = fitz.open(stream=build_qr_pdf(value, border=border), filetype='pdf')
    try:
        yield doc
    finally:
        doc.close()


def qr_rect(page_rect: fitz.Rect, settings: Settings) -> fitz.Rect:
    x0 = page_rect.width - settings.qr_width - settings.qr_right_margin
    y0 = settings.header_image_height + settings.qr_top_offset
    return fitz.Rect(x0, y0, x0 + settings.qr_width, y0 + settings.qr_height)


def _insert_image(page: fitz.Page, rect: fitz.Rect, image: bytes, label: str) -> bool:
    if not image:
        logger.warning('No %s image bytes; skipped on page %s', label, page.number)
        return False
    page.insert_image(rect, stream=image, keep_proportion=False)
    return True


def annotate_existing_pdf(
    pdf_bytes: bytes,
    *,
    header_image: bytes,
    footer_image: bytes,
    footer_link: str | None,
    identifier: str,
    settings: Settings | None = None,
) -> bytes:
    """Stamp header/footer images on every page and a QR code on the second page.

    Documents without pages come back unchanged. ``footer_link`` is accepted
    for call compatibility and is not drawn.
    """
    settings = settings or get_settings()
    if b'%PDF' not in pdf_bytes[:1024]:
        raise AnnotationError('Input is not a PDF document', stage='annotate')

    try:
        doc = fitz.open(stream=pdf_bytes, filetype='pdf')
    except Exception as exc:
        raise AnnotationError(f'Unreadable PDF for annotation: {exc}', stage='annotate') from exc

    try:
        if doc.is_encrypted and not doc.authenticate(''):
            raise AnnotationError('PDF is encrypted; cannot annotate', stage='annotate')
        if doc.page_count == 0:
            logger.info('Document has no pages; nothing to annotate.')
            return pdf_bytes

        header_width = doc[0].rect.width
        for page in doc:
            rect = page.rect
            _insert_image(
                page,
                fitz.Rect(0, 0, header_width, settings.header_image_height),
                header_image,
                'header',
            )
            _insert_image(
                page,
                fitz.Rect(
                    0,
                    rect.height - settings.footer_image_height,
                    settings.footer_image_width,
                    rect.height,
                ),
                footer_image,
                'footer',
            )

        if doc.page_count > QR_PAGE_INDEX:
            qr_value = settings.qr_target_url(identifier)
            page = doc[QR_PAGE_INDEX]
            target = qr_rect(page.rect, settings)
            with qr_document(qr_value, border=settings.qr_border) as qr_doc:
                page.draw_rect(target, color=(0, 0, 0), fill=(1, 1, 1), width=1)
                page.show_pdf_page(target, qr_doc, 0, keep_proportion=False)
            logger.info('QR code for %s placed on page %s', qr_value, QR_PAGE_INDEX + 1)
        else:
            logger.info('Document has %s page(s); QR code skipped.', doc.page_count)

        return doc.tobytes(garbage=3, deflate=True)
    except AnnotationError:
        raise
    except Exception as exc:
        raise AnnotationError(f'Failed to annotate PDF: {exc}', stage='annotate') from exc
    finally:
        doc.close()


def annotate_existing_pdf_file(
    input_path: Path,
    *,
    header_image_path: Path,
    footer_image_path: Path,
    footer_link: str | None,
    identifier: str,
    settings: Settings | None = None,
) -> bytes:
    pdf_bytes = read_input_bytes(Path(input_path), stage='annotate')
    header_image = Path(header_image_path).read_bytes() if Path(header_image_path).is_file() else b''
    footer_image = Path(footer_image_path).read_bytes() if Path(footer_image_path).is_file() else b''
    return annotate_existing_pdf(
        pdf_bytes,
        header_image=header_image,
        footer_image=footer_image,
        footer_link=footer_link,
        identifier=identifier,
        settings=settings,
    )
