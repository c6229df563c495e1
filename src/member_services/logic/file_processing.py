"""
Preparing stored files for the ERP attachment store.

The ERP accepts raster images only. PDFs are rendered to PNG from their first
page; anything larger than 10 MB or of another type is rejected.
"""

from dataclasses import dataclass

import fitz

from member_services.erp.models import FileType
from member_services.handlers.utils.errors import BusinessLogicError, ValidationError
from member_services.handlers.utils.observability import logger, tracer

MAX_FILE_SIZE = 10 * 1024 * 1024
MAX_RENDER_WIDTH = 2000
PDF_RENDER_ZOOM = 2.0
PDF_MIME_TYPE = 'application/pdf'

FILE_TYPE_BY_MIME = {
    'image/jpeg': FileType.JPEG,
    'image/png': FileType.PNG,
    'image/gif': FileType.GIF,
    'image/bmp': FileType.BMP,
    'image/tiff': FileType.TIFF,
}


class FileProcessingError(BusinessLogicError):
    """Raised when a file cannot be converted for upload."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code='FILE_PROCESSING_ERROR')


@dataclass(frozen=True)
class PreparedFile:
    content: bytes
    file_type: FileType


def render_pdf_first_page(content: bytes, max_width: int = MAX_RENDER_WIDTH) -> bytes:
    """First page of a PDF as PNG, at most ``max_width`` pixels wide."""
    try:
        with fitz.open(stream=content, filetype='pdf') as document:
            if document.page_count == 0:
                raise FileProcessingError('PDF has no pages')
            page = document[0]
            zoom = min(PDF_RENDER_ZOOM, max_width / page.rect.width) if page.rect.width else PDF_RENDER_ZOOM
            pixmap = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
            return pixmap.tobytes('png')
    except (RuntimeError, ValueError) as exc:
        raise FileProcessingError(f'Failed to convert PDF to image: {exc}') from exc


@tracer.capture_method(capture_response=False)
def prepare_for_upload(content: bytes, mime_type: str) -> PreparedFile:
    """
    Validate a stored file and convert it to an uploadable image.

    Args:
        content: raw file bytes
        mime_type: MIME type recorded by the file store

    Raises:
        ValidationError: the file is too large or of an unsupported type
        FileProcessingError: a PDF could not be rendered
    """
    if len(content) > MAX_FILE_SIZE:
        raise ValidationError(
            message=f'File size exceeds maximum allowed size of {MAX_FILE_SIZE // (1024 * 1024)}MB',
        )

    mime_type = (mime_type or '').split(';')[0].strip().lower()
    if mime_type == PDF_MIME_TYPE:
        rendered = render_pdf_first_page(content)
        logger.info('Converted PDF to PNG', extra={'input_bytes': len(content), 'output_bytes': len(rendered)})
        return PreparedFile(content=rendered, file_type=FileType.PNG)

    file_type = FILE_TYPE_BY_MIME.get(mime_type)
    if file_type is None:
        raise ValidationError(
            message=f'Unsupported file type: {mime_type}. Allowed types are: '
                    f'{", ".join([*FILE_TYPE_BY_MIME, PDF_MIME_TYPE])}',
        )
    return PreparedFile(content=content, file_type=file_type)
