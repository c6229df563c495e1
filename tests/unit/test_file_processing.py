"""
Unit tests for preparing stored files as ERP attachments.
"""

import fitz
import pytest

from member_services.erp.models import FileType
from member_services.handlers.utils.errors import ValidationError
from member_services.logic.file_processing import (
    MAX_FILE_SIZE,
    FileProcessingError,
    prepare_for_upload,
    render_pdf_first_page,
)

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'


@pytest.fixture
def pdf_bytes() -> bytes:
    document = fitz.open()
    page = document.new_page(width=600, height=800)
    page.insert_text((72, 72), 'Kvittering 350 NOK')
    content = document.tobytes()
    document.close()
    return content


class TestPrepareForUpload:
    def test_pdf_is_rendered_to_png(self, pdf_bytes):
        prepared = prepare_for_upload(pdf_bytes, 'application/pdf')

        assert prepared.file_type is FileType.PNG
        assert prepared.content.startswith(PNG_SIGNATURE)

    @pytest.mark.parametrize('mime_type,file_type', [
        ('image/jpeg', FileType.JPEG),
        ('image/png', FileType.PNG),
        ('IMAGE/PNG; charset=binary', FileType.PNG),
        ('image/tiff', FileType.TIFF),
    ])
    def test_images_pass_through(self, mime_type, file_type):
        prepared = prepare_for_upload(b'image-bytes', mime_type)

        assert prepared.content == b'image-bytes'
        assert prepared.file_type is file_type

    def test_unsupported_type_is_rejected(self):
        with pytest.raises(ValidationError, match='Unsupported file type: text/plain'):
            prepare_for_upload(b'hello', 'text/plain')

    def test_too_large_file_is_rejected(self):
        with pytest.raises(ValidationError, match='10MB'):
            prepare_for_upload(b'\0' * (MAX_FILE_SIZE + 1), 'image/png')


class TestRenderPdf:
    def test_render_is_bounded_in_width(self, pdf_bytes):
        rendered = render_pdf_first_page(pdf_bytes, max_width=300)

        assert fitz.Pixmap(rendered).width == 300

    def test_broken_pdf_is_a_processing_error(self):
        with pytest.raises(FileProcessingError):
            render_pdf_first_page(b'%PDF-1.4 this is not really a pdf')
