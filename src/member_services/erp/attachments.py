"""
Attachment operations and the chunked upload flow.

An attachment is uploaded in four steps: create a placeholder file, append
the content in base64 chunks at increasing byte offsets, obtain a stamp
number, then save the file to a location with one frame carrying the stamp
number and its metadata. A failure at any step abandons that file; a caller
retrying must start again from the placeholder.
"""

import base64
from dataclasses import dataclass, field
from typing import Optional, Sequence

from aws_lambda_powertools.metrics import MetricUnit

from member_services.erp import endpoints
from member_services.erp.envelope import Parameter
from member_services.erp.errors import EnvelopeValidationError, ErpProtocolError
from member_services.erp.models import (
    FileInfoParameters,
    FileLocation,
    FileType,
    ImageFile,
    ImageFrameInfo,
    KeyValuePair,
    StampSeries,
)
from member_services.erp.parser import result_items, result_text
from member_services.handlers.utils.observability import logger, metrics, tracer

CHUNK_SIZE = 1024 * 1024


@dataclass
class UploadAttachmentOptions:
    file_type: FileType
    content: bytes
    invoice_ocr: Optional[str] = None
    page_no: Optional[int] = None
    custom_metadata: list[KeyValuePair] = field(default_factory=list)
    # Reuse an existing stamp so several files are filed under one voucher
    stamp_no: Optional[int] = None
    location: FileLocation = FileLocation.RETRIEVAL

    def frame_metadata(self) -> list[KeyValuePair]:
        metadata = []
        if self.page_no:
            metadata.append(KeyValuePair(key='PageNo', value=str(self.page_no)))
        if self.invoice_ocr:
            metadata.append(KeyValuePair(key='InvoiceOCR', value=self.invoice_ocr))
        metadata.extend(self.custom_metadata)
        return metadata


@dataclass(frozen=True)
class UploadResult:
    file_id: str
    stamp_no: int
    chunk_count: int


def chunk_offsets(size: int, chunk_size: int = CHUNK_SIZE) -> list[tuple[int, int]]:
    """(start, end) byte ranges covering ``size`` bytes in ``chunk_size`` pieces."""
    if chunk_size <= 0:
        raise ValueError('chunk_size must be positive')
    return [(start, min(start + chunk_size, size)) for start in range(0, size, chunk_size)]


class AttachmentService:
    def __init__(self, session, chunk_size: int = CHUNK_SIZE):
        self.session = session
        self.chunk_size = chunk_size

    def _call(self, name: str, parameters: Sequence[Parameter] = ()):
        return self.session.call(endpoints.ATTACHMENT.operation(name), parameters)

    def create(self, file_type: FileType) -> ImageFile:
        result = self._call('Create', [Parameter('type', file_type)])
        if result is None:
            raise ErpProtocolError('Create returned no file', operation='Create')
        created = ImageFile.from_element(result)
        if not created.id:
            raise ErpProtocolError('Create returned a file without Id', operation='Create')
        if created.type is None:
            created = created.model_copy(update={'type': file_type})
        return created

    def append_chunk(self, file: ImageFile, buffer: str, offset: int) -> None:
        self._call('AppendChunk', [
            Parameter('file', file),
            Parameter('buffer', buffer),
            Parameter('offset', offset),
        ])

    def append_chunk_by_length(self, file: ImageFile, buffer: str, buffer_length: int, offset: int) -> None:
        self._call('AppendChunkByLength', [
            Parameter('file', file),
            Parameter('buffer', buffer),
            Parameter('bufferLength', buffer_length),
            Parameter('offset', offset),
        ])

    def download_chunk(self, file: ImageFile, offset: int, buffer_size: int) -> str:
        return result_text(self._call('DownloadChunk', [
            Parameter('file', file),
            Parameter('offset', offset),
            Parameter('bufferSize', buffer_size),
        ]))

    def get_checksum(self, file: ImageFile) -> str:
        return result_text(self._call('GetChecksum', [Parameter('file', file)]))

    def get_file_info(self, parameters: FileInfoParameters) -> list[ImageFile]:
        result = self._call('GetFileInfo', [Parameter('parameters', parameters)])
        return [ImageFile.from_element(element) for element in result_items(result, 'ImageFile')]

    def get_max_request_length(self) -> int:
        return _int_result(self._call('GetMaxRequestLength'), 'GetMaxRequestLength')

    def get_size(self, file: ImageFile) -> int:
        return _int_result(self._call('GetSize', [Parameter('file', file)]), 'GetSize')

    def save(self, file: ImageFile, location: FileLocation = FileLocation.RETRIEVAL) -> None:
        self._call('Save', [Parameter('file', file), Parameter('location', location)])

    def get_stamp_no(self) -> int:
        return _int_result(self._call('GetStampNo'), 'GetStampNo')

    def get_approver_list(self) -> list[KeyValuePair]:
        result = self._call('GetApproverList')
        return [KeyValuePair.from_element(element) for element in result_items(result, 'KeyValuePair')]

    def get_series(self) -> list[StampSeries]:
        result = self._call('GetSeries')
        return [StampSeries.from_element(element) for element in result_items(result, 'StampSeries')]

    def get_series_stamp_no(self, series_id: str) -> int:
        return _int_result(self._call('GetSeriesStampNo', [Parameter('SeriesId', series_id)]), 'GetSeriesStampNo')

    @tracer.capture_method(capture_response=False)
    def upload_attachment(self, options: UploadAttachmentOptions) -> UploadResult:
        """
        Upload one file and save it with a stamp number.

        Args:
            options: content, type and metadata for the file

        Returns:
            The placeholder id, the stamp number it was saved under and the number of chunks sent
        """
        if not options.content:
            raise EnvelopeValidationError('attachment content is empty', operation='AppendChunk')

        placeholder = self.create(options.file_type)
        chunk_file = ImageFile(id=placeholder.id, type=options.file_type)

        ranges = chunk_offsets(len(options.content), self.chunk_size)
        for index, (start, end) in enumerate(ranges, start=1):
            chunk = base64.b64encode(options.content[start:end]).decode('ascii')
            self.append_chunk(chunk_file, chunk, start)
            logger.debug('Uploaded attachment chunk', extra={
                'file_id': placeholder.id,
                'chunk': index,
                'chunk_count': len(ranges),
                'offset': start,
            })

        stamp_no = options.stamp_no if options.stamp_no is not None else self.get_stamp_no()

        frame = ImageFrameInfo(id=1, stamp_no=stamp_no, meta_data=options.frame_metadata(), status=0)
        self.save(chunk_file.model_copy(update={'frame_info': [frame]}), options.location)

        metrics.add_metric(name='AttachmentUploaded', unit=MetricUnit.Count, value=1)
        logger.info('Attachment uploaded', extra={
            'file_id': placeholder.id,
            'stamp_no': stamp_no,
            'bytes': len(options.content),
        })
        return UploadResult(file_id=placeholder.id, stamp_no=stamp_no, chunk_count=len(ranges))


def _int_result(result, operation: str) -> int:
    text = result_text(result)
    try:
        return int(text)
    except ValueError as exc:
        raise ErpProtocolError(f'{operation} returned a non-numeric result: {text!r}', operation) from exc
