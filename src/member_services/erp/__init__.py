"""SOAP adapter for the 24SevenOffice ERP web services."""

from member_services.erp.attachments import UploadAttachmentOptions, UploadResult
from member_services.erp.client import ErpClient, ErpCredentials, ErpSession
from member_services.erp.errors import (
    EnvelopeValidationError,
    ErpAuthenticationError,
    ErpError,
    ErpFault,
    ErpProtocolError,
    ErpTransportError,
    FaultCategory,
)
from member_services.erp.schema import ensure_sequence

__all__ = [
    'EnvelopeValidationError',
    'ErpAuthenticationError',
    'ErpClient',
    'ErpCredentials',
    'ErpError',
    'ErpFault',
    'ErpProtocolError',
    'ErpSession',
    'ErpTransportError',
    'FaultCategory',
    'UploadAttachmentOptions',
    'UploadResult',
    'ensure_sequence',
]
