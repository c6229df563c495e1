"""
Approval of a submitted expense into the ERP attachment store.

The generated invoice document is uploaded first and its stamp number becomes
the grouping for every receipt. A failed invoice upload fails the whole
approval. A failed receipt is recorded with its error and the remaining
receipts are still uploaded under the same stamp.
"""

from typing import Any, Optional, Union

import httpx
from aws_lambda_powertools.metrics import MetricUnit

from member_services.clients.document_store import DocumentStoreClient
from member_services.clients.errors import ClientError
from member_services.erp import ErpClient, ErpError, ErpSession, UploadAttachmentOptions
from member_services.erp.models import (
    Company,
    CompanyEmailAddresses,
    CompanyType,
    EmailAddress,
    KeyValuePair,
    UserDefinedDimensionKey,
)
from member_services.handlers.utils.errors import BaseServiceError, ErrorContext, ValidationError
from member_services.handlers.utils.observability import logger, metrics, tracer
from member_services.logic.file_processing import PreparedFile, prepare_for_upload
from member_services.models.input import Expense, ExpenseAttachment, ExpenseUser
from member_services.models.output import ExpenseApprovalResponse, FailedReceipt

EXPENSE_COLLECTION = 'expense'
INVOICE_BUCKET = 'expense_invoices'
ATTACHMENT_BUCKET = 'expense_attachments'

CREDIT_ACCOUNT = '7610'
DEBIT_ACCOUNT = '2400'

STATUS_APPROVED = 'approved'

# a receipt failing with any of these is recorded and the next receipt is tried
RECEIPT_FAILURES = (BaseServiceError, ErpError, ClientError, httpx.HTTPError, ValueError)
ReceiptFailure = Union[BaseServiceError, ErpError, ClientError, httpx.HTTPError, ValueError]


def _pairs(*items: tuple[str, Any]) -> list[KeyValuePair]:
    """Metadata pairs, skipping values the expense does not have."""
    return [KeyValuePair(key=key, value=str(value)) for key, value in items if value not in (None, '')]


def dimension_metadata(expense: Expense) -> list[KeyValuePair]:
    """Department and campus dimensions as ``DimensionN = Type=Value`` pairs."""
    dimensions = [
        (UserDefinedDimensionKey.DEPARTMENT, expense.department),
        (UserDefinedDimensionKey.USER_DEFINED, expense.campus),
    ]
    return [
        KeyValuePair(key=f'Dimension{index}', value=f'{dimension.value}={value if value is not None else ""}')
        for index, (dimension, value) in enumerate(dimensions, start=1)
    ]


def invoice_metadata(expense: Expense, customer_id: Optional[int]) -> list[KeyValuePair]:
    return _pairs(
        ('InvoiceNo', expense.invoice_id),
        ('CustomerNo', customer_id),
        ('InvoiceOCR', expense.invoice_id),
        ('Amount', expense.total),
        ('Credit', CREDIT_ACCOUNT),
        ('Debit', DEBIT_ACCOUNT),
        ('InvoiceDate', expense.created_at),
        ('BankAccountNo', expense.bank_account),
    ) + dimension_metadata(expense)


def receipt_metadata(expense: Expense, attachment: ExpenseAttachment) -> list[KeyValuePair]:
    return _pairs(
        ('Amount', attachment.amount),
        ('Comment', attachment.description),
        ('InvoiceDate', attachment.date),
        ('Type', attachment.type),
    ) + dimension_metadata(expense)


def _failure_message(exc: ReceiptFailure) -> str:
    if isinstance(exc, (BaseServiceError, ClientError)):
        return exc.message
    return str(exc) or type(exc).__name__


class ExpenseApprovalService:
    """Uploads an expense's invoice and receipts to the ERP and marks it approved."""

    def __init__(
        self,
        erp_client: ErpClient,
        document_store: DocumentStoreClient,
        database_id: str = 'app',
    ):
        self.erp = erp_client
        self.store = document_store
        self.database_id = database_id

    def load_expense(self, expense_id: str) -> Expense:
        document = self.store.get_document(self.database_id, EXPENSE_COLLECTION, expense_id)
        return Expense.model_validate(document)

    def download(self, bucket_id: str, file_id: str) -> PreparedFile:
        metadata = self.store.get_file(bucket_id, file_id) or {}
        content = self.store.get_file_download(bucket_id, file_id)
        return prepare_for_upload(content, metadata.get('mimeType', ''))

    def resolve_customer(self, session: ErpSession, user: ExpenseUser) -> Optional[int]:
        """Existing ERP customer for the expense owner, created when there is none."""
        customer = session.companies.search_company(user.name, user.email)
        if customer is None:
            email = CompanyEmailAddresses(primary=EmailAddress(value=user.email)) if user.email else None
            customer = session.companies.create_company(
                Company(name=user.name, type=CompanyType.CONSUMER, email_addresses=email)
            )
            metrics.add_metric(name='CustomerCreated', unit=MetricUnit.Count, value=1)
            logger.info('Created ERP customer for expense owner', extra={'customer_id': customer.id})
        return customer.id

    def _upload_receipt(
        self,
        session: ErpSession,
        expense: Expense,
        attachment: ExpenseAttachment,
        page_no: int,
        stamp_no: int,
    ) -> None:
        prepared = self.download(ATTACHMENT_BUCKET, attachment.file_id)
        session.attachments.upload_attachment(UploadAttachmentOptions(
            file_type=prepared.file_type,
            content=prepared.content,
            page_no=page_no,
            stamp_no=stamp_no,
            custom_metadata=receipt_metadata(expense, attachment),
        ))

    @tracer.capture_method(capture_response=False)
    def approve(self, expense_id: str, context: Optional[ErrorContext] = None) -> ExpenseApprovalResponse:
        """
        Approve one expense.

        Args:
            expense_id: expense document id
            context: error context for tracing

        Returns:
            The stamp number plus the receipts that failed, if any
        """
        expense = self.load_expense(expense_id)
        if not expense.invoice_id:
            raise ValidationError(message='Invoice not yet generated', context=context)
        if expense.user is None:
            raise ValidationError(message='Expense has no user', context=context)

        tracer.put_annotation('expense_id', expense_id)
        tracer.put_annotation('receipt_count', len(expense.expense_attachments))

        session = self.erp.login()
        customer_id = self.resolve_customer(session, expense.user)

        invoice_file = self.download(INVOICE_BUCKET, f'invoice_{expense.invoice_id}')
        invoice = session.attachments.upload_attachment(UploadAttachmentOptions(
            file_type=invoice_file.file_type,
            content=invoice_file.content,
            custom_metadata=invoice_metadata(expense, customer_id),
        ))
        logger.info('Expense invoice uploaded', extra={'expense_id': expense_id, 'stamp_no': invoice.stamp_no})

        failed: list[FailedReceipt] = []
        warnings: list[str] = []
        for page_no, attachment in enumerate(expense.expense_attachments, start=1):
            try:
                self._upload_receipt(session, expense, attachment, page_no, invoice.stamp_no)
            except RECEIPT_FAILURES as exc:
                message = _failure_message(exc)
                receipt_id = attachment.id or attachment.file_id
                failed.append(FailedReceipt(id=receipt_id, error=message))
                warnings.append(f'Receipt {page_no} ({receipt_id}) was not uploaded: {message}')
                metrics.add_metric(name='ReceiptUploadFailed', unit=MetricUnit.Count, value=1)
                logger.warning('Receipt upload failed', extra={
                    'expense_id': expense_id,
                    'receipt_id': receipt_id,
                    'page_no': page_no,
                    'error': message,
                })
                continue
            logger.info('Receipt uploaded', extra={'expense_id': expense_id, 'page_no': page_no})

        self.store.update_document(self.database_id, EXPENSE_COLLECTION, expense_id, {
            'status': STATUS_APPROVED,
            'stampNo': invoice.stamp_no,
        })

        uploaded = len(expense.expense_attachments) - len(failed)
        metrics.add_metric(name='ExpenseApproved', unit=MetricUnit.Count, value=1)
        return ExpenseApprovalResponse(
            stamp_no=invoice.stamp_no,
            message=f'Successfully uploaded invoice and {uploaded} receipts',
            uploaded_receipts=uploaded,
            failed_receipts=failed or None,
            warnings=warnings or None,
        )
