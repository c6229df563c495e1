"""
Unit tests for expense metadata and the invoicing flow payload.
"""

import json
from unittest.mock import Mock

import httpx
import pytest

from member_services.clients.document_store import DocumentStoreClient
from member_services.clients.expense_flow import ExpenseFlowClient
from member_services.clients.errors import ClientUnavailableError
from member_services.erp import ErpClient
from member_services.erp.attachments import UploadResult
from member_services.erp.models import Company
from member_services.handlers.utils.errors import ValidationError
from member_services.logic.expense_approval import (
    ExpenseApprovalService,
    dimension_metadata,
    invoice_metadata,
    receipt_metadata,
)
from member_services.logic.expense_submission import ExpenseSubmissionService, flow_payload
from member_services.models.input import Expense
from member_services.models.output import FailedReceipt

EXPENSE_DOCUMENT = {
    '$id': 'exp-1',
    '$createdAt': '2024-03-02T10:00:00.000+00:00',
    'campus': 'Oslo',
    'department': 'Karrieredagene',
    'bank_account': 12345678903,
    'description': 'Mat til frivillige',
    'total': 450,
    'prepayment_amount': 100,
    'invoice_id': 4711,
    'user': {'name': 'Ola Nordmann', 'email': 'ola@example.com', 'phone': 4799999999, 'zip': 185},
    'expenseAttachments': [
        {'$id': 'a1', 'date': '2024-03-01', 'url': 'https://appwrite.test/v1/storage/buckets/b/files/f1',
         'amount': 300, 'description': 'Pizza', 'type': 'food'},
        {'$id': 'a2', 'date': '2024-03-01', 'url': 'https://appwrite.test/v1/storage/buckets/b/files/f2',
         'amount': 150.5, 'description': 'Brus'},
    ],
}


@pytest.fixture
def expense() -> Expense:
    return Expense.model_validate(EXPENSE_DOCUMENT)


class TestExpenseModel:
    def test_numbers_become_text(self, expense):
        assert expense.invoice_id == '4711'
        assert expense.bank_account == '12345678903'
        assert expense.user.zip == '185'

    def test_attachment_file_id_from_url(self, expense):
        assert [attachment.file_id for attachment in expense.expense_attachments] == ['f1', 'f2']

    def test_null_attachments(self):
        expense = Expense.model_validate({'$id': 'exp-2', 'total': 10, 'expenseAttachments': None})

        assert expense.expense_attachments == []


class TestMetadata:
    def test_dimensions(self, expense):
        pairs = dimension_metadata(expense)

        assert [(pair.key, pair.value) for pair in pairs] == [
            ('Dimension1', 'Department=Karrieredagene'),
            ('Dimension2', 'UserDefined=Oslo'),
        ]

    def test_invoice_metadata(self, expense):
        pairs = {pair.key: pair.value for pair in invoice_metadata(expense, 2001)}

        assert pairs['InvoiceNo'] == '4711'
        assert pairs['InvoiceOCR'] == '4711'
        assert pairs['CustomerNo'] == '2001'
        assert pairs['Amount'] == '450.0'
        assert pairs['Credit'] == '7610'
        assert pairs['Debit'] == '2400'
        assert pairs['BankAccountNo'] == '12345678903'

    def test_receipt_metadata_skips_missing_values(self, expense):
        pairs = {pair.key: pair.value for pair in receipt_metadata(expense, expense.expense_attachments[1])}

        assert pairs['Amount'] == '150.5'
        assert pairs['Comment'] == 'Brus'
        assert 'Type' not in pairs


class TestFlowPayload:
    def test_payload(self, expense):
        payload = flow_payload(expense)

        assert payload['firstname'] == 'Ola'
        assert payload['lastname'] == 'Nordmann'
        assert payload['org'] == 'biso'
        assert payload['prepayment'] == 'true'
        assert payload['prepaymentAmount'] == '100'
        assert payload['total'] == '450'
        assert payload['outstanding'] == '350'
        assert payload['attachments'][1] == {
            'attachmentDescription': 'Brus',
            'dateOfAttachment': '2024-03-01',
            'amount': '150.5',
            'image': 'https://appwrite.test/v1/storage/buckets/b/files/f2',
            'type': None,
        }

    def test_without_prepayment_outstanding_is_total(self, expense):
        expense.prepayment_amount = 0

        payload = flow_payload(expense)

        assert payload['prepayment'] == 'false'
        assert payload['outstanding'] == '450'


class TestSubmission:
    def test_submit_records_invoice_id(self, expense, http_client, backend, document_store):
        backend.route('POST', '/expense', {'invoiceId': 5001})
        backend.route('PATCH', '/collections/expense/documents/exp-1', {'$id': 'exp-1'})
        flow = ExpenseFlowClient('https://flow.test/expense', http_client=http_client)

        response = ExpenseSubmissionService(flow, document_store).submit(expense)

        assert response.to_json() == '{"status":"ok","invoiceId":"5001"}'
        patch = backend.sent('PATCH', '/collections/expense/documents/exp-1')[0]
        assert json.loads(patch.content) == {'data': {'status': 'submitted', 'invoice_id': '5001'}}

    def test_flow_without_invoice_id(self, http_client, backend):
        backend.route('POST', '/expense', {'ok': True})
        flow = ExpenseFlowClient('https://flow.test/expense', http_client=http_client)

        with pytest.raises(ClientUnavailableError, match='invoiceId'):
            flow.submit({})

    def test_expense_without_user_is_rejected(self, expense):
        expense.user = None
        flow = Mock(spec=ExpenseFlowClient)

        with pytest.raises(ValidationError):
            ExpenseSubmissionService(flow, Mock()).submit(expense)

        flow.submit.assert_not_called()


class TestApprovalReceiptFailures:
    @pytest.fixture
    def store(self):
        store = Mock(spec=DocumentStoreClient)
        store.get_document.return_value = EXPENSE_DOCUMENT
        store.get_file.return_value = {'mimeType': 'image/png'}
        store.get_file_download.return_value = b'png-bytes'
        return store

    def test_connection_error_on_a_receipt_is_recorded(self, store):
        """Test that an unexpected transport error on one receipt does not abort the rest."""
        erp = Mock(spec=ErpClient)
        session = erp.login.return_value
        session.companies.search_company.return_value = Company(id=2001, name='Ola Nordmann')
        session.attachments.upload_attachment.side_effect = [
            UploadResult(file_id='guid-0', stamp_no=777, chunk_count=1),
            httpx.ConnectError('Connection reset by peer'),
            UploadResult(file_id='guid-2', stamp_no=777, chunk_count=1),
        ]

        response = ExpenseApprovalService(erp, store).approve('exp-1')

        assert response.uploaded_receipts == 1
        assert response.failed_receipts == [FailedReceipt(id='a1', error='Connection reset by peer')]
        assert session.attachments.upload_attachment.call_count == 3
        store.update_document.assert_called_once_with('app', 'expense', 'exp-1', {
            'status': 'approved',
            'stampNo': 777,
        })
