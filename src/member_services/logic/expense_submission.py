"""Submission of an expense to the invoicing flow."""

from typing import Any, Optional

from aws_lambda_powertools.metrics import MetricUnit

from member_services.clients.document_store import DocumentStoreClient
from member_services.clients.expense_flow import ExpenseFlowClient
from member_services.handlers.utils.errors import ErrorContext, ValidationError
from member_services.handlers.utils.observability import logger, metrics, tracer
from member_services.logic.expense_approval import EXPENSE_COLLECTION
from member_services.models.input import Expense
from member_services.models.output import ExpenseInvoiceResponse

ORGANIZATION = 'biso'
STATUS_SUBMITTED = 'submitted'


def _amount_text(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def flow_payload(expense: Expense) -> dict[str, Any]:
    """The body the invoicing flow expects, amounts as strings."""
    user = expense.user
    name_parts = (user.name if user else '').split(' ')
    prepayment = expense.prepayment_amount > 0
    outstanding = expense.total - expense.prepayment_amount if prepayment else expense.total

    return {
        'firstname': name_parts[0] if name_parts and name_parts[0] else None,
        'lastname': name_parts[1] if len(name_parts) > 1 else None,
        'address': user.address if user else None,
        'phone': user.phone if user else None,
        'city': user.city if user else None,
        'zip': user.zip if user else None,
        'email': user.email if user else None,
        'bank': expense.bank_account,
        'org': ORGANIZATION,
        'campus': expense.campus,
        'purpose': expense.description,
        'unit': expense.department,
        'date': expense.created_at,
        'prepayment': 'true' if prepayment else 'false',
        'prepaymentAmount': _amount_text(expense.prepayment_amount),
        'attachments': [
            {
                'attachmentDescription': attachment.description,
                'dateOfAttachment': attachment.date,
                'amount': _amount_text(attachment.amount),
                'image': attachment.url,
                'type': attachment.type,
            }
            for attachment in expense.expense_attachments
        ],
        'total': _amount_text(expense.total),
        'outstanding': _amount_text(outstanding),
    }


class ExpenseSubmissionService:
    def __init__(self, expense_flow: ExpenseFlowClient, document_store: DocumentStoreClient, database_id: str = 'app'):
        self.flow = expense_flow
        self.store = document_store
        self.database_id = database_id

    @tracer.capture_method(capture_response=False)
    def submit(self, expense: Expense, context: Optional[ErrorContext] = None) -> ExpenseInvoiceResponse:
        """Send the expense to the flow and record the invoice id it assigns."""
        if expense.user is None:
            raise ValidationError(
                message='Expense has no user',
                field_errors=[{'field': 'user', 'message': 'required'}],
                context=context,
            )

        invoice_id = self.flow.submit(flow_payload(expense))
        self.store.update_document(self.database_id, EXPENSE_COLLECTION, expense.id, {
            'status': STATUS_SUBMITTED,
            'invoice_id': invoice_id,
        })

        metrics.add_metric(name='ExpenseSubmitted', unit=MetricUnit.Count, value=1)
        logger.info('Expense submitted', extra={'expense_id': expense.id, 'invoice_id': invoice_id})
        return ExpenseInvoiceResponse(invoice_id=invoice_id)
