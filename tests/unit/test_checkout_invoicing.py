"""
Unit tests for invoicing paid checkouts against a faked ERP.
"""

import json
from datetime import date

import pytest
from pydantic import ValidationError as PydanticValidationError

from member_services.erp import ErpFault
from member_services.erp.schema import find_child, find_children, local_name
from member_services.logic import membership_rules
from member_services.logic.checkout_invoicing import CheckoutInvoiceService, CheckoutNotPaidError
from member_services.models.input import PaidCheckoutRequest

EXISTING_CUSTOMER = '<Company><Id>1234567</Id><Name>Kari Nordmann</Name></Company>'
SAVED_INVOICE = '<InvoiceOrder><InvoiceId>9101</InvoiceId></InvoiceOrder>'


def paid_checkout(**overrides) -> dict:
    checkout = {
        '$id': 'ref-1',
        'reference': 'ref-1',
        'amount': 35000,
        'description': 'Medlemskap semester',
        'membership_id': '50',
        'membership': {'$id': '50', 'category': 113170, 'name': 'Semester'},
        'status': 'PaymentSuccessful',
        'paid_amount': 35000,
        'payment_method': 'Wallet',
        'user_id': 'user-1',
        'user': {
            'name': 'Kari Nordmann',
            'email': 'kari@example.com',
            'student_id': 's1234567',
            'campus': {'$id': '2', 'name': 'Bergen'},
        },
    }
    checkout.update(overrides)
    return checkout


def _service(erp_client, **flags) -> CheckoutInvoiceService:
    return CheckoutInvoiceService(erp_client, today=lambda: date(2024, 8, 15), **flags)


def _saved_order(backend):
    return find_children(backend.calls('SaveInvoices')[0].parameter('invoices'), 'InvoiceOrder')[0]


class TestCheckoutAccrual:
    @pytest.mark.parametrize('today,expected', [
        (date(2024, 2, 10), date(2024, 7, 1)),
        (date(2024, 6, 30), date(2024, 7, 1)),
        (date(2024, 7, 1), date(2025, 1, 1)),
        (date(2024, 12, 31), date(2025, 1, 1)),
    ])
    def test_next_half_year(self, today, expected):
        assert membership_rules.checkout_accrual_date(today) == expected


class TestPaidCheckoutRequest:
    def test_membership_stored_as_json_text(self):
        request = PaidCheckoutRequest.model_validate(paid_checkout(
            membership=json.dumps({'category': 113172, 'name': 'Year'}),
        ))

        assert request.membership.category == 113172
        assert request.membership.name == 'Year'
        assert request.product_id == 50

    def test_malformed_membership_text(self):
        with pytest.raises(PydanticValidationError, match='membership is not valid JSON'):
            PaidCheckoutRequest.model_validate(paid_checkout(membership='{not json'))

    def test_expanded_student_relation(self):
        checkout = paid_checkout()
        checkout['user']['student_id'] = {'$id': 'st-1', 'student_id': 's7654321', 'isMember': True}

        request = PaidCheckoutRequest.model_validate(checkout)

        assert request.user.student_id == 's7654321'


class TestInvoiceCheckout:
    def test_existing_customer_gets_semester_invoice(self, erp_client, backend):
        backend.erp_login().erp('GetCompanies', EXISTING_CUSTOMER).erp('SaveCustomerCategories', None)
        backend.erp('SaveInvoices', SAVED_INVOICE)

        response = _service(erp_client).invoice_checkout(PaidCheckoutRequest.model_validate(paid_checkout()))

        assert response.reference == 'ref-1'
        assert response.customer_id == 1234567
        assert response.customer_created is False
        assert response.invoice_id == 9101
        assert response.order_status == 'Draft'
        assert backend.calls('SaveCompanies') == []

        order = _saved_order(backend)
        assert find_child(order, 'CustomerId').text == '1234567'
        assert find_child(order, 'DepartmentId').text == '300'
        assert find_child(order, 'IncludeVAT').text == 'true'
        assert find_child(order, 'PaymentMethodId').text == '1'
        assert float(find_child(order, 'PaymentAmount').text) == 350.0
        assert find_child(order, 'AccrualDate').text.startswith('2025-01-01')
        assert find_child(order, 'AccrualLength').text == '6'
        row = find_child(find_child(order, 'InvoiceRows'), 'InvoiceRow')
        assert find_child(row, 'ProductId').text == '50'
        assert float(find_child(row, 'Price').text) == 350.0
        dimensions = find_children(find_child(order, 'UserDefinedDimensions'), 'UserDefinedDimension')
        assert [(find_child(d, 'Name').text, find_child(d, 'TypeId').text) for d in dimensions] == [
            ('Bergen', '101'), ('Semester', '102'),
        ]

    def test_customer_category_follows_membership(self, erp_client, backend):
        backend.erp_login().erp('GetCompanies', EXISTING_CUSTOMER).erp('SaveCustomerCategories', None)
        backend.erp('SaveInvoices', SAVED_INVOICE)

        _service(erp_client).invoice_checkout(PaidCheckoutRequest.model_validate(paid_checkout()))

        categories = backend.calls('SaveCustomerCategories')[0].parameter('customerCategories')
        pair = find_children(categories, 'KeyValuePair')[0]
        assert (find_child(pair, 'Key').text, find_child(pair, 'Value').text) == ('113170', '1234567')

    def test_missing_customer_is_created(self, erp_client, backend):
        backend.erp_login().erp('GetCompanies', '').erp('SaveCustomerCategories', None)
        backend.erp('SaveCompanies', EXISTING_CUSTOMER)
        backend.erp('SaveInvoices', SAVED_INVOICE)

        response = _service(erp_client, should_invoice=True).invoice_checkout(
            PaidCheckoutRequest.model_validate(paid_checkout())
        )

        assert response.customer_created is True
        assert response.order_status == 'Invoiced'
        company = backend.calls('SaveCompanies')[0].parameter('companies')[0]
        assert [local_name(child.tag) for child in company] == ['Id', 'Name', 'FirstName', 'Type', 'EmailAddresses']
        assert find_child(find_child(find_child(company, 'EmailAddresses'), 'Primary'), 'Value').text == (
            'kari@example.com'
        )

    def test_unknown_campus_books_to_national_department(self, erp_client, backend):
        backend.erp_login().erp('GetCompanies', EXISTING_CUSTOMER).erp('SaveCustomerCategories', None)
        backend.erp('SaveInvoices', SAVED_INVOICE)
        checkout = paid_checkout()
        checkout['user']['campus'] = {'$id': '5', 'name': 'National'}

        _service(erp_client).invoice_checkout(PaidCheckoutRequest.model_validate(checkout))

        assert find_child(_saved_order(backend), 'DepartmentId').text == '1000'

    def test_unpaid_checkout_is_not_invoiced(self, erp_client, backend):
        request = PaidCheckoutRequest.model_validate(paid_checkout(status='PaymentTerminated'))

        with pytest.raises(CheckoutNotPaidError) as exc_info:
            _service(erp_client).invoice_checkout(request)

        assert exc_info.value.error_code == 'CHECKOUT_NOT_PAID'
        assert backend.erp_calls == []

    def test_rejected_invoice_propagates(self, erp_client, backend):
        backend.erp_login().erp('GetCompanies', EXISTING_CUSTOMER).erp('SaveCustomerCategories', None)
        backend.erp(
            'SaveInvoices',
            '<InvoiceOrder><APIException><Type>Exception</Type><Message>Product 50 is inactive</Message>'
            '</APIException></InvoiceOrder>',
        )

        with pytest.raises(ErpFault, match='Product 50 is inactive'):
            _service(erp_client).invoice_checkout(PaidCheckoutRequest.model_validate(paid_checkout()))
