"""
Unit tests for Pydantic models.

This module tests the validation, aliases and serialization of the request
and response models used by the handlers.
"""

import json

import pytest
from pydantic import ValidationError

from member_services.clients.storefront import StoreProduct
from member_services.models.input import (
    BoardMembersRequest,
    CheckoutCallbackRequest,
    CheckoutRequest,
    ExpenseApprovalRequest,
    ExpenseDescriptionRequest,
    MembershipOrderRequest,
    ProductFilterRequest,
    VerifyMembershipRequest,
)
from member_services.models.output import (
    ExpenseApprovalResponse,
    FailedReceipt,
    MembershipOrderResponse,
    ProductListResponse,
    ReceiptAnalysisResponse,
)


class TestMembershipOrderRequest:
    """Test cases for MembershipOrderRequest model."""

    def test_valid_order(self):
        """Test a webshop order with numeric fields sent as numbers."""
        request = MembershipOrderRequest.model_validate({
            'customer': {'first_name': 'Kari', 'last_name': 'Nordmann', 'email': 'ignored@example.com'},
            'snumber': 1234567,
            'selected_variation': 22146,
            'price': 350,
        })

        assert request.snumber == '1234567'
        assert request.selected_variation == '22146'
        assert request.customer.full_name == 'Kari Nordmann'

    def test_missing_last_name(self):
        """Test that the full name does not carry a trailing space."""
        request = MembershipOrderRequest.model_validate({
            'customer': {'first_name': 'Kari'},
            'snumber': 's1',
            'selected_variation': '22141',
            'price': 200,
        })

        assert request.customer.full_name == 'Kari'

    @pytest.mark.parametrize('price', [0, -50])
    def test_price_must_be_positive(self, price):
        """Test that a free or negative order is rejected."""
        with pytest.raises(ValidationError):
            MembershipOrderRequest.model_validate({
                'customer': {'first_name': 'Kari'},
                'snumber': 's1',
                'selected_variation': '22141',
                'price': price,
            })

    def test_customer_is_required(self):
        with pytest.raises(ValidationError) as exc_info:
            MembershipOrderRequest.model_validate({'snumber': 's1', 'selected_variation': '22141', 'price': 200})

        assert exc_info.value.errors()[0]['loc'] == ('customer',)


class TestAliases:
    """Field aliases accepted from the calling apps."""

    @pytest.mark.parametrize('body', [{'$id': 'exp-1'}, {'expense_id': 'exp-1'}, {'expenseId': 'exp-1'}])
    def test_expense_approval_id(self, body):
        assert ExpenseApprovalRequest.model_validate(body).expense_id == 'exp-1'

    @pytest.mark.parametrize('body', [{'snumber': 's1234567'}, {'studentId': 's1234567'}, {'student_id': 's1234567'}])
    def test_verify_membership_student_number(self, body):
        assert VerifyMembershipRequest.model_validate(body).snumber == 's1234567'

    def test_board_members_department_id(self):
        request = BoardMembersRequest.model_validate({'campus': 1, 'departmentId': 42})

        assert request.campus == '1'
        assert request.department_id == '42'

    def test_checkout_camel_case(self):
        request = CheckoutRequest.model_validate({
            'amount': 35000,
            'description': 'Medlemskap',
            'returnUrl': 'https://app.test/done',
        })

        assert request.return_url == 'https://app.test/done'
        assert request.membership_id is None

    def test_callback_keeps_unknown_fields(self):
        request = CheckoutCallbackRequest.model_validate({
            'reference': 'ref-1',
            'sessionState': 'PaymentSuccessful',
            'merchantSerialNumber': '123456',
        })

        assert request.session_state == 'PaymentSuccessful'
        assert request.model_extra == {'merchantSerialNumber': '123456'}

    def test_expense_description_event_name(self):
        request = ExpenseDescriptionRequest.model_validate({'descriptions': ['Pizza'], 'eventName': 'Fadderuke'})

        assert request.event == 'Fadderuke'


class TestValidationRules:
    def test_checkout_amount_is_minor_units(self):
        """Test that fractional amounts are not silently truncated."""
        with pytest.raises(ValidationError):
            CheckoutRequest.model_validate({'amount': 350.5, 'description': 'x', 'returnUrl': 'https://app.test'})

    def test_checkout_description_length(self):
        with pytest.raises(ValidationError):
            CheckoutRequest.model_validate({'amount': 100, 'description': 'x' * 101, 'returnUrl': 'https://app.test'})

    def test_empty_descriptions_rejected(self):
        with pytest.raises(ValidationError):
            ExpenseDescriptionRequest.model_validate({'descriptions': ' , '})

    def test_product_filter_blank_values_become_none(self):
        request = ProductFilterRequest.model_validate({'campus': '', 'department': 12})

        assert request.campus is None
        assert request.department == '12'


class TestResponses:
    """Test cases for response serialization."""

    def test_membership_order_response(self):
        response = MembershipOrderResponse(customer_id=1234567, invoice_id=9001, order_status='Draft')

        assert json.loads(response.to_json()) == {
            'success': True,
            'customerId': 1234567,
            'customerCreated': False,
            'invoiceId': 9001,
            'orderStatus': 'Draft',
            'message': 'Process completed successfully',
        }

    def test_failed_receipts_only_when_present(self):
        """Test that a clean approval has no failedReceipts key."""
        clean = ExpenseApprovalResponse(stamp_no=777, message='ok', uploaded_receipts=2)
        partial = ExpenseApprovalResponse(
            stamp_no=777,
            message='ok',
            uploaded_receipts=1,
            failed_receipts=[FailedReceipt(id='a2', error='Unsupported file type')],
        )

        assert 'failedReceipts' not in json.loads(clean.to_json())
        assert json.loads(partial.to_json())['failedReceipts'] == [{'id': 'a2', 'error': 'Unsupported file type'}]

    def test_receipt_analysis_aliases(self):
        response = ReceiptAnalysisResponse(amount=20.0, currency='EUR', exchange_rate=11.5, nok_amount=230.0)

        assert json.loads(response.to_json()) == {
            'amount': 20.0, 'currency': 'EUR', 'exchangeRate': 11.5, 'nokAmount': 230.0,
        }

    def test_product_list(self):
        product = StoreProduct.model_validate({'id': 69, 'name': 'Medlemskap', 'price': '350', 'extra': 'x'})

        body = json.loads(ProductListResponse(products=[product]).to_json())

        assert body['products'][0]['id'] == 69
        assert body['products'][0]['name'] == 'Medlemskap'
