"""
Unit tests for the ERP XML codec and envelope builder.

Models serialized with ``to_element`` must read back to the same model, and
the absent-value policy must hold for every field kind.
"""

import xml.etree.ElementTree as ET
from datetime import datetime

import pytest

from member_services.erp import endpoints
from member_services.erp.envelope import Parameter, SoapVersion, build_envelope, operation_elements
from member_services.erp.errors import EnvelopeValidationError
from member_services.erp.models import (
    Company,
    CompanyType,
    CompanyEmailAddresses,
    Credential,
    EmailAddress,
    FileType,
    ImageFile,
    ImageFrameInfo,
    InvoiceOrder,
    InvoiceOrderStatus,
    InvoiceRow,
    KeyValuePair,
    UserDefinedDimension,
    UserDefinedDimensionKey,
)
from member_services.erp.schema import ensure_sequence, find_child, find_children, local_name


def _invoice() -> InvoiceOrder:
    return InvoiceOrder(
        customer_id=1234567,
        order_status=InvoiceOrderStatus.DRAFT,
        date_invoiced=datetime(2024, 8, 15),
        payment_time=0,
        payment_method_id=1,
        payment_amount=350.0,
        department_id=300,
        invoice_rows=[InvoiceRow(product_id=69, price=350.0, quantity=1.0)],
        accrual_date=datetime(2024, 7, 1),
        accrual_length=12,
        user_defined_dimensions=[
            UserDefinedDimension(type=UserDefinedDimensionKey.USER_DEFINED, name='Bergen', type_id='101'),
            UserDefinedDimension(type=UserDefinedDimensionKey.USER_DEFINED, name='Year', type_id='102'),
        ],
    )


class TestWireModelDuality:
    """Builder and parser are two halves of one codec."""

    def test_invoice_order_reads_back_identically(self):
        order = _invoice()

        parsed = InvoiceOrder.from_element(order.to_element())

        assert parsed == order

    def test_element_order_follows_field_declaration(self):
        element = _invoice().to_element()

        tags = [child.tag for child in element]

        assert tags == [
            'CustomerId', 'OrderStatus', 'DateInvoiced', 'PaymentTime', 'PaymentMethodId', 'PaymentAmount',
            'Distributor', 'DepartmentId', 'InvoiceRows', 'AccrualDate', 'AccrualLength', 'UserDefinedDimensions',
        ]

    def test_list_fields_use_container_and_item_tags(self):
        element = _invoice().to_element()

        rows = find_child(element, 'InvoiceRows')
        dimensions = find_child(element, 'UserDefinedDimensions')

        assert [child.tag for child in rows] == ['InvoiceRow']
        assert [child.tag for child in dimensions] == ['UserDefinedDimension', 'UserDefinedDimension']
        assert find_child(rows[0], 'ProductId').text == '69'

    def test_frame_metadata_pairs_are_not_wrapped(self):
        frame = ImageFrameInfo(id=1, stamp_no=777, meta_data=[
            KeyValuePair(key='PageNo', value='1'),
            KeyValuePair(key='Amount', value='450'),
        ])

        element = frame.to_element()

        meta = find_child(element, 'MetaData')
        assert [child.tag for child in element] == ['Id', 'StampNo', 'MetaData', 'Status']
        assert [(child.tag, child.text) for child in meta] == [
            ('Key', 'PageNo'), ('Value', '1'), ('Key', 'Amount'), ('Value', '450'),
        ]
        assert ImageFrameInfo.from_element(element) == frame

    def test_company_with_nested_email_reads_back(self):
        company = Company(
            id=42,
            name='Kari Nordmann',
            first_name='Kari',
            type=CompanyType.CONSUMER,
            email_addresses=CompanyEmailAddresses(primary=EmailAddress(value='kari@example.com')),
        )

        assert Company.from_element(company.to_element()) == company

    def test_text_is_escaped_by_the_serializer(self):
        company = Company(name='Bits & <Bytes> "AS"')
        envelope = build_envelope(
            endpoints.COMPANY.operation('SaveCompanies'),
            [Parameter('companies', [company], item_tag='Company')],
        )

        assert b'Bits &amp; &lt;Bytes&gt;' in envelope
        companies = operation_elements(envelope)[0]
        assert Company.from_element(companies[0]).name == 'Bits & <Bytes> "AS"'


class TestAbsentPolicy:
    def test_none_fields_are_omitted(self):
        element = Company(name='Only Name').to_element()

        assert [child.tag for child in element] == ['Name']

    def test_empty_list_is_omitted(self):
        element = InvoiceOrder(customer_id=1).to_element()

        assert find_child(element, 'InvoiceRows') is None
        assert find_child(element, 'UserDefinedDimensions') is None

    def test_nillable_field_emits_nil_marker(self):
        element = ImageFrameInfo(id=1, stamp_no=5).to_element()

        meta = find_child(element, 'MetaData')
        assert meta is not None
        assert meta.attrib == {'xsi:nil': 'true'}

    def test_required_field_raises_before_serialization(self):
        with pytest.raises(EnvelopeValidationError, match='Company.Name is required'):
            Company(id=1).to_element()

    def test_required_nested_field_raises(self):
        order = InvoiceOrder(customer_id=1, invoice_rows=[InvoiceRow(price=10.0)])

        with pytest.raises(EnvelopeValidationError, match='ProductId'):
            order.to_element()

    def test_required_parameter_raises(self):
        with pytest.raises(EnvelopeValidationError, match='parameter companyId is required'):
            build_envelope(endpoints.COMPANY.operation('GetCompanyCategories'), [Parameter('companyId', None)])

    def test_optional_parameter_is_left_out(self):
        envelope = build_envelope(
            endpoints.COMPANY.operation('GetCompanyCategories'),
            [Parameter('companyId', 7), Parameter('extra', None, required=False)],
        )

        assert [local_name(child.tag) for child in operation_elements(envelope)] == ['companyId']


class TestEnvelope:
    def test_soap12_envelope_carries_operation_namespace(self):
        credential = Credential(application_id='app', username='user', password='secret')
        envelope = build_envelope(endpoints.AUTHENTICATE.operation('Login'), [Parameter('credential', credential)])

        root = ET.fromstring(envelope)
        body = find_child(root, 'Body')
        call = body[0]

        assert root.tag == '{http://www.w3.org/2003/05/soap-envelope}Envelope'
        assert call.tag == '{http://24sevenOffice.com/webservices}Login'
        assert find_child(find_child(call, 'credential'), 'Username').text == 'user'

    def test_invoice_service_uses_soap11_with_action_header(self):
        operation = endpoints.INVOICE.operation('SaveInvoices')

        headers = operation.http_headers()

        assert endpoints.INVOICE.soap_version is SoapVersion.SOAP11
        assert headers['Content-Type'].startswith('text/xml')
        assert headers['SOAPAction'] == '"http://24sevenOffice.com/webservices/SaveInvoices"'

    def test_soap12_operations_have_no_action_header(self):
        headers = endpoints.COMPANY.operation('GetCompanies').http_headers()

        assert headers == {'Content-Type': 'application/soap+xml; charset=utf-8'}

    def test_unknown_operation_is_rejected(self):
        with pytest.raises(EnvelopeValidationError):
            endpoints.COMPANY.operation('DeleteEverything')

    def test_enum_parameter_is_written_as_its_value(self):
        envelope = build_envelope(endpoints.ATTACHMENT.operation('Create'), [Parameter('type', FileType.PNG)])

        assert operation_elements(envelope)[0].text == 'Png'


class TestSequences:
    def test_ensure_sequence(self):
        assert ensure_sequence(None) == []
        assert ensure_sequence('one') == ['one']
        assert ensure_sequence(('a', 'b')) == ['a', 'b']
        assert ensure_sequence([1]) == [1]

    def test_find_children_on_missing_element(self):
        assert find_children(None, 'Company') == []

    def test_single_list_item_reads_back_as_list(self):
        file = ImageFile(id='f-1', type=FileType.PNG, stamp_meta=[KeyValuePair(key='PageNo', value='1')])

        parsed = ImageFile.from_element(file.to_element())

        assert parsed.stamp_meta == [KeyValuePair(key='PageNo', value='1')]
