"""
Unit tests for request body decoding.
"""

import base64
import json

import pytest
from aws_lambda_powertools.utilities.data_classes import APIGatewayProxyEvent

from member_services.handlers.utils.errors import ValidationError
from member_services.handlers.utils.request_body import bearer_token, header_value, parse_body, parse_request
from member_services.models.input import VerifyMembershipRequest


@pytest.fixture
def event(api_gateway_event):
    def build(body=None, headers=None, is_base64=False):
        return APIGatewayProxyEvent(api_gateway_event('POST', '/test', body, headers=headers, is_base64=is_base64))

    return build


class TestParseBody:
    def test_json_object(self, event):
        assert parse_body(event({'snumber': 's1234567'})) == {'snumber': 's1234567'}

    def test_form_encoded(self, event):
        request = event('snumber=s1234567&name=Kari+Nordmann', headers={
            'Content-Type': 'application/x-www-form-urlencoded',
        })

        assert parse_body(request) == {'snumber': 's1234567', 'name': 'Kari Nordmann'}

    def test_form_without_content_type(self, event):
        assert parse_body(event('campus=Oslo')) == {'campus': 'Oslo'}

    def test_base64_json_text(self, event):
        encoded = base64.b64encode(json.dumps({'snumber': 's7654321'}).encode()).decode()

        assert parse_body(event(encoded)) == {'snumber': 's7654321'}

    def test_gateway_base64_flag(self, event):
        encoded = base64.b64encode(b'{"text": "Kvittering"}').decode()

        assert parse_body(event(encoded, is_base64=True)) == {'text': 'Kvittering'}

    def test_bare_text(self, event):
        assert parse_body(event('s1234567')) == 's1234567'

    def test_json_scalar(self, event):
        assert parse_body(event('1234567')) == 1234567

    @pytest.mark.parametrize('body', [None, '', '   '])
    def test_empty_body(self, event, body):
        assert parse_body(event(body)) == {}


class TestParseRequest:
    def test_model_from_alias(self, event):
        request = parse_request(event({'studentId': 1234567}), VerifyMembershipRequest)

        assert request.snumber == '1234567'

    def test_non_object_body_is_rejected(self, event):
        with pytest.raises(ValidationError, match='JSON object'):
            parse_request(event('[1, 2]'), VerifyMembershipRequest)


class TestHeaders:
    def test_header_lookup_ignores_case(self, event):
        request = event({}, headers={'X-Appwrite-User-JWT': 'jwt-token'})

        assert header_value(request, 'x-appwrite-user-jwt') == 'jwt-token'
        assert header_value(request, 'x-missing') is None

    def test_bearer_token(self, event):
        assert bearer_token(event({}, headers={'Authorization': 'Bearer abc.def'})) == 'abc.def'
        assert bearer_token(event({}, headers={'Authorization': 'Basic dXNlcg=='})) is None
        assert bearer_token(event({})) is None
