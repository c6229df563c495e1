"""
Response parsing for the ERP web services.

Unwraps ``Envelope/Body/<Op>Response/<Op>Result`` and turns SOAP 1.1 and 1.2
faults, as well as ``APIException`` elements embedded in results, into
:class:`~member_services.erp.errors.ErpFault`.
"""

import xml.etree.ElementTree as ET
from typing import Optional

from member_services.erp.envelope import RemoteOperation
from member_services.erp.errors import ErpAuthenticationError, ErpFault, ErpProtocolError, FaultCategory
from member_services.erp.schema import find_child, find_children, local_name

API_EXCEPTION_TAGS = ('APIException', 'ApiException')

_SENDER_CODES = {'Sender', 'Client'}
_RECEIVER_CODES = {'Receiver', 'Server'}
_AUTHENTICATION_HINTS = ('not authenticated', 'authentication', 'not logged in', 'session expired', 'invalid session')


def parse_xml(content: bytes, operation: Optional[str] = None) -> ET.Element:
    try:
        return ET.fromstring(content)
    except ET.ParseError as exc:
        raise ErpProtocolError(f'response is not well-formed XML: {exc}', operation) from exc


def parse_response(operation: RemoteOperation, content: bytes) -> Optional[ET.Element]:
    """
    Return the ``<Op>Result`` element of a response envelope.

    Returns None for operations whose response carries no result element.

    Raises:
        ErpFault: the body holds a SOAP fault
        ErpProtocolError: the envelope is malformed or belongs to another operation
    """
    root = parse_xml(content, operation.name)
    if local_name(root.tag) != 'Envelope':
        raise ErpProtocolError(f'expected a SOAP Envelope, got {local_name(root.tag)}', operation.name)

    body = find_child(root, 'Body')
    if body is None:
        raise ErpProtocolError('SOAP Envelope has no Body', operation.name)

    fault = find_child(body, 'Fault')
    if fault is not None:
        raise fault_from_element(fault, operation.name)

    response = find_child(body, operation.response_tag)
    if response is None:
        raise ErpProtocolError(f'SOAP Body has no {operation.response_tag}', operation.name)

    return find_child(response, operation.result_tag)


def fault_from_element(fault: ET.Element, operation: Optional[str] = None) -> ErpFault:
    """Build an ErpFault from a SOAP 1.1 or SOAP 1.2 Fault element."""
    code_element = find_child(fault, 'Code')
    if code_element is not None:
        code = _text(find_child(code_element, 'Value'))
        subcode = find_child(code_element, 'Subcode')
        if subcode is not None and _text(find_child(subcode, 'Value')):
            code = _text(find_child(subcode, 'Value'))
        reason = find_child(fault, 'Reason')
        message = _text(find_child(reason, 'Text')) if reason is not None else ''
    else:
        code = _text(find_child(fault, 'faultcode'))
        message = _text(find_child(fault, 'faultstring'))

    code = local_name(code) or 'Fault'
    message = message or 'SOAP fault without reason'

    if any(hint in message.lower() for hint in _AUTHENTICATION_HINTS):
        return ErpAuthenticationError(message, code=code, operation=operation)
    if code in _SENDER_CODES:
        category = FaultCategory.SENDER
    elif code in _RECEIVER_CODES:
        category = FaultCategory.RECEIVER
    else:
        category = FaultCategory.UNKNOWN
    return ErpFault(message, code=code, category=category, operation=operation)


def api_exception(element: Optional[ET.Element], operation: Optional[str] = None) -> Optional[ErpFault]:
    """Return the business fault embedded in ``element``, if any."""
    if element is None:
        return None
    for tag in API_EXCEPTION_TAGS:
        found = find_child(element, tag)
        if found is not None:
            message = _text(find_child(found, 'Message')) or 'ERP rejected the request'
            code = _text(find_child(found, 'Type')) or tag
            return ErpFault(message, code=code, category=FaultCategory.BUSINESS_RULE, operation=operation)
    return None


def raise_for_api_exception(element: Optional[ET.Element], operation: Optional[str] = None) -> None:
    fault = api_exception(element, operation)
    if fault is not None:
        raise fault


def result_items(result: Optional[ET.Element], item_tag: str) -> list[ET.Element]:
    """Children of a result element, as a list even when there is one or none."""
    return find_children(result, item_tag)


def result_text(result: Optional[ET.Element]) -> str:
    return _text(result)


def _text(element: Optional[ET.Element]) -> str:
    if element is None or element.text is None:
        return ''
    return element.text.strip()
