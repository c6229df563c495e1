"""
SOAP envelope construction for the ERP web services.

An :class:`ErpService` names one ``.asmx`` endpoint together with its XML
namespace and SOAP version; a :class:`RemoteOperation` is one allow-listed
method on that endpoint.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional, Sequence

from member_services.erp.errors import EnvelopeValidationError
from member_services.erp.schema import WireModel, format_value

XSI_NS = 'http://www.w3.org/2001/XMLSchema-instance'
XSD_NS = 'http://www.w3.org/2001/XMLSchema'
SOAP11_NS = 'http://schemas.xmlsoap.org/soap/envelope/'
SOAP12_NS = 'http://www.w3.org/2003/05/soap-envelope'

XML_DECLARATION = b'<?xml version="1.0" encoding="utf-8"?>\n'


class SoapVersion(Enum):
    SOAP11 = ('soap', SOAP11_NS, 'text/xml; charset=utf-8')
    SOAP12 = ('soap12', SOAP12_NS, 'application/soap+xml; charset=utf-8')

    def __init__(self, prefix: str, namespace: str, content_type: str) -> None:
        self.prefix = prefix
        self.namespace = namespace
        self.content_type = content_type


@dataclass(frozen=True)
class ErpService:
    name: str
    url: str
    namespace: str
    operations: frozenset[str]
    soap_version: SoapVersion = SoapVersion.SOAP12

    def operation(self, name: str) -> 'RemoteOperation':
        if name not in self.operations:
            raise EnvelopeValidationError(f'{self.name} has no operation {name}', operation=name)
        return RemoteOperation(service=self, name=name)


@dataclass(frozen=True)
class RemoteOperation:
    service: ErpService
    name: str

    @property
    def response_tag(self) -> str:
        return f'{self.name}Response'

    @property
    def result_tag(self) -> str:
        return f'{self.name}Result'

    @property
    def soap_action(self) -> str:
        namespace = self.service.namespace
        if not namespace.endswith('/'):
            namespace += '/'
        return f'{namespace}{self.name}'

    def http_headers(self) -> dict[str, str]:
        version = self.service.soap_version
        headers = {'Content-Type': version.content_type}
        if version is SoapVersion.SOAP11:
            headers['SOAPAction'] = f'"{self.soap_action}"'
        return headers


@dataclass
class Parameter:
    """One top-level argument of an operation, either a scalar, a model or a list of either."""

    tag: str
    value: Any
    item_tag: Optional[str] = None
    required: bool = True

    def to_element(self) -> Optional[ET.Element]:
        if self.value is None or (isinstance(self.value, (list, tuple, str)) and len(self.value) == 0):
            if self.required:
                raise EnvelopeValidationError(f'parameter {self.tag} is required')
            return None

        if self.item_tag is not None:
            element = ET.Element(self.tag)
            for item in self.value:
                element.append(_value_element(self.item_tag, item))
            return element
        return _value_element(self.tag, self.value)


def _value_element(tag: str, value: Any) -> ET.Element:
    if isinstance(value, WireModel):
        return value.to_element(tag)
    element = ET.Element(tag)
    element.text = format_value(value)
    return element


def build_envelope(operation: RemoteOperation, parameters: Iterable[Parameter] = ()) -> bytes:
    """Serialize a complete request envelope for ``operation``."""
    version = operation.service.soap_version
    envelope = ET.Element(
        f'{version.prefix}:Envelope',
        {
            'xmlns:xsi': XSI_NS,
            'xmlns:xsd': XSD_NS,
            f'xmlns:{version.prefix}': version.namespace,
        },
    )
    body = ET.SubElement(envelope, f'{version.prefix}:Body')
    call = ET.SubElement(body, operation.name, {'xmlns': operation.service.namespace})
    for parameter in parameters:
        element = parameter.to_element()
        if element is not None:
            call.append(element)
    return XML_DECLARATION + ET.tostring(envelope, encoding='unicode').encode('utf-8')


def operation_elements(envelope: bytes) -> Sequence[ET.Element]:
    """Return the parameter elements of a built envelope, used when inspecting requests."""
    root = ET.fromstring(envelope)
    body = next(child for child in root if child.tag.endswith('Body'))
    return list(next(iter(body)))
