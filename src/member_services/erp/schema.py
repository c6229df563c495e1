"""
Schema-bound XML serialization for ERP wire models.

Wire models are pydantic models whose field declaration order is the element
order on the wire and whose aliases are the element names. ``to_element`` and
``from_element`` are the two halves of one codec: text escaping and element
ordering are enforced by the model, never by string templates.

Absent policy:

* ``None`` fields are omitted entirely.
* List fields annotated with :class:`XmlList` emit a container element holding
  one ``item_tag`` child per entry (or the entries' own elements, unwrapped,
  when ``item_tag`` is None); an empty list is omitted.
* Fields annotated with :data:`NILLABLE` emit ``<Tag xsi:nil="true" />`` when
  empty instead of being omitted.
* Fields annotated with :data:`REQUIRED` raise
  :class:`~member_services.erp.errors.EnvelopeValidationError` when empty, so a
  bad request fails before any network call.
"""

import types
import xml.etree.ElementTree as ET
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from inspect import isclass
from typing import Any, Iterable, Optional, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict

from member_services.erp.errors import EnvelopeValidationError

XSI_NIL = 'xsi:nil'


class XmlList:
    """
    Marks a list field serialized as a container of ``item_tag`` children.

    With ``item_tag=None`` each item's own elements are written straight into
    the container, one item after another (``<MetaData><Key/><Value/><Key/>...``).
    """

    def __init__(self, item_tag: Optional[str]) -> None:
        self.item_tag = item_tag

    def __repr__(self) -> str:
        return f'XmlList({self.item_tag!r})'


class _Marker:
    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return self.name


NILLABLE = _Marker('NILLABLE')
REQUIRED = _Marker('REQUIRED')


def local_name(tag: str) -> str:
    """Strip a ``{namespace}`` or ``prefix:`` qualifier from an element tag."""
    if '}' in tag:
        tag = tag.rsplit('}', 1)[1]
    return tag.rsplit(':', 1)[-1]


def find_child(element: ET.Element, name: str) -> Optional[ET.Element]:
    """First direct child with the given local name."""
    for child in element:
        if local_name(child.tag) == name:
            return child
    return None


def find_children(element: Optional[ET.Element], name: str) -> list[ET.Element]:
    """All direct children with the given local name, always as a list."""
    if element is None:
        return []
    return [child for child in element if local_name(child.tag) == name]


def ensure_sequence(value: Any) -> list[Any]:
    """Normalize a value that may be absent, a single item, or a list to a list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def is_nil(element: ET.Element) -> bool:
    for key, value in element.attrib.items():
        if local_name(key) == 'nil' and value == 'true':
            return True
    return False


def format_value(value: Any) -> str:
    """Render a scalar as element text."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value, 'f')
    return str(value)


def _unwrap(annotation: Any) -> tuple[Any, bool]:
    """Return (inner type, is_list) for ``X``, ``Optional[X]`` and ``list[X]``."""
    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        annotation = args[0] if len(args) == 1 else annotation
        origin = get_origin(annotation)
    if origin is list:
        return get_args(annotation)[0], True
    return annotation, False


def _marker(metadata: Iterable[Any], kind: Any) -> Any:
    for item in metadata:
        if item is kind or (isclass(kind) and isinstance(item, kind)):
            return item
    return None


class WireModel(BaseModel):
    """Base class for every model that crosses the ERP wire."""

    model_config = ConfigDict(populate_by_name=True)

    def to_element(self, tag: Optional[str] = None) -> ET.Element:
        element = ET.Element(tag or type(self).__name__)
        self.fill_element(element)
        return element

    def fill_element(self, element: ET.Element) -> ET.Element:
        for name, field in type(self).model_fields.items():
            wire_name = field.alias or name
            value = getattr(self, name)
            empty = value is None or (isinstance(value, (list, str)) and len(value) == 0)

            if empty:
                if _marker(field.metadata, NILLABLE):
                    ET.SubElement(element, wire_name, {XSI_NIL: 'true'})
                    continue
                if _marker(field.metadata, REQUIRED):
                    raise EnvelopeValidationError(f'{type(self).__name__}.{wire_name} is required')
                if value is None or isinstance(value, list):
                    continue

            xml_list = _marker(field.metadata, XmlList)
            if xml_list is not None:
                container = ET.SubElement(element, wire_name)
                for item in value:
                    if xml_list.item_tag is None:
                        item.fill_element(container)
                    else:
                        _append_value(container, xml_list.item_tag, item)
            elif isinstance(value, list):
                for item in value:
                    _append_value(element, wire_name, item)
            else:
                _append_value(element, wire_name, value)
        return element

    @classmethod
    def from_element(cls, element: ET.Element):
        data: dict[str, Any] = {}
        for name, field in cls.model_fields.items():
            wire_name = field.alias or name
            found = find_children(element, wire_name)
            if not found or is_nil(found[0]):
                continue

            inner, is_list = _unwrap(field.annotation)
            xml_list = _marker(field.metadata, XmlList)
            if xml_list is not None and xml_list.item_tag is None:
                data[wire_name] = [inner.from_element(group) for group in _flat_items(found[0], inner)]
            elif xml_list is not None:
                data[wire_name] = [_read_value(inner, item) for item in find_children(found[0], xml_list.item_tag)]
            elif is_list:
                data[wire_name] = [_read_value(inner, item) for item in found]
            else:
                value = _read_value(inner, found[0])
                if value is not None:
                    data[wire_name] = value
        return cls.model_validate(data)


def _flat_items(container: ET.Element, model: type[WireModel]) -> list[ET.Element]:
    """Split unwrapped item elements back into one element per item; each item starts at its first field."""
    name, field = next(iter(model.model_fields.items()))
    leading = field.alias or name
    items: list[ET.Element] = []
    for child in container:
        if not items or local_name(child.tag) == leading:
            items.append(ET.Element(model.__name__))
        items[-1].append(child)
    return items


def _append_value(parent: ET.Element, tag: str, value: Any) -> None:
    if isinstance(value, WireModel):
        parent.append(value.to_element(tag))
    else:
        ET.SubElement(parent, tag).text = format_value(value)


def _read_value(annotation: Any, element: ET.Element) -> Any:
    if isclass(annotation) and issubclass(annotation, WireModel):
        return annotation.from_element(element)
    if element.text is None:
        return '' if annotation is str else None
    return element.text
