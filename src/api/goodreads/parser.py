"""
Goodreads Response Normalizer - converts XML responses into plain nested dicts.

Conversion rules, applied at every element:
- child elements and attributes share one dict; an attribute wins over a
  child element with the same name
- repeated same-named children become a list, a single child stays a value
- a leaf element without attributes becomes its text ("" when empty)
- text next to attributes or children is stored under "_"
"""

import xml.etree.ElementTree as ET
from collections.abc import Awaitable, Callable
from typing import Any

from api.goodreads.errors import RemoteAPIError, XMLParseError
from api.goodreads.models import GOODREADS_ROOT_TAG
from api.goodreads.request import RequestDescriptor
from utils.get_logger import get_logger

logger = get_logger(__name__)

TEXT_KEY = "_"
ERROR_TAG = "error"

ParsedResponse = dict[str, Any]
TransportFn = Callable[[RequestDescriptor], Awaitable[str]]


def _element_text(element: ET.Element) -> str:
    """Concatenate the element's own text with the tails of its children."""
    parts = [element.text or ""]
    parts.extend(child.tail or "" for child in element)
    text = "".join(parts)
    return "" if not text.strip() else text


def _element_to_value(element: ET.Element) -> Any:
    children = list(element)
    text = _element_text(element)

    if not children and not element.attrib:
        return text

    node: dict[str, Any] = {}
    for child in children:
        value = _element_to_value(child)
        if child.tag in node:
            existing = node[child.tag]
            if isinstance(existing, list):
                existing.append(value)
            else:
                node[child.tag] = [existing, value]
        else:
            node[child.tag] = value

    if text:
        node[TEXT_KEY] = text

    # attributes last so they take precedence on key collision
    node.update(element.attrib)
    return node


def parse_xml(xml: str | bytes, function_name: str = "parseXML()") -> ParsedResponse:
    """Parse XML text into a ParsedResponse keyed by the root tag.

    Args:
        xml: Response body
        function_name: Name used to prefix the error message

    Returns:
        ``{root_tag: converted_root}``

    Raises:
        XMLParseError: If the text is not well-formed XML
    """
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as e:
        logger.warning(f"{function_name}: could not parse XML response: {e}")
        raise XMLParseError(str(e), function_name) from e

    return {root.tag: _element_to_value(root)}


def extract_payload(
    result: ParsedResponse, response_key: str = "", function_name: str = "execute()"
) -> Any:
    """Unwrap the GoodreadsResponse root and, optionally, one of its keys.

    Raises:
        RemoteAPIError: If the document is an <error> or the root carries an error child
        XMLParseError: If the document has an unexpected root element
    """
    if ERROR_TAG in result:
        logger.warning(f"{function_name}: API returned an error payload: {result[ERROR_TAG]}")
        raise RemoteAPIError(result[ERROR_TAG], function_name)

    if GOODREADS_ROOT_TAG not in result:
        root_tag = next(iter(result), "")
        raise XMLParseError(f"unexpected root element <{root_tag}>", function_name)

    payload = result[GOODREADS_ROOT_TAG]
    if isinstance(payload, dict) and ERROR_TAG in payload:
        logger.warning(f"{function_name}: API returned an error payload: {payload[ERROR_TAG]}")
        raise RemoteAPIError(payload[ERROR_TAG], function_name)

    if not response_key:
        return payload
    if not isinstance(payload, dict):
        return None
    return payload.get(response_key)


async def execute(
    transport_fn: TransportFn, req: RequestDescriptor, function_name: str = "execute()"
) -> Any:
    """Run one request through transport and normalizer.

    Args:
        transport_fn: One of the Transport coroutines (get, oauth_get, ...)
        req: Descriptor for the call; its response_key selects the unwrapped sub-tree
        function_name: Name of the calling endpoint, used in error messages

    Returns:
        ``GoodreadsResponse[response_key]`` when a key is set, else ``GoodreadsResponse``;
        None when the service answered 2xx with an empty body
    """
    body = await transport_fn(req)
    if not body or not body.strip():
        logger.debug(f"{function_name}: empty response body")
        return None
    result = parse_xml(body, function_name)
    return extract_payload(result, req.get_response_key(), function_name)
