"""
CAS serviceValidate Response Parsing

Success shape (CAS 2.0, attributes as released by CAS 3.0):

    <cas:serviceResponse xmlns:cas="http://www.yale.edu/tp/cas">
        <cas:authenticationSuccess>
            <cas:user>USERNAME</cas:user>
            <cas:attributes>
                <cas:mail>user@example.edu</cas:mail>
            </cas:attributes>
        </cas:authenticationSuccess>
    </cas:serviceResponse>

Elements are matched by local name, so prefixed and unprefixed documents
parse the same way. Every other shape, including authenticationFailure
and malformed XML, is a failure result. Parsing never raises.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Dict, Iterator, List, Optional

import structlog

from casclient.core.exceptions import ProtocolError
from casclient.core.types import ValidationResult

logger = structlog.get_logger()


# =============================================================================
# ELEMENT HELPERS
# =============================================================================


def local_name(tag: object) -> str:
    """Strip the {namespace} part of an ElementTree tag."""
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def iter_local(root: ET.Element, name: str) -> Iterator[ET.Element]:
    """Iterate over root and its descendants whose local name is name."""
    for elem in root.iter():
        if local_name(elem.tag) == name:
            yield elem


def find_local(root: ET.Element, name: str) -> Optional[ET.Element]:
    """First element (document order) with the given local name, or None."""
    return next(iter_local(root, name), None)


def text_content(elem: ET.Element) -> str:
    """Concatenated, stripped text of an element and its descendants."""
    return "".join(elem.itertext()).strip()


def parse_xml(payload: str) -> Optional[ET.Element]:
    """Parse an XML string, returning None when it is not well-formed."""
    try:
        return ET.fromstring(payload)
    except ET.ParseError as e:
        logger.debug("xml_parse_error", error=str(e))
        return None


# =============================================================================
# VALIDATION RESPONSE
# =============================================================================


def _collect_attributes(success: ET.Element) -> Dict[str, List[str]]:
    attributes: Dict[str, List[str]] = {}
    container = find_local(success, "attributes")
    if container is None:
        return attributes
    for child in container:
        name = local_name(child.tag)
        if name:
            attributes.setdefault(name, []).append(text_content(child))
    return attributes


def parse_validation_response(body: str) -> ValidationResult:
    """
    Interpret a serviceValidate response body.

    Args:
        body: Raw response body from the CAS server

    Returns:
        ValidationResult; success only if an authenticationSuccess element
        holds a user element with non-empty text
    """
    root = parse_xml(body)
    if root is None:
        return ValidationResult.failure_result(
            "Response is not well-formed XML",
            ProtocolError.MALFORMED_RESPONSE,
        )

    success = find_local(root, "authenticationSuccess")
    if success is not None:
        user = find_local(success, "user")
        username = text_content(user) if user is not None else ""
        if not username:
            return ValidationResult.failure_result(
                "authenticationSuccess without user",
                ProtocolError.MISSING_USER,
            )
        return ValidationResult.success_result(
            username, _collect_attributes(success)
        )

    failure = find_local(root, "authenticationFailure")
    if failure is not None:
        return ValidationResult.failure_result(
            text_content(failure) or "Ticket rejected",
            failure.get("code") or ProtocolError.INVALID_TICKET,
        )

    return ValidationResult.failure_result(
        f"Unexpected response element {local_name(root.tag)!r}",
        ProtocolError.MALFORMED_RESPONSE,
    )
