"""
Directory Person Records

Normalizes a person record for an authenticated username. Two upstream
shapes are accepted:

- LDAP-style attribute maps, where every attribute is a list of values
  and key casing follows the directory schema (e.g. "eduPersonAffiliation")
- Flat directory-service JSON, where single-valued attributes may be
  plain scalars

Keys are lower-cased first; single-valued fields take the first element
of a list or the scalar itself.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

import attrs
from attrs import field

SOURCE_LDAP = "ldap"
SOURCE_DIRECTORY = "directory"


@attrs.define(frozen=True, slots=True)
class DirectorySchema:
    """
    Attribute names read from the upstream record (lower-case).

    Defaults follow eduPerson plus the campus-specific attributes of the
    directory this package was first deployed against.
    """

    uid: str = "uid"
    mail: str = "mail"
    nickname: str = "edupersonnickname"
    given_name: str = "givenname"
    surname: str = "sn"
    affiliations: str = "edupersonaffiliation"
    primary_affiliation: str = "edupersonprimaryaffiliation"
    department: str = "unlhrprimarydepartment"
    major: str = "unlsismajor"
    student_status: str = "unlsisstudentstatus"


@attrs.define(frozen=True, slots=True)
class PersonRecord:
    """Normalized directory record for one user."""

    uid: str = ""
    mail: str = ""
    full_name: str = ""
    affiliations: List[str] = field(factory=list)
    primary_affiliation: str = ""
    department: str = ""
    major: str = ""
    student_status: List[str] = field(factory=list)
    source: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.uid


def first_value(value: Any) -> str:
    """First element of a list value, or the scalar itself, as a string."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return ""
    return str(value)


def all_values(value: Any) -> List[str]:
    """Every value of a possibly multi-valued attribute."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    return [str(value)]


def sanitize_user_record(
    data: Optional[Mapping[str, Any]],
    source: str = "",
    mail_domain: str = "",
    schema: DirectorySchema = DirectorySchema(),
) -> PersonRecord:
    """
    Build a PersonRecord from an LDAP or directory-service record.

    Args:
        data: Raw record (any key casing)
        source: Where the record came from (SOURCE_LDAP, SOURCE_DIRECTORY)
        mail_domain: Organization domain for the fallback address
        schema: Attribute names to read

    Returns:
        PersonRecord; empty when data is empty. Without a mail attribute
        the address falls back to {uid}@{mail_domain}.
    """
    if not data:
        return PersonRecord()

    attributes = {str(k).lower(): v for k, v in data.items()}

    def get(name: str) -> Any:
        return attributes.get(name)

    first_name = first_value(get(schema.nickname)) or first_value(get(schema.given_name))
    full_name = f"{first_name} {first_value(get(schema.surname))}".strip()

    uid = first_value(get(schema.uid))
    mail = first_value(get(schema.mail))
    if not mail and uid and mail_domain:
        mail = f"{uid}@{mail_domain}"

    return PersonRecord(
        uid=uid,
        mail=mail,
        full_name=full_name,
        affiliations=all_values(get(schema.affiliations)),
        primary_affiliation=first_value(get(schema.primary_affiliation)),
        department=first_value(get(schema.department)),
        major=first_value(get(schema.major)),
        student_status=all_values(get(schema.student_status)),
        source=source,
    )
