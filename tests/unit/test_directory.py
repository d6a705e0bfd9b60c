"""
Unit tests for casclient.directory package.

Tests person record normalization and the LDAP-then-directory lookup.
"""

import json

import pytest

from casclient.directory.person import (
    SOURCE_DIRECTORY,
    SOURCE_LDAP,
    PersonRecord,
    all_values,
    first_value,
    sanitize_user_record,
)
from casclient.directory.query import PersonDataQuery
from tests.conftest import StubTransport


LDAP_ENTRY = {
    "uid": ["jdoe2"],
    "mail": ["jdoe@example.edu"],
    "eduPersonNickname": ["Jen"],
    "givenName": ["Jennifer"],
    "sn": ["Doe"],
    "eduPersonAffiliation": ["student", "staff"],
    "eduPersonPrimaryAffiliation": ["student"],
    "unlHRPrimaryDepartment": ["Mathematics"],
    "unlSISMajor": ["MATH"],
    "unlSISStudentStatus": ["UGRD", "FT"],
}

DIRECTORY_ENTRY = {
    "uid": "bsmith",
    "givenName": "Bob",
    "sn": "Smith",
    "eduPersonAffiliation": ["faculty"],
    "eduPersonPrimaryAffiliation": "faculty",
}


class TestSanitizeUserRecord:
    """Tests for sanitize_user_record."""

    def test_ldap_shape(self):
        """Test list-valued LDAP attributes with schema casing."""
        person = sanitize_user_record(LDAP_ENTRY, SOURCE_LDAP, "example.edu")

        assert person.uid == "jdoe2"
        assert person.mail == "jdoe@example.edu"
        assert person.full_name == "Jen Doe"
        assert person.affiliations == ["student", "staff"]
        assert person.primary_affiliation == "student"
        assert person.department == "Mathematics"
        assert person.major == "MATH"
        assert person.student_status == ["UGRD", "FT"]
        assert person.source == SOURCE_LDAP

    def test_flat_shape(self):
        """Test scalar directory attributes."""
        person = sanitize_user_record(DIRECTORY_ENTRY, SOURCE_DIRECTORY, "example.edu")

        assert person.uid == "bsmith"
        assert person.full_name == "Bob Smith"
        assert person.primary_affiliation == "faculty"
        assert person.affiliations == ["faculty"]

    def test_mail_fallback(self):
        """Test missing mail falls back to uid@domain."""
        person = sanitize_user_record(DIRECTORY_ENTRY, mail_domain="example.edu")
        assert person.mail == "bsmith@example.edu"

    def test_no_fallback_without_domain(self):
        """Test no address is invented without a mail domain."""
        assert sanitize_user_record(DIRECTORY_ENTRY).mail == ""

    def test_given_name_when_no_nickname(self):
        """Test the given name is used when no nickname exists."""
        data = dict(LDAP_ENTRY)
        del data["eduPersonNickname"]
        assert sanitize_user_record(data).full_name == "Jennifer Doe"

    def test_name_without_surname(self):
        """Test a lone first name is not padded."""
        assert sanitize_user_record({"uid": "x", "givenname": "Ann"}).full_name == "Ann"

    @pytest.mark.parametrize("data", [None, {}])
    def test_empty(self, data):
        """Test empty input gives an empty record."""
        person = sanitize_user_record(data)
        assert person == PersonRecord()
        assert person.is_empty


class TestValueHelpers:
    """Tests for first_value and all_values."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(["a", "b"], "a"), ("a", "a"), ([], ""), (None, ""), (7, "7")],
    )
    def test_first_value(self, value, expected):
        assert first_value(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(["a", None, "b"], ["a", "b"]), ("a", ["a"]), (None, [])],
    )
    def test_all_values(self, value, expected):
        assert all_values(value) == expected


class TestPersonDataQuery:
    """Tests for PersonDataQuery.get_user_data."""

    def test_ldap_first(self):
        """Test an LDAP hit skips the directory service."""
        transport = StubTransport(json.dumps(DIRECTORY_ENTRY))
        query = PersonDataQuery(
            mail_domain="example.edu",
            directory_url="https://directory.example.edu/service.php",
            ldap_source=lambda uid: LDAP_ENTRY,
            transport=transport,
        )

        person = query.get_user_data("jdoe2")

        assert person.source == SOURCE_LDAP
        assert transport.calls == []

    def test_directory_when_ldap_misses(self):
        """Test the directory service is used when LDAP finds nothing."""
        transport = StubTransport(json.dumps(DIRECTORY_ENTRY))
        query = PersonDataQuery(
            mail_domain="example.edu",
            directory_url="https://directory.example.edu/service.php",
            ldap_source=lambda uid: None,
            transport=transport,
        )

        person = query.get_user_data("bsmith")

        assert person.source == SOURCE_DIRECTORY
        assert person.mail == "bsmith@example.edu"
        assert transport.calls == [
            "https://directory.example.edu/service.php?format=json&uid=bsmith"
        ]

    def test_directory_when_ldap_raises(self):
        """Test an LDAP error falls back to the directory service."""

        def broken(uid):
            raise ConnectionError("ldap down")

        query = PersonDataQuery(
            mail_domain="example.edu",
            directory_url="https://directory.example.edu/service.php",
            ldap_source=broken,
            transport=StubTransport(json.dumps(DIRECTORY_ENTRY)),
        )
        assert query.get_user_data("bsmith").uid == "bsmith"

    def test_query_url_with_existing_parameters(self):
        """Test parameters are appended to an URL that already has a query."""
        query = PersonDataQuery(
            mail_domain="example.edu",
            directory_url="https://directory.example.edu/?view=people",
        )
        assert query.directory_query_url("a b") == (
            "https://directory.example.edu/?view=people&format=json&uid=a+b"
        )

    @pytest.mark.parametrize(
        "transport",
        [
            StubTransport(failure="HTTP 500"),
            StubTransport("<html>not json</html>"),
            StubTransport("[1, 2]"),
            StubTransport("{}"),
        ],
    )
    def test_not_found(self, transport):
        """Test unusable directory answers give None."""
        query = PersonDataQuery(
            mail_domain="example.edu",
            directory_url="https://directory.example.edu/service.php",
            transport=transport,
        )
        assert query.get_user_data("ghost") is None

    def test_no_sources(self):
        """Test a query without sources finds nobody."""
        assert PersonDataQuery(mail_domain="example.edu").get_user_data("x") is None

    def test_empty_username(self):
        """Test an empty username is not looked up."""
        transport = StubTransport(json.dumps(DIRECTORY_ENTRY))
        query = PersonDataQuery(
            mail_domain="example.edu",
            directory_url="https://directory.example.edu/service.php",
            transport=transport,
        )
        assert query.get_user_data("") is None
        assert transport.calls == []
