"""Tests for payload validation and normalisation"""
import pytest

from userdesk.domain.errors import ValidationError
from userdesk.domain.validation import validate_create, validate_update


class TestValidateCreate:
    """Test suite for validate_create"""

    def test_normalises_name_and_email(self):
        payload = validate_create({"name": "  Ann Lee ", "email": " Ann@Example.COM "})

        assert payload.name == "Ann Lee"
        assert payload.email == "ann@example.com"
        assert payload.phone is None
        assert payload.message is None

    def test_passes_phone_and_message_through(self):
        payload = validate_create(
            {"name": "Ann", "email": "a@b.com", "phone": " +1 555 ", "message": "  hi  "}
        )

        assert payload.phone == " +1 555 "
        assert payload.message == "  hi  "

    def test_blank_optional_fields_become_none(self):
        payload = validate_create({"name": "Ann", "email": "a@b.com", "phone": "", "message": ""})

        assert payload.phone is None
        assert payload.message is None

    def test_ignores_unknown_fields(self):
        payload = validate_create({"name": "Ann", "email": "a@b.com", "id": 99})

        assert not hasattr(payload, "id")

    def test_missing_fields_are_all_reported(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_create({})

        fields = {item["field"] for item in excinfo.value.violations}
        assert fields == {"name", "email"}

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_create({"name": "   ", "email": "a@b.com"})

        assert excinfo.value.violations == [{"field": "name", "message": "is required"}]

    @pytest.mark.parametrize(
        "email",
        [
            "plainaddress",
            "missing-at.example.com",
            "user@nodot",
            "user@domain.",
            "user@.com",
            "two words@example.com",
            "a@b@c.com",
            "ünï@example.com",
        ],
    )
    def test_malformed_email_rejected(self, email):
        with pytest.raises(ValidationError) as excinfo:
            validate_create({"name": "Ann", "email": email})

        assert excinfo.value.violations[0]["field"] == "email"

    def test_blank_email_reported_as_required(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_create({"name": "Ann", "email": "  "})

        assert excinfo.value.violations == [{"field": "email", "message": "is required"}]

    def test_non_string_fields_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_create({"name": 42, "email": "a@b.com", "phone": 5551234})

        fields = {item["field"] for item in excinfo.value.violations}
        assert fields == {"name", "phone"}

    def test_phone_longer_than_column_rejected(self):
        with pytest.raises(ValidationError):
            validate_create({"name": "Ann", "email": "a@b.com", "phone": "1" * 21})

    @pytest.mark.parametrize("payload", [None, [], "name=Ann", 7])
    def test_non_object_payload_rejected(self, payload):
        with pytest.raises(ValidationError) as excinfo:
            validate_create(payload)

        assert excinfo.value.violations == [
            {"field": "payload", "message": "must be a JSON object"}
        ]


class TestValidateUpdate:
    """Update shares the create rules because it replaces every field"""

    def test_requires_full_record(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_update({"name": "Only Name"})

        assert [item["field"] for item in excinfo.value.violations] == ["email"]

    def test_normalises_email(self):
        payload = validate_update({"name": "Ann", "email": "ANN@EXAMPLE.COM"})

        assert payload.email == "ann@example.com"
