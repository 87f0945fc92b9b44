"""Tests for the login and signup form validators."""

from fleetx.models.session import SignupProfile
from fleetx.validation import CredentialsValidator, SignupValidator


def _profile(**overrides) -> SignupProfile:
    data = {
        "name": "Sam Driver",
        "email": "sam@fleetx.test",
        "phoneNumber": "+971 50 123 4567",
        "password": "secret1",
    }
    data.update(overrides)
    return SignupProfile.model_validate(data)


class TestCredentialsValidator:
    """Tests for the login form."""

    def test_valid_credentials(self):
        """Test that a well-formed form passes."""
        assert CredentialsValidator().validate("sam@fleetx.test", "x").is_valid

    def test_blank_fields(self):
        """Test that both blank fields are reported at once."""
        result = CredentialsValidator().validate("  ", "")
        assert {issue.field for issue in result.issues} == {"email", "password"}
        assert all(issue.issue_type == "missing" for issue in result.issues)

    def test_malformed_email(self):
        """Test that an address without a domain is rejected."""
        result = CredentialsValidator().validate("sam@", "secret")
        assert result.errors_for("email")[0].issue_type == "invalid_format"


class TestSignupValidator:
    """Tests for the signup form."""

    def test_valid_profile(self):
        """Test that a complete profile passes."""
        assert SignupValidator().validate(_profile()).is_valid

    def test_all_required_fields(self):
        """Test that every missing field is reported."""
        result = SignupValidator().validate(SignupProfile())
        fields = {issue.field for issue in result.issues}
        assert {"name", "email", "phone_number", "password"} <= fields

    def test_phone_number_characters(self):
        """Test that letters in the phone number are rejected."""
        result = SignupValidator().validate(_profile(phoneNumber="call me"))
        assert result.errors_for("phone_number")[0].issue_type == "invalid_format"

    def test_short_password(self):
        """Test the minimum password length."""
        result = SignupValidator().validate(_profile(password="abc"))
        assert result.errors_for("password")[0].issue_type == "too_short"

    def test_unknown_role(self):
        """Test that roles the backend does not know are rejected."""
        result = SignupValidator().validate(_profile(role="Mechanic"))
        assert result.errors_for("role")
