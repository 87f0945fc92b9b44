"""
Form Validation

DESIGN DECISION: Login and signup input is checked locally before any
network call. A form that fails here never reaches the backend, so the
user gets an inline message per field instead of a round-trip error.

Checks are reported as ValidationIssue objects, never silently fixed.
Whitespace trimming of name/email/phone happens in the SignupProfile
model; passwords are taken exactly as typed.
"""

import re
from typing import Optional

from fleetx.models.session import Role, SignupProfile
from fleetx.models.validation import ValidationIssue, ValidationResult


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^\+?[0-9][0-9 ()\-]{5,19}$")
MIN_PASSWORD_LENGTH = 6


def _missing(field: str, label: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type="missing",
        message=f"{label} is required",
        severity="error",
        suggested_fix=f"Please enter your {label.lower()}",
    )


def _check_email(email: Optional[str], issues: list[ValidationIssue]) -> None:
    if not email or not email.strip():
        issues.append(_missing("email", "Email"))
    elif not EMAIL_PATTERN.match(email.strip()):
        issues.append(ValidationIssue(
            field="email",
            issue_type="invalid_format",
            message="Please enter a valid email address",
            severity="error",
            suggested_fix="Use the form name@example.com",
        ))


class CredentialsValidator:
    """Validates the login form."""

    def validate(self, email: Optional[str], password: Optional[str]) -> ValidationResult:
        issues: list[ValidationIssue] = []
        _check_email(email, issues)
        if not password:
            issues.append(_missing("password", "Password"))
        return ValidationResult(issues=issues)


class SignupValidator:
    """
    Validates the signup form.

    Checks:
    - Required fields (name, email, phone number, password)
    - Email and phone number format
    - Password length
    - Role is one the backend knows
    """

    def __init__(self, min_password_length: int = MIN_PASSWORD_LENGTH):
        self._min_password_length = min_password_length

    def validate(self, profile: SignupProfile) -> ValidationResult:
        issues: list[ValidationIssue] = []

        if not profile.name:
            issues.append(_missing("name", "Name"))

        _check_email(profile.email, issues)

        if not profile.phone_number:
            issues.append(_missing("phone_number", "Phone number"))
        elif not PHONE_PATTERN.match(profile.phone_number):
            issues.append(ValidationIssue(
                field="phone_number",
                issue_type="invalid_format",
                message="Phone number may only contain digits, spaces, dashes and brackets",
                severity="error",
                suggested_fix="Enter the number with country code, e.g. +971 50 123 4567",
            ))

        if not profile.password:
            issues.append(_missing("password", "Password"))
        elif len(profile.password) < self._min_password_length:
            issues.append(ValidationIssue(
                field="password",
                issue_type="too_short",
                message=f"Password must be at least {self._min_password_length} characters",
                severity="error",
            ))

        if Role.parse(profile.role) is None:
            issues.append(ValidationIssue(
                field="role",
                issue_type="invalid_value",
                message=f"Unknown role: {profile.role}",
                severity="error",
                suggested_fix="Choose Admin, Driver or Viewer",
            ))

        return ValidationResult(issues=issues)
