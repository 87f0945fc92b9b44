"""Form validation package."""

from fleetx.validation.validator import CredentialsValidator, SignupValidator

__all__ = [
    "CredentialsValidator",
    "SignupValidator",
]
