"""Email one-time-code login at the boundary of the identity provider.

Form input is validated here; issuing and checking the codes is entirely up
to the provider. Every outcome is reported as a state object carrying a
message for the login page, never as an exception.

Nothing in the command line or :mod:`mokuest.api` calls into this module.
It is the integration boundary for a host application that puts the
estimate page behind a login: the host supplies an :class:`IdentityProvider`
and redirects to ``ESTIMATE_PATH`` once :func:`verify_otp` succeeds.
"""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional, Protocol, Set

from jsonschema import Draft7Validator, ValidationError

LOGGER = logging.getLogger(__name__)

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
ESTIMATE_PATH = "/estimate"

EMAIL_MESSAGE = "有効なメールアドレスを入力してください"
CODE_LENGTH_MESSAGE = "6桁のOTPコードを入力してください"
CODE_DIGITS_MESSAGE = "数字のみ入力してください"
GENERIC_VALIDATION_MESSAGE = "バリデーションエラーが発生しました"

LOGIN_SCHEMA: Dict[str, object] = {
    "type": "object",
    "properties": {
        "email": {"type": "string", "pattern": EMAIL_PATTERN},
    },
    "required": ["email"],
}

OTP_SCHEMA: Dict[str, object] = {
    "type": "object",
    "properties": {
        "email": {"type": "string", "pattern": EMAIL_PATTERN},
        "code": {"type": "string", "minLength": 6, "maxLength": 6, "pattern": r"^\d+$"},
    },
    "required": ["email", "code"],
}

_LOGIN_VALIDATOR = Draft7Validator(LOGIN_SCHEMA)
_OTP_VALIDATOR = Draft7Validator(OTP_SCHEMA)


class IdentityError(RuntimeError):
    """Raised by an identity provider when it rejects or cannot serve a request."""


class IdentityProvider(Protocol):
    def send_otp(self, email: str) -> None: ...

    def verify_otp(self, email: str, code: str) -> None: ...


@dataclass(frozen=True)
class OtpSendState:
    success: bool
    message: str
    email: Optional[str] = None


@dataclass(frozen=True)
class OtpVerifyState:
    success: bool
    message: str
    redirect_to: Optional[str] = None


_FIELD_ORDER = ("email", "code")


def _field_of(error: ValidationError) -> Optional[str]:
    if error.path:
        return str(error.path[0])
    if error.validator == "required":
        missing = [name for name in error.validator_value if name not in error.instance]
        return missing[0] if missing else None
    return None


def _message_for(error: ValidationError) -> str:
    name = _field_of(error)
    if name == "email":
        return EMAIL_MESSAGE
    if name == "code":
        return CODE_DIGITS_MESSAGE if error.validator == "pattern" else CODE_LENGTH_MESSAGE
    return GENERIC_VALIDATION_MESSAGE


def _sort_key(error: ValidationError) -> int:
    name = _field_of(error)
    return _FIELD_ORDER.index(name) if name in _FIELD_ORDER else len(_FIELD_ORDER)


def validate_form(validator: Draft7Validator, form: Mapping[str, object]) -> Optional[str]:
    """Return the message for the first validation problem, or ``None`` when valid.

    Problems are reported in form order (email before code) and, within a
    field, length before character class.
    """

    errors = sorted(validator.iter_errors(dict(form)), key=_sort_key)
    if not errors:
        return None
    return _message_for(errors[0])


def send_otp(provider: IdentityProvider, form: Mapping[str, object]) -> OtpSendState:
    message = validate_form(_LOGIN_VALIDATOR, form)
    if message:
        return OtpSendState(success=False, message=message)

    email = str(form["email"])
    try:
        provider.send_otp(email)
    except IdentityError as exc:
        LOGGER.warning("One-time code could not be sent to %s: %s", email, exc)
        return OtpSendState(success=False, message=str(exc) or "メール送信に失敗しました")

    LOGGER.info("One-time code sent to %s", email)
    return OtpSendState(
        success=True,
        message=f"{email}にOTPコードを送信しました。メールをご確認ください。",
        email=email,
    )


def verify_otp(provider: IdentityProvider, form: Mapping[str, object]) -> OtpVerifyState:
    message = validate_form(_OTP_VALIDATOR, form)
    if message:
        return OtpVerifyState(success=False, message=message)

    email = str(form["email"])
    try:
        provider.verify_otp(email, str(form["code"]))
    except IdentityError as exc:
        LOGGER.warning("One-time code rejected for %s: %s", email, exc)
        return OtpVerifyState(success=False, message=str(exc) or "認証に失敗しました")

    LOGGER.info("Signed in %s", email)
    return OtpVerifyState(success=True, message="ログインしました", redirect_to=ESTIMATE_PATH)


@dataclass
class InMemoryIdentityProvider:
    """Provider that keeps issued codes in memory. Intended for local runs and tests."""

    code_factory: Optional[Callable[[], str]] = None
    issued: Dict[str, str] = field(default_factory=dict)
    signed_in: Set[str] = field(default_factory=set)

    def send_otp(self, email: str) -> None:
        if self.code_factory is not None:
            code = str(self.code_factory())
        else:
            code = f"{secrets.randbelow(1_000_000):06d}"
        self.issued[email] = code

    def verify_otp(self, email: str, code: str) -> None:
        expected = self.issued.get(email)
        if expected is None or expected != code:
            raise IdentityError("認証に失敗しました")
        del self.issued[email]
        self.signed_in.add(email)


__all__ = [
    "IdentityError",
    "IdentityProvider",
    "InMemoryIdentityProvider",
    "LOGIN_SCHEMA",
    "OTP_SCHEMA",
    "OtpSendState",
    "OtpVerifyState",
    "send_otp",
    "validate_form",
    "verify_otp",
]
