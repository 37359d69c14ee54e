"""Signup form — inputs, outcomes and derived state."""

from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict

from signup_form.exceptions import APIError


# ── Wire models (remote availability service) ────────────────────────────────

class UserNameAvailableMessage(BaseModel):
    isAvailable: bool
    userName: str


class APIErrorMessage(BaseModel):
    error: bool
    reason: str


# ── Inputs ───────────────────────────────────────────────────────────────────

class FormInputs(BaseModel):
    username: str = ""
    password: str = ""
    confirm_password: str = ""


# ── Availability outcomes ────────────────────────────────────────────────────

class Available(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_available: bool


class Failed(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    error: APIError


class Pending(BaseModel):
    """No outcome has been published for the username yet."""

    model_config = ConfigDict(frozen=True)


PENDING = Pending()

AvailabilityOutcome = Union[Available, Failed]


# ── Derived state ────────────────────────────────────────────────────────────

class PasswordStatus(str, Enum):
    VALID = "valid"
    EMPTY = "empty"
    NO_MATCH = "no_match"
    TOO_SHORT = "too_short"


class AuthenticationState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class FormState(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    is_username_valid: bool = False
    is_password_empty: bool = True
    is_password_matched: bool = True
    is_password_length_sufficient: bool = False
    password_status: PasswordStatus = PasswordStatus.EMPTY
    availability: Union[Available, Failed, Pending] = PENDING
    is_valid: bool = False
    error_message: str = ""
