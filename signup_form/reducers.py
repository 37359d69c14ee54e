"""
Folds field facts and the availability outcome into what the form shows.

The order of the checks below is the user-facing contract: an availability
problem is reported before a local username problem, which is reported before
any password problem.
"""

from typing import Union

from signup_form.exceptions import APIValidationError, TransportError
from signup_form.models import Available, Failed, FormInputs, FormState, PasswordStatus, Pending
from signup_form import validators

USERNAME_UNAVAILABLE_MESSAGE = "This username is not available"
USERNAME_INVALID_MESSAGE = "Username is invalid. Must be more than 2 characters"

PASSWORD_MESSAGES = {
    PasswordStatus.NO_MATCH: "Passwords don't match",
    PasswordStatus.EMPTY: "Password must not be empty",
    PasswordStatus.TOO_SHORT: "Password not long enough. Must at least be 6 characters",
}

Availability = Union[Available, Failed, Pending]


def reduce_password_status(is_empty: bool, is_matched: bool, is_length_sufficient: bool) -> PasswordStatus:
    if is_empty:
        return PasswordStatus.EMPTY
    if not is_matched:
        return PasswordStatus.NO_MATCH
    if not is_length_sufficient:
        return PasswordStatus.TOO_SHORT
    return PasswordStatus.VALID


def username_available_for_validity(availability: Availability) -> bool:
    # Our own connectivity problems must not block signup
    if isinstance(availability, Available):
        return availability.is_available
    if isinstance(availability, Failed):
        return isinstance(availability.error, TransportError)
    return True


def availability_message(availability: Availability) -> str:
    if isinstance(availability, Available):
        return "" if availability.is_available else USERNAME_UNAVAILABLE_MESSAGE
    if isinstance(availability, Failed):
        error = availability.error
        if isinstance(error, TransportError):
            return ""
        if isinstance(error, APIValidationError):
            return error.reason
        return str(error)
    return ""


def reduce_is_valid(availability: Availability, is_username_valid: bool, password_status: PasswordStatus) -> bool:
    return (
        username_available_for_validity(availability)
        and is_username_valid
        and password_status == PasswordStatus.VALID
    )


def reduce_error_message(availability: Availability, is_username_valid: bool, password_status: PasswordStatus) -> str:
    message = availability_message(availability)
    if message:
        return message
    if not is_username_valid:
        return USERNAME_INVALID_MESSAGE
    return PASSWORD_MESSAGES.get(password_status, "")


def reduce_form_state(inputs: FormInputs, availability: Availability) -> FormState:
    """Recompute every derived value from the current inputs and availability."""
    is_username_valid = validators.is_username_valid(inputs.username)
    is_empty = validators.is_password_empty(inputs.password)
    is_matched = validators.is_password_matched(inputs.password, inputs.confirm_password)
    is_length_sufficient = validators.is_password_length_sufficient(inputs.password)
    password_status = reduce_password_status(is_empty, is_matched, is_length_sufficient)

    return FormState(
        is_username_valid=is_username_valid,
        is_password_empty=is_empty,
        is_password_matched=is_matched,
        is_password_length_sufficient=is_length_sufficient,
        password_status=password_status,
        availability=availability,
        is_valid=reduce_is_valid(availability, is_username_valid, password_status),
        error_message=reduce_error_message(availability, is_username_valid, password_status),
    )
