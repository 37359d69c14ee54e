"""Reactive signup form validation."""

from signup_form.availability_client import AvailabilityClient
from signup_form.controller import SignupFormController
from signup_form.exceptions import (
    APIError,
    APIValidationError,
    DecodingError,
    FormClosedError,
    InvalidRequestError,
    InvalidResponseError,
    ServerError,
    TransportError,
)
from signup_form.models import (
    PENDING,
    AuthenticationState,
    Available,
    Failed,
    FormInputs,
    FormState,
    PasswordStatus,
    Pending,
)
from signup_form.pipeline import AvailabilityPipeline, PipelineState

__all__ = [
    "APIError",
    "APIValidationError",
    "AuthenticationState",
    "Available",
    "AvailabilityClient",
    "AvailabilityPipeline",
    "DecodingError",
    "Failed",
    "FormClosedError",
    "FormInputs",
    "FormState",
    "InvalidRequestError",
    "InvalidResponseError",
    "PENDING",
    "PasswordStatus",
    "Pending",
    "PipelineState",
    "ServerError",
    "SignupFormController",
    "TransportError",
]
