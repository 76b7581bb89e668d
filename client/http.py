"""
Submits a RegistrationForm to the register endpoint and reports the outcome.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Protocol

import httpx

from client.form import RegistrationForm
from common.logging import get_logger
from common.validation import FieldError

logger = get_logger("registration_client")

DEFAULT_ERROR_MESSAGE = "Something went wrong"


class Notifier(Protocol):
    """Receives the transient success/error notification of a submission."""

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoggingNotifier:
    def success(self, message: str) -> None:
        logger.info(message)

    def error(self, message: str) -> None:
        logger.warning(message)


@dataclass
class SubmissionResult:
    success: bool
    message: str
    status_code: Optional[int] = None
    data: Optional[Dict[str, Any]] = None
    field_errors: List[FieldError] = field(default_factory=list)


def _response_json(response: httpx.Response) -> Dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


class RegistrationClient:
    """Posts the form as multipart data; no retries."""

    def __init__(
        self,
        http_client: httpx.Client,
        endpoint: str = "/api/register",
        notifier: Optional[Notifier] = None,
    ):
        self.http_client = http_client
        self.endpoint = endpoint
        self.notifier = notifier or LoggingNotifier()

    def submit(self, form: RegistrationForm, today: Optional[date] = None) -> SubmissionResult:
        """
        Validate and submit the form.

        Field errors stop the submission before any request is made and are
        returned for inline display. A payload whose kind does not match its
        document type also stops it, with an error notification. On success
        the form is reset.
        """
        errors = form.validate(today=today)
        if errors:
            logger.debug(f"Form has {len(errors)} invalid field(s), not submitting")
            return SubmissionResult(success=False, message="Validation failed", field_errors=errors)

        type_error = form.check_file_types()
        if type_error:
            self.notifier.error(type_error)
            return SubmissionResult(success=False, message=type_error)

        data, files = form.build_multipart()
        try:
            response = self.http_client.post(self.endpoint, data=data, files=files)
        except httpx.HTTPError as e:
            logger.error(f"Registration request failed: {e}")
            self.notifier.error(DEFAULT_ERROR_MESSAGE)
            return SubmissionResult(success=False, message=DEFAULT_ERROR_MESSAGE)

        payload = _response_json(response)
        if response.is_success and payload.get("success"):
            self.notifier.success("User registered!")
            form.reset()
            return SubmissionResult(
                success=True,
                message=payload.get("message", ""),
                status_code=response.status_code,
                data=payload.get("data"),
            )

        if response.is_success:
            message = "Registration failed!"
        else:
            message = payload.get("message") or DEFAULT_ERROR_MESSAGE
        self.notifier.error(message)
        return SubmissionResult(success=False, message=message, status_code=response.status_code)
