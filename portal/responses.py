from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from flask import jsonify

from shared.state_machine import SubmissionState


def envelope(
    success: bool,
    message: str = None,
    data: Any = None,
    errors: Optional[List[str]] = None,
    pagination: Optional[Dict[str, int]] = None
) -> Dict[str, Any]:
    """Build the {success, message?, data?, errors?, pagination?} body."""
    body: Dict[str, Any] = {'success': success}
    if message is not None:
        body['message'] = message
    if data is not None:
        body['data'] = data
    if errors:
        body['errors'] = errors
    if pagination is not None:
        body['pagination'] = pagination
    return body


def api_response(success: bool, status: int = 200, **kwargs):
    return jsonify(envelope(success, **kwargs)), status


@dataclass
class SubmissionResult:
    """Outcome of a public submission workflow, ready to render."""

    success: bool
    status_code: int
    message: str
    state: SubmissionState
    data: Optional[Dict[str, Any]] = None
    errors: Optional[List[str]] = None
    notification: Optional[Future] = None

    def to_response(self):
        return api_response(
            self.success,
            status=self.status_code,
            message=self.message,
            data=self.data,
            errors=self.errors
        )
