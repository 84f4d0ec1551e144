"""
Detection Client Service
Sends submissions to the external AI-content-detection service and
parses its answers
"""

import logging
import os
from typing import Any, Mapping, Optional

import requests
from pydantic import ValidationError

from aidetect.core.config import settings
from aidetect.core.errors import NotConfigured, RemoteError, TransportError
from aidetect.schemas.detection import DetectionResponse

logger = logging.getLogger(__name__)

SUBMIT_PATH = "/submit"
ASSIGNMENT_PATH = "/deep-linking"
ACCOUNT_PATH = "/launch"


def _form_fields(params: Mapping[str, Any]) -> dict:
    """Multipart form values must be strings; missing values are sent empty."""
    return {key: "" if value is None else str(value) for key, value in params.items()}


class DetectionClient:
    """
    Blocking client for the detection service.

    Every call is a single POST with a bounded timeout and redirect limit,
    authenticated by a static `x-api-key` header.

    Errors:
        NotConfigured: no API key set, raised before any network I/O
        TransportError: connection error, timeout, too many redirects,
            non-2xx status or a body that is not a JSON object
        RemoteError: the service answered with an error payload
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        max_redirects: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_url = (api_url or settings.DETECTION_API_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.DETECTION_API_KEY
        self.timeout = timeout if timeout is not None else settings.DETECTION_TIMEOUT_SECONDS
        self.max_redirects = (
            max_redirects if max_redirects is not None else settings.DETECTION_MAX_REDIRECTS
        )
        self._session = session

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict:
        return {
            "Accept": "application/json",
            "x-api-key": self.api_key or "",
        }

    def _post(self, path: str, **kwargs: Any) -> dict:
        if not self.is_configured:
            raise NotConfigured("detection API key is not configured")

        url = f"{self.api_url}{path}"
        session = self._session or requests.Session()
        session.max_redirects = self.max_redirects
        try:
            response = session.post(
                url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            logger.warning(f"Detection service request to {path} failed: {e}")
            raise TransportError(f"request to {path} failed: {e}") from e
        finally:
            if self._session is None:
                session.close()

        if not 200 <= response.status_code < 300:
            logger.warning(
                f"Detection service returned HTTP {response.status_code} for {path}"
            )
            raise TransportError(f"{path} returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            logger.warning(f"Detection service sent malformed JSON for {path}")
            raise TransportError(f"{path} returned malformed JSON") from e

        if not isinstance(body, dict):
            raise TransportError(f"{path} returned {type(body).__name__}, expected object")

        logger.debug(f"Response received from {path}: status={response.status_code}")
        return body

    @staticmethod
    def _raise_for_error_payload(body: dict, path: str) -> None:
        if body.get("error"):
            logger.info(f"Detection service reported an error for {path}: {body['error']}")
            raise RemoteError(str(body["error"]))
        if body.get("success") is False:
            raise RemoteError(f"{path} was not successful")

    def _parse_submission(self, body: dict) -> DetectionResponse:
        self._raise_for_error_payload(body, SUBMIT_PATH)

        results = body.get("results")
        if not isinstance(results, dict):
            raise RemoteError("submission response carries no results")

        try:
            return DetectionResponse(
                success=True,
                predicted_class=results.get("predicted_class"),
                class_probability=results.get("class_probability"),
                confidence_category=results.get("confidence_category"),
                scan_id=results.get("scanId"),
                scan_url=results.get("scanUrl"),
            )
        except ValidationError as e:
            raise RemoteError(f"invalid submission results: {e}") from e

    def submit_file(self, file, params: Mapping[str, Any]) -> DetectionResponse:
        """
        Submit a stored file for analysis.

        Args:
            file: object with `filename`, `mimetype` and `content` (bytes)
            params: assignment/user metadata sent as form fields

        Returns:
            DetectionResponse with the classification fields filled in
        """
        files = {
            "file": (
                os.path.basename(file.filename),
                file.content,
                file.mimetype or "application/octet-stream",
            )
        }
        body = self._post(SUBMIT_PATH, files=files, data=_form_fields(params))
        return self._parse_submission(body)

    def submit_text(self, text: str, params: Mapping[str, Any]) -> DetectionResponse:
        """Submit raw text for analysis; encoded as multipart like files."""
        # (None, value) makes requests send a plain form part without filename
        files = {"text": (None, text)}
        body = self._post(SUBMIT_PATH, files=files, data=_form_fields(params))
        return self._parse_submission(body)

    def create_assignment(self, user_name: str, user_email: str, user_id: int) -> str:
        """Create the assignment on the detection service; returns its id."""
        body = self._post(
            ASSIGNMENT_PATH,
            json={"userName": user_name, "userEmail": user_email, "userId": user_id},
        )
        self._raise_for_error_payload(body, ASSIGNMENT_PATH)

        data = body.get("data")
        assignment_id = data.get("assignment_id") if isinstance(data, dict) else None
        if not assignment_id:
            raise RemoteError("assignment creation returned no assignment id")

        logger.info(f"Created detection assignment {assignment_id} for user {user_id}")
        return str(assignment_id)

    def has_account(self, user_email: str) -> bool:
        body = self._post(ACCOUNT_PATH, json={"userEmail": user_email})
        self._raise_for_error_payload(body, ACCOUNT_PATH)
        if "hasAccount" not in body:
            raise RemoteError("account check returned no hasAccount flag")
        return bool(body["hasAccount"])
