"""
SConboard — Service Center Submission Client
=============================================

What:  Hands a validated FormRecord to the create-service-center API.
How:   Multipart POST through httpx.AsyncClient:
           text fields  under their HTML form names (centerName, zipCode, ...)
           categories   one form entry per selected tag
           images       one file part per image, in form order
Who:   Called by FormSession.submit() after validation passed.

Failure mapping:
    transport error      → SubmissionError(status_code=None)
    non-2xx response     → SubmissionError(status_code=<status>), message
                           taken from the body's "message" when present.
                           Redirects are not followed, so a 3xx (auth or
                           proxy bounce) is a failure too; nothing was
                           created.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Tuple

import httpx

from sconboard.config import settings
from sconboard.exceptions import SubmissionError
from sconboard.schemas.form import FormRecord, SubmissionResponse

logger = logging.getLogger(__name__)


def build_form_data(record: FormRecord) -> Dict[str, Any]:
    data: Dict[str, Any] = dict(record.text_fields())
    data["categories"] = [c.value for c in record.categories]
    return data


def build_files(record: FormRecord) -> List[Tuple[str, Tuple[str, bytes, str]]]:
    return [
        ("images", (image.filename, image.content, image.content_type))
        for image in record.images
    ]


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("message"), str) and body["message"]:
        return body["message"]
    return f"Could not submit the form (HTTP {response.status_code}). Please try again."


class ServiceCenterClient:
    """
    Args:
        client: Shared httpx.AsyncClient. When omitted, each submission opens
                and closes its own client.
        url: Override for settings.service_centers_url.
        timeout: Override for settings.api_timeout.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.client = client
        self.url = url or settings.service_centers_url
        self.timeout = timeout or settings.api_timeout

    async def _post(self, data: Dict[str, Any], files: list) -> httpx.Response:
        if self.client is not None:
            return await self.client.post(self.url, data=data, files=files, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.url, data=data, files=files)

    async def create_service_center(self, record: FormRecord) -> SubmissionResponse:
        """
        Raises:
            SubmissionError: The API was unreachable or refused the record.
        """
        start_time = time.time()
        try:
            response = await self._post(build_form_data(record), build_files(record))
        except httpx.HTTPError as e:
            logger.error("Submission to %s failed: %s", self.url, str(e))
            raise SubmissionError(
                message="Could not reach the server. Please try again.",
                context={"url": self.url, "error_type": type(e).__name__},
            )

        if not response.is_success:
            message = _error_message(response)
            logger.warning(
                "Submission rejected with HTTP %d: %s", response.status_code, message
            )
            raise SubmissionError(
                message=message,
                status_code=response.status_code,
                context={"url": self.url},
            )

        try:
            body = response.json()
        except ValueError:
            body = {}
        result = SubmissionResponse.model_validate(body if isinstance(body, dict) else {})

        logger.info(
            "Service center '%s' submitted in %.0fms (id=%s, %d images)",
            record.center_name,
            (time.time() - start_time) * 1000,
            result.id,
            len(record.images),
        )
        return result
