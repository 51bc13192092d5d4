"""
HTTP submission of finished character sheets.

HttpCharacterSubmitter implements the extractor's CharacterSubmitter seam by
POSTing the sheet to /api/users. Every way the call can go wrong (network
failure, non-2xx status, or a body reporting success=false) is surfaced as a
single SubmissionError carrying a readable reason.
"""

import logging

import httpx

from ..config import API_URL, SUBMIT_TIMEOUT
from .extractor import CandidateSheet, SubmissionError

logger = logging.getLogger(__name__)

CREATE_CHARACTER_PATH = "/api/users"


class HttpCharacterSubmitter:
    """
    Submits sheets to the Spirit Tower API.

    Pass an existing httpx.AsyncClient to share a connection pool (or to
    route requests through a test transport); otherwise a client is opened
    per submission.
    """

    def __init__(
        self,
        base_url: str = API_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = SUBMIT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = client
        self.timeout = timeout

    async def create_character(self, name: str, sheet: CandidateSheet) -> None:
        payload = sheet.to_payload(name)
        url = f"{self.base_url}{CREATE_CHARACTER_PATH}"

        try:
            if self.client is not None:
                response = await self.client.post(url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=payload)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error("Network error submitting %s: %r", name, e)
            raise SubmissionError(f"Network error: {e}") from e

        body = _json_or_none(response)

        if response.status_code >= 400:
            raise SubmissionError(_failure_reason(body, f"Server returned {response.status_code}"))

        if not isinstance(body, dict) or not body.get("success"):
            raise SubmissionError(_failure_reason(body, "Save failed"))

        logger.info("Submitted character for %s", name)


def _json_or_none(response: httpx.Response):
    try:
        return response.json()
    except ValueError:
        return None


def _failure_reason(body, default: str) -> str:
    """Pull a message out of a FastAPI error or a {success, message} body."""
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message")
        if isinstance(detail, str) and detail:
            return detail
        if isinstance(detail, list) and detail:
            # Pydantic validation errors: report the first one
            first = detail[0]
            if isinstance(first, dict) and first.get("msg"):
                return str(first["msg"])
    return default
