"""
HTTP client for the external analysis backend.

Every call returns Success or Failure; responses are validated and
normalised here so nothing above this module handles raw JSON.
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from finsight.models import Failure, ResponseShapeError, Result, Success, normalize_report
from finsight.utils import is_pdf

logger = logging.getLogger(__name__)


class AnalysisClient:
    def __init__(self, base_url: str, timeout: float = 60.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self.client.aclose()

    async def _request(self, method: str, endpoint: str, **kwargs) -> Result:
        """Send one request and decode its JSON body into Success(payload)"""
        try:
            response = await self.client.request(method, endpoint, **kwargs)
        except httpx.TimeoutException:
            logger.error(f"{method} {endpoint} timed out")
            return Failure("Request timed out")
        except httpx.HTTPError as e:
            logger.error(f"API call failed: {method} {endpoint}: {e}")
            return Failure(f"Network error: {e}")

        if response.is_error:
            logger.error(f"API call failed: {method} {endpoint} -> {response.status_code}")
            return Failure(f"HTTP error! status: {response.status_code}", status_code=response.status_code)

        if not response.content:
            return Success(None)

        try:
            return Success(response.json())
        except ValueError:
            logger.error(f"{method} {endpoint} returned a non-JSON body")
            return Failure("Invalid JSON in response", status_code=response.status_code)

    async def upload_document(self, filename: str, content: bytes, content_type: str = "application/pdf") -> Result:
        """POST one PDF as the multipart field 'pdf' and return the analysis"""
        if not is_pdf(filename, content_type):
            return Failure(f"Only PDF documents can be analysed: {filename}")

        logger.info(f"Uploading {filename} ({len(content)} bytes) for analysis")
        result = await self._request(
            "POST", "/upload",
            files={"pdf": (filename, content, content_type or "application/pdf")},
        )
        if not result.ok:
            return result

        try:
            report = normalize_report(result.value)
        except ResponseShapeError as e:
            return Failure(f"Unexpected analysis response: {e}")

        if not report.document_name:
            report.document_name = filename
        return Success(report)

    async def list_history(self) -> Result:
        result = await self._request("GET", "/history")
        if not result.ok:
            return result

        if not isinstance(result.value, list):
            return Failure("Unexpected history response: expected a list")

        reports = []
        for entry in result.value:
            try:
                reports.append(normalize_report(entry))
            except ResponseShapeError as e:
                logger.warning(f"Skipping malformed history entry: {e}")
        return Success(reports)

    async def delete_report(self, report_id: str) -> Result:
        logger.info(f"Deleting report {report_id}")
        result = await self._request("DELETE", f"/delete/{quote(report_id, safe='')}")
        if not result.ok:
            return result
        return Success(report_id)

    async def latest_report(self) -> Result:
        result = await self._request("GET", "/finance-report/latest")
        if not result.ok:
            return result

        try:
            return Success(normalize_report(result.value))
        except ResponseShapeError as e:
            return Failure(f"Unexpected report response: {e}")
