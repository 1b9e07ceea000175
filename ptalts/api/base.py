"""
Request/response plumbing shared by the PTAlts API clients.
"""

from typing import Any, Dict, Iterable, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PayloadValidationError

from shared.config import DEFAULT_BASE_URL
from shared.errors import RequestError
from shared.logging import get_logger

API_KEY_HEADER = "X-API-Key"


def path_segment(value: str) -> str:
    """Percent-encode ``value`` so it stays a single URL path segment."""
    return quote(str(value), safe="")


class HttpApi:
    """Sends one JSON request per call and validates the JSON reply."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        logger_name: str = "ptalts.api",
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.logger = get_logger(logger_name)
        self._codecs: Dict[Any, TypeAdapter] = {}

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def headers(self, authenticated: bool = True, json_body: bool = False) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if authenticated:
            if not self.api_key:
                raise RequestError("API key required", details={"reason": "missing_api_key"})
            headers[API_KEY_HEADER] = self.api_key
        if json_body:
            headers["Content-Type"] = "application/json"
            headers["Accept"] = "*/*"
        return headers

    def _codec(self, response_type: Any) -> TypeAdapter:
        codec = self._codecs.get(response_type)
        if codec is None:
            codec = self._codecs[response_type] = TypeAdapter(response_type)
        return codec

    async def request(
        self,
        method: str,
        path: str,
        response_type: Any,
        action: str,
        payload: Optional[BaseModel] = None,
        authenticated: bool = True,
        accepted: Iterable[int] = (200,)
    ) -> Any:
        """Perform a request and decode the body into ``response_type``.

        ``action`` is a short phrase ("fetch stock") used in error messages.
        """
        url = self.url(path)
        headers = self.headers(authenticated=authenticated, json_body=payload is not None)
        body = payload.model_dump(by_alias=True) if payload is not None else None

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                if method == "GET":
                    response = await client.get(url, headers=headers)
                else:
                    response = await client.post(url, headers=headers, json=body)
        except httpx.HTTPError as e:
            self.logger.error("API request failed", action=action, url=url, error=str(e))
            raise RequestError(
                f"Error while trying to {action}",
                details={"url": url, "http_error": str(e)}
            ) from e

        if response.status_code not in accepted:
            error_message = extract_error_message(response)
            self.logger.warning(
                "API request rejected",
                action=action,
                status_code=response.status_code,
                error_message=error_message
            )
            raise RequestError(
                f"Failed to {action}. Status: {response.status_code}",
                details={"status_code": response.status_code, "error_message": error_message}
            )

        try:
            return self._codec(response_type).validate_json(response.content)
        except PayloadValidationError as e:
            self.logger.error("Unexpected API response body", action=action, error=str(e))
            raise RequestError(
                f"Unexpected response while trying to {action}",
                details={"status_code": response.status_code, "errors": e.error_count()}
            ) from e


def extract_error_message(response: httpx.Response) -> Optional[str]:
    """Pull ``{"error": ...}`` out of an error body, if there is one."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return None
