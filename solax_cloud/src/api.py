"""
Async client for the Solax Cloud realtime data API.

POSTs ``{"wifiSn": <sn>}`` to the realtime endpoint with the API token in the
``tokenId`` header and parses the ``result`` object into an
:class:`~solax_cloud.src.models.InverterSample`. TLS certificate verification
is always enabled.

The cloud enforces fewer than 10 requests/minute and 10,000 requests/day per
token; pacing is the caller's job (see ``config.MIN_POLLING_FREQUENCY``).

Operations:
- get_realtime_info(sn): Fetch the latest reading for one inverter.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from solax_cloud.src.models import InverterSample

logger = logging.getLogger(__name__)

API_URL = "https://global.solaxcloud.com/api/v2/dataAccess/realtimeInfo/get"

_DEFAULT_TIMEOUT_S = 10.0


class SolaxCloudError(Exception):
    """Base exception for Solax Cloud API errors."""


class SolaxCloudConnectionError(SolaxCloudError):
    """Raised when the API is unreachable or times out."""


class SolaxCloudClient:
    """HTTP client for one Solax Cloud API token.

    One client is shared by every inverter registered under the token.

    Args:
        token_id: Solax Cloud API token.
        api_url: Realtime endpoint URL. Must use HTTPS.
        timeout_s: Timeout per request in seconds.

    Raises:
        ValueError: If *api_url* does not start with ``https://``.
    """

    def __init__(
        self,
        token_id: str,
        *,
        api_url: str = API_URL,
        timeout_s: float = _DEFAULT_TIMEOUT_S,
    ) -> None:
        if not api_url.lower().startswith("https://"):
            raise ValueError(f"Solax Cloud API URL must use HTTPS (got: '{api_url}').")
        self._token_id = token_id
        self._api_url = api_url
        self._timeout_s = timeout_s

    async def get_realtime_info(self, sn: str) -> InverterSample:
        """Fetch the latest realtime reading for the inverter with serial *sn*.

        Raises:
            SolaxCloudConnectionError: On network errors or timeouts.
            SolaxCloudError: On a non-200 response, an unparsable body, an
                API-level failure (``success`` false) or a malformed result.
        """
        try:
            async with httpx.AsyncClient(verify=True, timeout=self._timeout_s) as client:
                response = await client.post(
                    self._api_url,
                    json={"wifiSn": sn},
                    headers={"tokenId": self._token_id},
                )
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            raise SolaxCloudConnectionError(
                f"Error connecting to Solax Cloud for {sn}: {exc}"
            ) from exc

        if response.status_code != 200:
            raise SolaxCloudError(
                f"Solax Cloud returned HTTP {response.status_code} for {sn}"
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise SolaxCloudError(f"Invalid JSON from Solax Cloud for {sn}") from exc

        if not isinstance(body, dict) or not body.get("success"):
            exception = body.get("exception") if isinstance(body, dict) else None
            raise SolaxCloudError(
                f"Solax Cloud request for {sn} failed: {exception or 'unknown error'}"
            )

        result = body.get("result")
        if not isinstance(result, dict):
            raise SolaxCloudError(f"Solax Cloud response for {sn} has no result")

        try:
            sample = InverterSample.model_validate(result)
        except ValidationError as exc:
            raise SolaxCloudError(f"Malformed Solax Cloud result for {sn}") from exc

        logger.debug("Fetched realtime info for %s (upload_time=%s)", sn, sample.upload_time)
        return sample
