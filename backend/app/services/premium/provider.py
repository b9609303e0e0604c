"""Subscription status providers. Real (Mercado Pago over HTTP) and in-memory; same contract."""
import logging
from typing import Protocol

import httpx

from ...errors import ExternalProviderError

logger = logging.getLogger(__name__)

AUTHORIZED = "authorized"


class SubscriptionStatusProvider(Protocol):
    """Looks up the live status of a recurring-billing authorization (preapproval)."""

    def get_preapproval_status(self, preapproval_id: str) -> str:
        """
        Return the provider's status string (e.g. "authorized", "pending").
        Raises ExternalProviderError when the status cannot be obtained.
        """
        ...


class MercadoPagoStatusProvider:
    """GET {base_url}/preapproval/{id} with a server-held bearer token."""

    def __init__(
        self,
        base_url: str,
        access_token: str,
        *,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._access_token = access_token
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._access_token}"}

    def get_preapproval_status(self, preapproval_id: str) -> str:
        if not self._access_token:
            raise ExternalProviderError("Mercado Pago access token not configured")

        url = f"{self._base_url}/preapproval/{preapproval_id}"
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as c:
                r = c.get(url, headers=self._headers())
        except httpx.HTTPError as e:
            raise ExternalProviderError(f"Mercado Pago request failed: {e}") from e

        if r.status_code != 200:
            raise ExternalProviderError(
                f"Mercado Pago API error: {r.status_code}", status_code=r.status_code
            )

        try:
            body = r.json()
        except ValueError as e:
            raise ExternalProviderError("Mercado Pago returned a non-JSON body") from e

        status = body.get("status") if isinstance(body, dict) else None
        if not isinstance(status, str):
            raise ExternalProviderError("Mercado Pago response has no status")
        return status


class InMemoryStatusProvider:
    """Dict-backed provider. Values may be a status string or an exception to raise."""

    def __init__(self, statuses: dict[str, str | Exception] | None = None) -> None:
        self.statuses: dict[str, str | Exception] = dict(statuses or {})
        self.calls: list[str] = []

    def get_preapproval_status(self, preapproval_id: str) -> str:
        self.calls.append(preapproval_id)
        value = self.statuses.get(preapproval_id)
        if value is None:
            raise ExternalProviderError(f"Unknown preapproval {preapproval_id}", status_code=404)
        if isinstance(value, Exception):
            raise value
        return value
