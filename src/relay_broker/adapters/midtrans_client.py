"""Midtrans Snap checkout client."""

from dataclasses import dataclass

import httpx

from relay_broker.domain.errors import UpstreamFailureError
from relay_broker.services.ledger import PaymentGateway

SANDBOX_SNAP_URL = "https://app.sandbox.midtrans.com/snap/v1/transactions"


@dataclass
class HttpxMidtransClient(PaymentGateway):
    """HTTPX-backed Snap client that creates hosted checkout pages."""

    server_key: str
    snap_url: str
    http_client: httpx.AsyncClient
    payer_email_domain: str = "example.com"

    @classmethod
    def create(
        cls,
        server_key: str,
        snap_url: str = SANDBOX_SNAP_URL,
        payer_email_domain: str = "example.com",
    ) -> "HttpxMidtransClient":
        """Create a Snap client with a managed httpx session."""
        return cls(
            server_key=server_key,
            snap_url=snap_url,
            http_client=httpx.AsyncClient(),
            payer_email_domain=payer_email_domain,
        )

    async def create_checkout(
        self, transaction_id: int, price: float, payer_ref: str
    ) -> str:
        """Create a Snap transaction and return its redirect URL."""
        payload = {
            "transaction_details": {
                "order_id": str(transaction_id),
                "gross_amount": int(price),
            },
            "customer_details": {
                "email": f"user{payer_ref}@{self.payer_email_domain}",
            },
            "credit_card": {"secure": True},
        }
        try:
            response = await self.http_client.post(
                self.snap_url,
                json=payload,
                auth=(self.server_key, ""),
                headers={"Accept": "application/json"},
                timeout=15,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamFailureError(f"checkout creation failed: {exc}") from exc

        redirect_url = data.get("redirect_url") if isinstance(data, dict) else None
        if not isinstance(redirect_url, str) or not redirect_url:
            raise UpstreamFailureError("failed to create payment")
        return redirect_url

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
