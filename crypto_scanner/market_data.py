"""CoinMarketCap client for ranked coin listings."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import settings
from .errors import DataSourceError
from .models import MarketCoin

logger = logging.getLogger(__name__)


class CoinMarketCapClient:
    """Fetches the top coins by CoinMarketCap rank, quoted in USD."""

    LISTINGS_PATH = "/v1/cryptocurrency/listings/latest"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.cmc_api_key
        self.base_url = (base_url or settings.cmc_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.cmc_timeout_seconds
        self._transport = transport

    def fetch_ranked(self, limit: int) -> List[MarketCoin]:
        """Get up to `limit` coins in CoinMarketCap rank order.

        Raises:
            DataSourceError: on network failure, timeout, non-200 response,
                API-level error or an unparseable payload.
        """
        try:
            with httpx.Client(transport=self._transport, timeout=self.timeout) as client:
                response = client.get(
                    f"{self.base_url}{self.LISTINGS_PATH}",
                    headers={
                        "X-CMC_PRO_API_KEY": self.api_key or "",
                        "Accept": "application/json",
                    },
                    params={"start": 1, "limit": limit, "convert": "USD"},
                )
        except httpx.TimeoutException as e:
            raise DataSourceError(f"CoinMarketCap request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise DataSourceError(f"CoinMarketCap request failed: {e}") from e

        if response.status_code != 200:
            raise DataSourceError(
                f"CoinMarketCap API error: {response.status_code} - {_error_message(response)}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise DataSourceError(f"CoinMarketCap returned invalid JSON: {e}") from e

        status = payload.get("status") or {}
        if status.get("error_code"):
            raise DataSourceError(
                f"CoinMarketCap API error {status.get('error_code')}: {status.get('error_message')}"
            )

        rows = payload.get("data")
        if not isinstance(rows, list):
            raise DataSourceError("CoinMarketCap response has no 'data' list")

        coins = []
        for row in rows:
            coin = _parse_row(row)
            if coin is not None:
                coins.append(coin)

        logger.debug(f"Fetched {len(coins)} ranked coins (limit {limit})")
        return coins


def _parse_row(row: Dict[str, Any]) -> Optional[MarketCoin]:
    """Turn one listing entry into a MarketCoin, or None if it has no usable price."""
    try:
        quote = row["quote"]["USD"]
        symbol = row["symbol"]
    except (KeyError, TypeError):
        logger.warning(f"Skipping malformed listing entry: {row!r:.200}")
        return None

    price = quote.get("price")
    if price is None or price <= 0:
        logger.debug(f"{symbol}: no USD price, skipping")
        return None

    return MarketCoin(
        symbol=symbol,
        name=row.get("name") or "",
        price=float(price),
        change24h=float(quote.get("percent_change_24h") or 0.0),
        volume24h=_optional_float(quote.get("volume_24h")),
        market_cap=_optional_float(quote.get("market_cap")),
    )


def _optional_float(value) -> Optional[float]:
    return float(value) if value is not None else None


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json()["status"]["error_message"]
    except (ValueError, KeyError, TypeError):
        return response.text[:200]
