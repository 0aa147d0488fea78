"""
Market Price Client

Looks up current quotes from the public Yahoo Finance chart endpoint
(no API key required).
"""

import requests

from logging_config import get_logger

logger = get_logger(__name__)

YAHOO_CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"


def get_current_price(symbol: str, timeout: int = 10) -> dict | None:
    """
    Fetch the latest price for a ticker symbol.

    Args:
        symbol: Ticker symbol (e.g. "AAPL")
        timeout: Request timeout in seconds

    Returns:
        {"price", "change", "changePercent", "previousClose"} or None when
        the response carries no market price
    """
    response = requests.get(
        YAHOO_CHART_URL.format(symbol=symbol),
        headers={"User-Agent": "Mozilla/5.0"},
        timeout=timeout,
    )
    response.raise_for_status()
    data = response.json()

    results = (data.get("chart") or {}).get("result") or []
    meta = results[0].get("meta", {}) if results else {}
    price = meta.get("regularMarketPrice")
    if not price:
        logger.info(f"No price data found for {symbol}")
        return None

    previous_close = meta.get("previousClose") or meta.get("chartPreviousClose")
    change = price - previous_close if previous_close else None
    change_percent = (
        f"{(change / previous_close) * 100:.2f}%" if previous_close else None
    )

    return {
        "price": price,
        "change": change,
        "changePercent": change_percent,
        "previousClose": previous_close,
    }
