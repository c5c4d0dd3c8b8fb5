"""Counters for degraded watchlist reads, exported via prometheus_client.

Degraded paths (a market-data lookup that fell back to N/A, a store read that
fell back to an empty result) are logged and counted so they can be found
without grepping logs.
"""
import logging

from prometheus_client import Counter

logger = logging.getLogger(__name__)

ENRICHMENT_DEGRADED = Counter(
    "watchlist_enrichment_degraded",
    "Market data lookups that fell back to default values.",
    ["endpoint"],
)

STORE_READ_DEGRADED = Counter(
    "watchlist_store_read_degraded",
    "Watchlist reads that failed and returned an empty result.",
    ["operation"],
)


def record_enrichment_failure(endpoint: str, symbol: str, exc: BaseException) -> None:
    """Log and count a market-data failure for one symbol.

    Args:
        endpoint: Which lookup failed ("quote", "profile", "metric", "search"
            or "row").
        symbol: Ticker being enriched.
        exc: The exception raised by the lookup.
    """
    logger.warning(
        "Market data %s lookup failed for %s: %s: %s",
        endpoint,
        symbol,
        type(exc).__name__,
        exc,
    )
    ENRICHMENT_DEGRADED.labels(endpoint=endpoint).inc()


def mask_email(email: str) -> str:
    """Mask the local part of an address for logs: "alice@x.com" -> "a***@x.com"."""
    local, sep, domain = (email or "").strip().partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"


def record_store_read_failure(operation: str, subject: str, exc: BaseException) -> None:
    """Log and count a swallowed watchlist read failure.

    subject identifies who the read was for (a user id or a masked email);
    raw email addresses must not be passed.
    """
    logger.warning(
        "Watchlist %s failed for %s: %s: %s",
        operation,
        subject,
        type(exc).__name__,
        exc,
    )
    STORE_READ_DEGRADED.labels(operation=operation).inc()
