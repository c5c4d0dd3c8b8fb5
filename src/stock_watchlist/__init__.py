"""Stock watchlist service: per-user watchlists enriched with live market data."""
