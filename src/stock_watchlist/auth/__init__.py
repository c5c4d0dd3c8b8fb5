"""Auth collaborator seam: reading the session of the current request."""
from stock_watchlist.auth.session import (SessionReaderABC,
                                          TrustedHeaderSessionReader)

__all__ = ["SessionReaderABC", "TrustedHeaderSessionReader"]
