"""Charter desk: booking calendar, bank reconciliation and deferred charter revenue."""

__version__ = "0.1.0"
