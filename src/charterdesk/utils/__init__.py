"""Utility functions for charterdesk."""

from charterdesk.utils.date_parser import parse_date, parse_month
from charterdesk.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_month", "parse_amount"]
