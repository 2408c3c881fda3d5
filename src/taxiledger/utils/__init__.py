"""Utility functions for taxiledger."""

from taxiledger.utils.date_parser import parse_date, parse_month, get_date_range
from taxiledger.utils.amount_parser import parse_amount
from taxiledger.utils.logging_setup import configure_logging

__all__ = ["parse_date", "parse_month", "get_date_range", "parse_amount", "configure_logging"]
