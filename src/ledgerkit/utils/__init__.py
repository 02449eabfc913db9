"""Utility functions for ledgerkit."""

from ledgerkit.utils.date_parser import parse_date, to_iso_date
from ledgerkit.utils.amount_parser import parse_amount, to_decimal

__all__ = ["parse_date", "to_iso_date", "parse_amount", "to_decimal"]
