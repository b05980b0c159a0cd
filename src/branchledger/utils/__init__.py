"""Utility functions for branchledger."""

from branchledger.utils.date_parser import parse_date
from branchledger.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_amount"]
