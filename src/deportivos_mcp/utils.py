"""Utility functions for Deportivos MCP server."""

import logging
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation

logger = logging.getLogger(__name__)

date_regex = re.compile(r"^\d{4}-\d{2}-\d{2}$")
time_regex = re.compile(r"^\d{2}:\d{2}$")
code_regex = re.compile(r"[0-9]+")


def validate_date(date_str: str) -> bool:
    """Validate date format (YYYY-MM-DD).

    Args:
        date_str: Date string to validate

    Returns:
        True if valid, False otherwise
    """
    try:
        if not re.match(date_regex, date_str):
            return False

        datetime.strptime(date_str, "%Y-%m-%d")
        return True

    except (ValueError, TypeError):
        return False


def validate_time(time_str: str) -> bool:
    """Validate time format (HH:MM).

    Args:
        time_str: Time string to validate

    Returns:
        True if valid, False otherwise
    """
    try:
        if not re.match(time_regex, time_str):
            return False

        hour, minute = map(int, time_str.split(":"))

        if not (0 <= hour <= 23):
            return False
        if not (0 <= minute <= 59):
            return False

        return True

    except (ValueError, TypeError):
        return False


def validate_time_range(start_time: str, end_time: str) -> bool:
    """Check that both times are valid and the range ends after it starts."""
    if not validate_time(start_time) or not validate_time(end_time):
        return False
    # Zero padded HH:MM compares correctly as text
    return start_time < end_time


def validate_amount(amount: str) -> bool:
    """Check that an amount is a non-negative decimal number."""
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        return False
    return value.is_finite() and value >= 0


def is_code_input(value: str) -> bool:
    """Accept an empty string or ASCII digits only, as typed in a code field."""
    return value == "" or code_regex.fullmatch(value) is not None


def format_date_for_display(date_str: str) -> str:
    """Format date for display (YYYY-MM-DD -> DD/MM/YYYY).

    Args:
        date_str: Date string in YYYY-MM-DD format

    Returns:
        Formatted date string
    """
    if not validate_date(date_str):
        return date_str
    return datetime.strptime(date_str, "%Y-%m-%d").strftime("%d/%m/%Y")
