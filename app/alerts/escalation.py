"""
Escalation Policy

Decides on which days an alert is worth an email. Rules that age (unpaid
invoices, stalled prospects) escalate on their first eligible day and then
every `interval` days, instead of emailing daily.
"""

from datetime import date


def should_escalate(days: int, start: int, interval: int) -> bool:
    """
    True on day `start` and every `interval` days after it.

    >>> [should_escalate(d, 7, 3) for d in (6, 7, 8, 9, 10)]
    [False, True, False, False, True]
    """
    if interval <= 0:
        raise ValueError("interval must be positive")
    if days < start:
        return False
    return (days - start) % interval == 0


def is_start_of_month(today: date, last_day: int) -> bool:
    """True on calendar days 1..last_day of the month."""
    return today.day <= last_day


def escalates_once_at(days: int, target: int) -> bool:
    """Single advance-warning escalation on exactly day `target`."""
    return days == target
