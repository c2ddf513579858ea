"""
Error taxonomy for the monitor.

Only setup mistakes and broken input sequencing are surfaced as
exceptions. A property violation is an expected outcome and is recorded
in the report instead.
"""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for all errors raised by the monitor."""

    pass


class ConfigurationError(MonitorError):
    """
    Raised when a property, coverage point or predicate is malformed.

    Examples: a reference to an undeclared signal, ``window_min < 1``,
    ``window_max < window_min``, a duplicate label, or registration after
    the first cycle has been observed. Raised at setup time; a rejected
    registration leaves previously registered properties untouched.
    """

    pass


class SequenceError(MonitorError):
    """
    Raised when snapshots are fed out of order or after the run ended.

    Fatal to the run: once raised, the monitor refuses all further input
    and the caller must start a new monitor.
    """

    pass
