"""
CYCLEMON: CYCLE-accurate temporal property MONitor.

Runtime checking of bounded-response and sticky timing properties over
clock-stepped traces of named boolean/integer signals, with per-property
pass/fail/abort accounting and cycle-level coverage counters.
"""

__version__ = "0.1.0"
