"""
CSV trace file parser for cycle-stepped signal traces.

Reads a recorded trace one cycle per row and turns each row into a
:class:`Snapshot`. Snapshots can be streamed, so arbitrarily long traces
are checked without loading them into memory.
"""

from __future__ import annotations

import csv
import re
from pathlib import Path
from typing import Dict, Iterator, List

from cyclemon.core.snapshot import Snapshot

_SIZED_LITERAL = re.compile(r"^(\d+)'[sS]?([bBoOdDhH])([0-9a-fA-F_]+)$")
_SIZED_RADIX = {"b": 2, "o": 8, "d": 10, "h": 16}
_DECIMAL = re.compile(r"^[-+]?\d+$")
_BOOLEANS = {"true": 1, "false": 0}

CYCLE_COLUMN = "cycle"


class TraceReader:
    """
    Parses CSV trace files into Snapshot objects.

    Expected CSV format::

        # Optional comment lines
        cycle,rst_n,valid,ready,instr
        0,0,0,0,0x00
        1,1,1,0,8'h12
        2,1,0,1,0x00

    The ``cycle`` column is optional; without it, rows are numbered from
    0 in file order. Values may be decimal, ``0x`` hex, ``0b`` binary,
    sized literals (``4'b1010``), or ``true``/``false``.

    Attributes:
        filepath: Path to the trace CSV file.
    """

    def __init__(self, filepath: Path) -> None:
        """
        Initialize reader with file path.

        Args:
            filepath: Path to the CSV trace file.
        """
        self.filepath: Path = Path(filepath)

    def signals(self) -> List[str]:
        """
        Return the signal columns in header order (the cycle column excluded).

        Raises:
            FileNotFoundError: If the trace file does not exist.
            ValueError: If the file has no header.
        """
        header = self._header()
        return [name for name in header if name != CYCLE_COLUMN]

    def iter_snapshots(self) -> Iterator[Snapshot]:
        """
        Stream snapshots in file order.

        Yields:
            One Snapshot per data row.

        Raises:
            FileNotFoundError: If the trace file does not exist.
            ValueError: On a malformed header or an unparseable value.
        """
        if not self.filepath.exists():
            raise FileNotFoundError(f"Trace file not found: {self.filepath}")

        with open(self.filepath, newline="") as f:
            reader = csv.reader(_data_lines(f))
            header = next(reader, None)
            if header is None:
                return
            header = self._check_header(header)

            for index, row in enumerate(reader):
                yield self._parse_row(header, row, index)

    def read_all(self) -> List[Snapshot]:
        """
        Read every snapshot from the file.

        Returns:
            List of Snapshot objects in file order.
        """
        return list(self.iter_snapshots())

    def validate(self) -> List[str]:
        """
        Validate the trace file and return a list of error strings.

        Validates:
        - File exists and has a header
        - Column names are unique
        - Every value parses and every row has one value per column

        Returns:
            List of error messages (empty if valid).
        """
        errors: List[str] = []

        if not self.filepath.exists():
            errors.append(f"File not found: {self.filepath}")
            return errors

        try:
            self._header()
            for _ in self.iter_snapshots():
                pass
        except ValueError as exc:
            errors.append(str(exc))
        return errors

    # ------------------------------------------------------------------ #
    # Static helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def parse_value(s: str) -> int:
        """
        Parse one signal value.

        Args:
            s: Value text, e.g. ``1``, ``-3``, ``0x1F``, ``0b101``,
               ``8'hA5``, ``true``.

        Returns:
            The integer value.

        Raises:
            ValueError: If the text is not a recognised literal.
        """
        text = s.strip()
        if not text:
            raise ValueError("empty value")

        lowered = text.lower()
        if lowered in _BOOLEANS:
            return _BOOLEANS[lowered]

        match = _SIZED_LITERAL.match(text)
        if match:
            width, radix, digits = match.groups()
            value = int(digits.replace("_", ""), _SIZED_RADIX[radix.lower()])
            if value >= (1 << int(width)):
                raise ValueError(f"literal '{text}' does not fit in {width} bits")
            return value

        if _DECIMAL.match(text):
            return int(text)
        try:
            return int(text.replace("_", ""), 0)
        except ValueError:
            raise ValueError(f"invalid value '{text}'") from None

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _header(self) -> List[str]:
        if not self.filepath.exists():
            raise FileNotFoundError(f"Trace file not found: {self.filepath}")
        with open(self.filepath, newline="") as f:
            header = next(csv.reader(_data_lines(f)), None)
        if header is None:
            raise ValueError(f"No header found in {self.filepath}")
        return self._check_header(header)

    def _check_header(self, header: List[str]) -> List[str]:
        names = [h.strip() for h in header]
        if any(not n for n in names):
            raise ValueError(f"Empty column name in header of {self.filepath}")
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate column names in header of {self.filepath}")
        if names == [CYCLE_COLUMN]:
            raise ValueError(f"No signal columns in header of {self.filepath}")
        return names

    def _parse_row(self, header: List[str], row: List[str], index: int) -> Snapshot:
        """Parse a single CSV row into a Snapshot."""
        if len(row) != len(header):
            raise ValueError(
                f"Row {index + 1} of {self.filepath} has {len(row)} values, "
                f"expected {len(header)}"
            )
        values: Dict[str, int] = {}
        cycle = index
        for name, text in zip(header, row):
            try:
                value = self.parse_value(text)
            except ValueError as exc:
                raise ValueError(
                    f"Row {index + 1} of {self.filepath}, column '{name}': {exc}"
                ) from exc
            if name == CYCLE_COLUMN:
                cycle = value
            else:
                values[name] = value
        return Snapshot(cycle=cycle, signals=values)


def _data_lines(f) -> Iterator[str]:
    """Yield non-comment, non-empty lines from an open file."""
    for line in f:
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            yield stripped
