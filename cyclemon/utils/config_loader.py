"""
JSON configuration loader for properties and coverage points.

A configuration declares the monitored signals, an optional default
reset (disable) expression, and lists of property and coverage records
whose predicates are written in the expression language. The engine
never hardcodes a target system's semantics; they all live here.

Expected format::

    {
      "signals": ["rst_n", "instr", "valid", "ready"],
      "reset": "!rst_n",
      "properties": [
        {"label": "req_ack", "trigger": "valid && !ready",
         "consequent": "ready", "window": [1, 5]},
        {"label": "mutex", "trigger": "a", "consequent": "!b",
         "window": "next"},
        {"label": "sticky", "trigger": "rose(start)",
         "consequent": "done", "window": [1, "unbounded"],
         "disable": null, "overlap": false}
      ],
      "coverage": [{"label": "opcode_add", "predicate": "instr[7:4] == 4'h1"}]
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from cyclemon.core.errors import ConfigurationError
from cyclemon.core.predicate import FALSE, Predicate
from cyclemon.core.property import (
    NEXT_WINDOW,
    CoveragePoint,
    PropertyDefinition,
    PropertyKind,
    Window,
)
from cyclemon.parser.expression import compile_predicate

_UNBOUNDED = frozenset({"unbounded", "$", "inf"})
_PROPERTY_FIELDS = frozenset(
    {"label", "trigger", "consequent", "window", "disable", "kind", "overlap"}
)
_COVERAGE_FIELDS = frozenset({"label", "predicate"})


@dataclass
class MonitorConfig:
    """
    A parsed configuration document.

    Records are kept as raw dictionaries until they are built, so that a
    malformed record is reported on its own without hiding the others.

    Attributes:
        signals: Declared signal names.
        reset: Default disable expression for properties without one.
        properties: Raw property records, in file order.
        coverage: Raw coverage records, in file order.
        source: File the configuration was read from, if any.
    """

    signals: FrozenSet[str]
    reset: Optional[str] = None
    properties: List[Dict[str, Any]] = field(default_factory=list)
    coverage: List[Dict[str, Any]] = field(default_factory=list)
    source: Optional[Path] = None

    def build_properties(
        self,
    ) -> Tuple[List[PropertyDefinition], List[ConfigurationError]]:
        """
        Compile every property record.

        Returns:
            The definitions that compiled, and one error per rejected record.
        """
        definitions: List[PropertyDefinition] = []
        errors: List[ConfigurationError] = []
        for index, record in enumerate(self.properties):
            try:
                definitions.append(self._build_property(index, record))
            except ConfigurationError as exc:
                errors.append(exc)
        return definitions, errors

    def build_coverage(self) -> Tuple[List[CoveragePoint], List[ConfigurationError]]:
        """
        Compile every coverage record.

        Returns:
            The coverage points that compiled, and one error per rejected record.
        """
        points: List[CoveragePoint] = []
        errors: List[ConfigurationError] = []
        for index, record in enumerate(self.coverage):
            try:
                label = _record_label(record, "coverage", index)
                _check_fields(record, _COVERAGE_FIELDS, f"coverage '{label}'")
                predicate = self._compile(
                    _required_str(record, "predicate", f"coverage '{label}'"),
                    f"coverage '{label}'",
                )
                points.append(CoveragePoint(label=label, predicate=predicate))
            except ConfigurationError as exc:
                errors.append(exc)
        return points, errors

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _build_property(self, index: int, record: Dict[str, Any]) -> PropertyDefinition:
        label = _record_label(record, "property", index)
        where = f"property '{label}'"
        _check_fields(record, _PROPERTY_FIELDS, where)

        trigger = self._compile(_required_str(record, "trigger", where), f"trigger of {where}")
        consequent = self._compile(
            _required_str(record, "consequent", where), f"consequent of {where}"
        )
        disable = self._disable(record, where)
        window, kind = _parse_window(record, where)

        overlap = record.get("overlap", True)
        if not isinstance(overlap, bool):
            raise ConfigurationError(f"{where}: 'overlap' must be true or false")

        try:
            return PropertyDefinition(
                label=label,
                trigger=trigger,
                consequent=consequent,
                window=window,
                disable=disable,
                kind=kind,
                overlap=overlap,
            )
        except ConfigurationError as exc:
            raise ConfigurationError(f"{where}: {exc}") from exc

    def _disable(self, record: Dict[str, Any], where: str) -> Predicate:
        if "disable" not in record:
            if self.reset is None:
                return FALSE
            return self._compile(self.reset, f"reset of {where}")
        value = record["disable"]
        if value is None:
            return FALSE
        if not isinstance(value, str):
            raise ConfigurationError(f"{where}: 'disable' must be a string or null")
        return self._compile(value, f"disable of {where}")

    def _compile(self, text: str, context: str) -> Predicate:
        return compile_predicate(text, self.signals, context=context)


def load_config(path: Path) -> MonitorConfig:
    """
    Read a JSON configuration file.

    Args:
        path: Path to the configuration file.

    Returns:
        The parsed MonitorConfig (records not yet compiled).

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the JSON is invalid or its top-level shape
            is wrong.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    config = loads_config(path.read_text(), source=str(path))
    config.source = path
    return config


def loads_config(text: str, source: str = "<string>") -> MonitorConfig:
    """Parse a JSON configuration document from a string."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{source}: invalid JSON: {exc}") from exc
    return parse_config(data, source=source)


def parse_config(data: Any, source: str = "<data>") -> MonitorConfig:
    """
    Validate the top-level shape of an already-decoded configuration.

    Raises:
        ConfigurationError: On a missing/invalid ``signals`` list, a
            non-string ``reset``, or non-list ``properties``/``coverage``.
    """
    if not isinstance(data, dict):
        raise ConfigurationError(f"{source}: top level must be an object")

    unknown = set(data) - {"signals", "reset", "properties", "coverage"}
    if unknown:
        raise ConfigurationError(f"{source}: unknown top-level field(s) {sorted(unknown)}")

    signals = data.get("signals")
    if (
        not isinstance(signals, list)
        or not signals
        or not all(isinstance(s, str) and s.strip() for s in signals)
    ):
        raise ConfigurationError(f"{source}: 'signals' must be a non-empty list of names")
    if len(set(signals)) != len(signals):
        raise ConfigurationError(f"{source}: 'signals' contains duplicates")

    reset = data.get("reset")
    if reset is not None and not isinstance(reset, str):
        raise ConfigurationError(f"{source}: 'reset' must be an expression string")

    properties = data.get("properties", [])
    coverage = data.get("coverage", [])
    for name, records in (("properties", properties), ("coverage", coverage)):
        if not isinstance(records, list):
            raise ConfigurationError(f"{source}: '{name}' must be a list")

    return MonitorConfig(
        signals=frozenset(s.strip() for s in signals),
        reset=reset,
        properties=list(properties),
        coverage=list(coverage),
    )


def _record_label(record: Any, kind: str, index: int) -> str:
    if not isinstance(record, dict):
        raise ConfigurationError(f"{kind} record #{index} must be an object")
    label = record.get("label")
    if not isinstance(label, str) or not label.strip():
        raise ConfigurationError(f"{kind} record #{index}: 'label' must be a non-empty string")
    return label.strip()


def _check_fields(record: Dict[str, Any], allowed: FrozenSet[str], where: str) -> None:
    unknown = set(record) - allowed
    if unknown:
        raise ConfigurationError(f"{where}: unknown field(s) {sorted(unknown)}")


def _required_str(record: Dict[str, Any], key: str, where: str) -> str:
    value = record.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"{where}: '{key}' must be a non-empty expression string")
    return value


def _parse_window(record: Dict[str, Any], where: str) -> Tuple[Window, PropertyKind]:
    """
    Interpret the ``window`` and ``kind`` fields.

    Accepted window forms: ``"next"``, ``[min, max]`` where max may be
    ``"unbounded"``/``"$"``/null, or ``{"min": .., "max": ..}``. The
    window defaults to ``[1, 1]``.
    """
    kind_text = record.get("kind")
    raw = record.get("window", [1, 1])

    if raw == "next":
        if kind_text not in (None, "next"):
            raise ConfigurationError(f"{where}: window 'next' conflicts with kind '{kind_text}'")
        return NEXT_WINDOW, PropertyKind.NEXT_EXACT

    if isinstance(raw, dict):
        _check_fields(raw, frozenset({"min", "max"}), f"{where} window")
        low, high = raw.get("min", 1), raw.get("max")
    elif isinstance(raw, list) and len(raw) == 2:
        low, high = raw
    else:
        raise ConfigurationError(
            f"{where}: 'window' must be \"next\", [min, max] or {{\"min\", \"max\"}}"
        )

    if high is None or (isinstance(high, str) and high.lower() in _UNBOUNDED):
        high = None

    try:
        window = Window(min=low, max=high)
    except ConfigurationError as exc:
        raise ConfigurationError(f"{where}: {exc}") from exc

    if kind_text is None or kind_text == "eventual":
        return window, PropertyKind.EVENTUAL
    if kind_text == "next":
        return window, PropertyKind.NEXT_EXACT
    raise ConfigurationError(f"{where}: unknown kind '{kind_text}'")
