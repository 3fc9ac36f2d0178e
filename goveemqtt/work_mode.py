"""Interpretation of the ``workMode`` capability reported by the platform API.

A capability is given in the JSON form the platform API returns it in::

    {
        "type": "devices.capabilities.work_mode",
        "instance": "workMode",
        "parameters": {
            "dataType": "STRUCT",
            "fields": [
                {"fieldName": "workMode", "dataType": "ENUM",
                 "options": [{"name": "Manual", "value": 1}]},
                {"fieldName": "modeValue", "dataType": "ENUM",
                 "options": [{"name": "Manual", "range": {"min": 1, "max": 9}}]},
            ],
        },
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

_OPTION_KEYS = ("name", "value")


class WorkModeError(ValueError):
    """The capability does not describe work modes in a usable way."""


def _as_int(value: Any) -> int | None:
    """Integer value of a JSON number, or None for anything else."""
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _json_equal(a: Any, b: Any) -> bool:
    return a == b and isinstance(a, bool) == isinstance(b, bool)


def _json_text(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def _struct_field_by_name(cap: Mapping[str, Any], name: str) -> Mapping[str, Any] | None:
    params = cap.get("parameters")
    if not isinstance(params, Mapping) or params.get("dataType") != "STRUCT":
        return None
    for struct_field in params.get("fields") or ():
        if isinstance(struct_field, Mapping) and struct_field.get("fieldName") == name:
            return struct_field
    return None


def _enum_options(struct_field: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    if struct_field.get("dataType") != "ENUM":
        return []
    return [opt for opt in struct_field.get("options") or () if isinstance(opt, Mapping)]


@dataclass
class WorkModeValue:
    """One selectable value of a work mode."""

    value: Any
    name: str | None = None
    computed_label: str = ""


@dataclass
class WorkMode:
    """A work mode and the parameter values it accepts."""

    name: str = ""
    value: Any = None
    default_value: Any = None
    label: str = ""
    values: list[WorkModeValue] = field(default_factory=list)
    value_range: range | None = None

    def add_values(self, opt: Mapping[str, Any]) -> None:
        """Take the parameter description of a ``modeValue`` option."""
        extras = {k: v for k, v in opt.items() if k not in _OPTION_KEYS}
        self.default_value = extras.get("defaultValue")

        bounds = extras.get("range")
        if isinstance(bounds, Mapping):
            low, high = _as_int(bounds.get("min")), _as_int(bounds.get("max"))
            if low is not None and high is not None:
                self.value_range = range(low, high + 1)
                return

        parsed = self._parse_options(extras.get("options"))
        if parsed is None:
            return
        self.values.extend(parsed)

        contiguous = self.contiguous_value_range()
        if contiguous is not None:
            self.values.clear()
            self.value_range = contiguous
        else:
            for v in self.values:
                option_name = v.name if v.name is not None else _json_text(v.value)
                v.computed_label = f"Activate {self.name} Preset {option_name}"

    @staticmethod
    def _parse_options(options: Any) -> list[WorkModeValue] | None:
        if not isinstance(options, list):
            return None
        parsed = []
        for item in options:
            if not isinstance(item, Mapping) or "value" not in item:
                return None
            name = item.get("name")
            if name is not None and not isinstance(name, str):
                return None
            parsed.append(WorkModeValue(value=item["value"], name=name))
        return parsed

    def display_label(self) -> str:
        return self.label or self.name

    def resolved_default(self) -> int:
        """The parameter value to use when activating this mode."""
        found = _as_int(self.default_value)
        if found is None and self.values:
            found = _as_int(self.values[0].value)
        if found is None and self.value_range is not None:
            found = self.value_range.start
        return 0 if found is None else found

    def contiguous_value_range(self) -> range | None:
        """The values as a gap-free range, if they form one."""
        if self.value_range is not None:
            return self.value_range
        numbers = []
        for v in self.values:
            number = _as_int(v.value)
            if number is None or v.name is not None:
                # Named values are presets, not slider positions
                return None
            numbers.append(number)
        if not numbers:
            return None
        numbers.sort()
        if numbers != list(range(numbers[0], numbers[0] + len(numbers))):
            return None
        return range(numbers[0], numbers[-1] + 1)

    def should_show_as_preset(self) -> bool:
        return self.contiguous_value_range() is None and not self.values


@dataclass
class ParsedWorkMode:
    """All work modes of a device, ordered by name."""

    modes: dict[str, WorkMode] = field(default_factory=dict)

    @classmethod
    def with_capability(cls, cap: Mapping[str, Any]) -> "ParsedWorkMode":
        parsed = cls()
        wm = _struct_field_by_name(cap, "workMode")
        if wm is None:
            raise WorkModeError(f"workMode not found in {cap!r}")
        for opt in _enum_options(wm):
            parsed.add(str(opt.get("name", "")), opt.get("value"))

        mode_values = _struct_field_by_name(cap, "modeValue")
        if mode_values is not None:
            for opt in _enum_options(mode_values):
                work_mode = parsed.modes.get(opt.get("name"))
                if work_mode is not None:
                    work_mode.add_values(opt)
        return parsed

    def add(self, name: str, value: Any) -> None:
        self.modes[name] = WorkMode(name=name, value=value)
        self.modes = dict(sorted(self.modes.items()))

    def adjust_for_device(self, sku: str) -> None:
        """Apply per-model labels."""
        if sku in ("H7160", "H7143"):
            if "Manual" in self.modes:
                self.modes["Manual"].label = "Manual: Mist Level"
        elif sku in ("H7131", "H7173"):
            if "gearMode" in self.modes:
                self.modes["gearMode"].label = "Heat"
        else:
            for mode in self.modes.values():
                mode.label = mode.name

    def mode_for_value(self, value: Any) -> WorkMode | None:
        return next(
            (m for m in self.modes.values() if _json_equal(m.value, value)), None
        )

    def mode_by_name(self, name: str) -> WorkMode | None:
        return self.modes.get(name)

    def mode_by_label(self, name: str) -> WorkMode | None:
        return next(
            (m for m in self.modes.values() if m.display_label() == name), None
        )

    def get_mode_names(self) -> list[str]:
        return sorted(mode.name for mode in self.modes.values())

    def get_mode_labels(self) -> list[str]:
        return sorted(mode.display_label() for mode in self.modes.values())

    def modes_with_values(self) -> Iterator[WorkMode]:
        return (mode for mode in self.modes.values() if mode.values)