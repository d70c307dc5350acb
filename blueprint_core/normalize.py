from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from blueprint_core.diagnostics import DiagnosticSink, emit
from blueprint_core.schema_validator import DISPLAY_TYPE_KEY, METADATA_KEY


class DisplayType(str, Enum):
    """Renderer a blueprint section should use downstream."""

    INFOGRAPHIC = "infographic"
    TIMELINE = "timeline"
    CHART = "chart"
    TABLE = "table"
    MARKDOWN = "markdown"


VALID_DISPLAY_TYPES = frozenset(t.value for t in DisplayType)


def _first_item(section: Dict[str, Any], key: str) -> Optional[Dict[str, Any]]:
    items = section.get(key)
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return None


def _has_dated_sequence(section: Dict[str, Any]) -> bool:
    phase = _first_item(section, "phases")
    if phase is not None and phase.get("start_date"):
        return True
    module = _first_item(section, "modules")
    return module is not None and bool(module.get("duration"))


def _has_tabular_lists(section: Dict[str, Any]) -> bool:
    return any(isinstance(section.get(k), list) for k in ("risks", "human_resources", "tools_and_platforms"))


def _present(value: Any) -> bool:
    # Containers count even when empty; other values must be truthy.
    return isinstance(value, (list, dict)) or bool(value)


def _has_indicator_data(section: Dict[str, Any]) -> bool:
    return any(_present(section.get(k)) for k in ("objectives", "kpis", "metrics", "demographics"))


def _has_chart_config(section: Dict[str, Any]) -> bool:
    return any(_present(section.get(k)) for k in ("chartConfig", "chartType"))


# Shape rules, first match wins.
SectionRule = Tuple[str, Callable[[Dict[str, Any]], bool], DisplayType]

DISPLAY_TYPE_RULES: List[SectionRule] = [
    ("dated_sequence", _has_dated_sequence, DisplayType.TIMELINE),
    ("tabular_lists", _has_tabular_lists, DisplayType.TABLE),
    ("indicator_data", _has_indicator_data, DisplayType.INFOGRAPHIC),
    ("chart_config", _has_chart_config, DisplayType.CHART),
]

# Section-name hints, consulted when no shape rule matched.
KEY_NAME_HINTS: List[Tuple[Tuple[str, ...], DisplayType]] = [
    (("timeline", "schedule", "implementation"), DisplayType.TIMELINE),
    (("resource", "budget", "risk"), DisplayType.TABLE),
    (("metric", "kpi", "objective", "audience", "assessment"), DisplayType.INFOGRAPHIC),
]


def infer_display_type(section_key: str, section: Dict[str, Any]) -> DisplayType:
    """Pick a display type from the section's shape, then from its key name."""
    for _name, matches, display_type in DISPLAY_TYPE_RULES:
        if matches(section):
            return display_type

    key_lower = str(section_key).lower()
    for fragments, display_type in KEY_NAME_HINTS:
        if any(fragment in key_lower for fragment in fragments):
            return display_type

    return DisplayType.MARKDOWN


def normalize_blueprint_structure(blueprint: Any, sink: Optional[DiagnosticSink] = None) -> Any:
    """Return a copy of the blueprint where every object section has a valid displayType.

    Only dict sections are touched; metadata and `_`-prefixed internal keys are
    skipped, list and scalar sections are carried over as-is. The input is not
    mutated.
    """
    if not isinstance(blueprint, dict):
        return blueprint

    normalized: Dict[str, Any] = dict(blueprint)

    for key, section in blueprint.items():
        if key == METADATA_KEY or str(key).startswith("_"):
            continue
        if not isinstance(section, dict):
            continue

        out = dict(section)
        current = out.get(DISPLAY_TYPE_KEY)

        if current is None or (isinstance(current, str) and not current.strip()):
            inferred = infer_display_type(key, out)
            out[DISPLAY_TYPE_KEY] = inferred.value
            emit(
                sink,
                logging.INFO,
                "blueprint.normalize.inferred_display_type",
                section=key,
                display_type=inferred.value,
                has_objectives=bool(out.get("objectives")),
                has_phases=bool(out.get("phases")),
                has_modules=bool(out.get("modules")),
                has_metrics=bool(out.get("metrics") or out.get("kpis")),
            )
        elif not isinstance(current, str) or current not in VALID_DISPLAY_TYPES:
            emit(
                sink,
                logging.WARNING,
                "blueprint.normalize.invalid_display_type",
                section=key,
                invalid_type=current,
                defaulting_to=DisplayType.MARKDOWN.value,
            )
            out[DISPLAY_TYPE_KEY] = DisplayType.MARKDOWN.value

        normalized[key] = out

    return normalized
