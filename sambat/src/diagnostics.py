"""
Diagnostic-dump parser for the battery detail view.

Converts the unstructured privileged dump into categorized, human-readable
items.  The grammar is line-oriented and best-effort: each trimmed line is
split on its first colon; known keys are routed into fixed categories,
two marked sections (battery history and the power event log buffer) are
windowed most-recent-first, and every remaining ``key: value`` line lands in
the uncategorized bucket unless it matches the skip list.

The parser is a pure function of the input text.  Missing sections produce
empty categories and malformed lines are dropped; it never raises for any
string input.

CHANGELOG:
- 2026-10-19: Add overlay_live for live-status values (STORY-013)
- 2026-10-19: Initial creation (STORY-013)

TODO:
- None
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import TYPE_CHECKING

from sambat.src.collector import USAGE_KEY, parse_usage_counter
from sambat.src.models import CategorizedDiagnostics, DiagnosticItem

if TYPE_CHECKING:
    from sambat.src.models import LiveSample

# ---------------------------------------------------------------------------
# Categories (rendering order)
# ---------------------------------------------------------------------------

CATEGORY_CORE = "Core health"
CATEGORY_MANAGEMENT = "Management & dates"
CATEGORY_LIVE = "Live status"
CATEGORY_LEARNING = "Sleep & charge pattern learning"
CATEGORY_HISTORY = "Recent battery history"
CATEGORY_POWER_EVENTS = "Power connect/disconnect events"
CATEGORY_UNCATEGORIZED = "Uncategorized"

CATEGORIES: tuple[str, ...] = (
    CATEGORY_CORE,
    CATEGORY_MANAGEMENT,
    CATEGORY_LIVE,
    CATEGORY_LEARNING,
    CATEGORY_HISTORY,
    CATEGORY_POWER_EVENTS,
    CATEGORY_UNCATEGORIZED,
)

COLLAPSIBLE_CATEGORIES: frozenset[str] = frozenset(
    {CATEGORY_LEARNING, CATEGORY_HISTORY, CATEGORY_POWER_EVENTS, CATEGORY_UNCATEGORIZED}
)
"""Categories the detail view shows collapsed by default."""

LABEL_VOLTAGE = "Voltage"
LABEL_TEMPERATURE = "Temperature"
LABEL_CURRENT = "Current flow"

HISTORY_MARKER = "Battery History:"
EVENT_LOG_MARKER = "[EventLogBuffer]"

HISTORY_MAX_ENTRIES: int = 14
POWER_EVENT_MAX_ENTRIES: int = 10

# ---------------------------------------------------------------------------
# Key tables
# ---------------------------------------------------------------------------

_CURRENT_KEYS = ("ITEM_CURRENT_NOW", "current now", "Current now")

_ROUTED_KEYS: frozenset[str] = frozenset(
    {
        "level",
        "voltage",
        "temperature",
        "Charge counter",
        "mSavedBatteryUsage",
        "mSavedBatteryAsoc",
        "mSavedBatteryBsoh",
        "LLB CAL",
        "LLB MAN",
        "battery FirstUseDate",
        "mProtectBatteryMode",
        *_CURRENT_KEYS,
    }
)
"""Keys already shown in a named category."""

_SKIP_SUBSTRINGS = ("mSleep", "SleepTime", "SleepPattern", "History", "EventLog",
                    "BackupOnOff", "ACTION_", "[")
_DATE_KEY = re.compile(r"\d{4}-\d{2}-\d{2}")

_RAW_DESCRIPTIONS: tuple[tuple[str, str], ...] = (
    ("dwState", "Wireless charging pad state code."),
    ("tx_id", "Identifier of the wireless charger (TX)."),
    ("high_voltage", "Whether high-voltage protection is active."),
    ("online", "Whether external power is connected (1 = yes)."),
    ("present", "Whether a battery is installed."),
    ("status", "Charge status code (2 = charging, 3 = discharging, ...)."),
    ("health", "Health code (2 = good, ...)."),
)
_RAW_DEFAULT_DESCRIPTION = "Internal system diagnostic value."


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _split(line: str) -> tuple[str, str] | None:
    if ":" not in line:
        return None
    key, value = line.split(":", 1)
    return key.strip(), value.strip()


def _strip_brackets(value: str) -> str:
    return value.replace("[", "").replace("]", "").strip()


def _scaled(value: str, divisor: float, unit: str) -> str | None:
    try:
        return f"{float(value) / divisor:g} {unit}"
    except ValueError:
        return None


def _section(lines: list[str], marker: str) -> list[str]:
    """Return the lines following *marker* up to a blank line or ``[`` header."""
    for index, line in enumerate(lines):
        if line.startswith(marker):
            break
    else:
        return []

    body: list[str] = []
    for line in lines[index + 1 :]:
        if not line or line.startswith("["):
            break
        body.append(line)
    return body


def _raw_description(key: str, value: str) -> str:
    if "cc_current_limit" in key and value != "0":
        return "Configured current limit."
    for needle, description in _RAW_DESCRIPTIONS:
        if needle in key:
            return description
    return _RAW_DEFAULT_DESCRIPTION


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def parse_diagnostics(
    raw: str,
    *,
    history_max_entries: int = HISTORY_MAX_ENTRIES,
    power_event_max_entries: int = POWER_EVENT_MAX_ENTRIES,
) -> CategorizedDiagnostics:
    """Categorize a diagnostic dump into human-readable items.

    Args:
        raw: The privileged diagnostic dump text.
        history_max_entries: Window size of the battery-history category.
        power_event_max_entries: Window size of the power-event category.

    Returns:
        An ordered mapping containing every category of :data:`CATEGORIES`
        (possibly empty), in rendering order.
    """
    result: CategorizedDiagnostics = {category: [] for category in CATEGORIES}
    lines = [line.strip() for line in raw.splitlines()]

    pairs: dict[str, str] = {}
    for line in lines:
        split = _split(line)
        if split is not None and split[0] not in pairs:
            pairs[split[0]] = split[1]

    def add(category: str, label: str, value: str | None, description: str = "") -> None:
        if value is None:
            return
        result[category].append(
            DiagnosticItem(label=label, value=value, description=description)
        )

    def lookup(key: str, render: Callable[[str], str | None] = lambda v: v) -> str | None:
        value = pairs.get(key)
        return render(value) if value else None

    # --- Core health ---
    usage_text = pairs.get(USAGE_KEY.rstrip(":"))
    usage = parse_usage_counter(usage_text) if usage_text is not None else None
    if usage is not None:
        add(CATEGORY_CORE, "Usage cycles", f"{usage // 100} cycles",
            "Vendor-recorded battery usage in full cycles (usage / 100). Most accurate source.")
    add(CATEGORY_CORE, "Absolute state of charge (ASOC)",
        lookup("mSavedBatteryAsoc", lambda v: f"{_strip_brackets(v)}%"),
        "Current real capacity relative to design capacity.")
    add(CATEGORY_CORE, "Battery state of health (BSOH)",
        lookup("mSavedBatteryBsoh", lambda v: f"{_strip_brackets(v)}%"),
        "Behavioural battery performance indicator.")

    # --- Management & dates ---
    add(CATEGORY_MANAGEMENT, "Calibration date", lookup("LLB CAL"),
        "Date of the last fuel-gauge calibration.")
    add(CATEGORY_MANAGEMENT, "Manufacturing date", lookup("LLB MAN"),
        "Date the battery was manufactured.")
    add(CATEGORY_MANAGEMENT, "First use date", lookup("battery FirstUseDate", _strip_brackets),
        "Date the device was last reset.")
    add(CATEGORY_MANAGEMENT, "Battery protection",
        lookup("mProtectBatteryMode", lambda v: "On (80-85% limit)" if v == "1" else "Off"),
        "Whether the charge-limit protection is enabled.")

    # --- Live status ---
    add(CATEGORY_LIVE, "Level", lookup("level", lambda v: f"{v}%"))
    add(CATEGORY_LIVE, LABEL_VOLTAGE, lookup("voltage", lambda v: _scaled(v, 1000, "V")))
    add(CATEGORY_LIVE, LABEL_TEMPERATURE, lookup("temperature", lambda v: _scaled(v, 10, "°C")))
    charge_counter = next(
        (value for key, value in pairs.items() if key.lower() == "charge counter"), None
    )
    add(CATEGORY_LIVE, "Charge counter", charge_counter, "Accumulated charge (charge counter).")
    for key in _CURRENT_KEYS:
        add(CATEGORY_LIVE, LABEL_CURRENT, lookup(key),
            "Instantaneous charge/discharge current (mA).")

    # --- Sleep & charge pattern learning ---
    add(CATEGORY_LEARNING, "Sleep mode block", lookup("mSleepModeBlockOnOff"),
        "-1 when not learned yet, otherwise 0/1.")
    for line in lines:
        if "SleepTime" in line or "SleepPattern" in line:
            split = _split(line)
            if split is not None and split[1]:
                add(CATEGORY_LEARNING, split[0], split[1],
                    "Learned sleep-time charging pattern data.")

    # --- Marked sections ---
    history = _section(lines, HISTORY_MARKER)
    for line in reversed(history[-history_max_entries:]):
        time, _, content = line.partition(" ")
        add(CATEGORY_HISTORY, time, content.strip(), "Battery state change over time.")

    events = _section(lines, EVENT_LOG_MARKER)
    for line in reversed(events[-power_event_max_entries:]):
        time = line.split("android.intent", 1)[0].strip()
        if not time:
            continue
        if "ACTION_POWER_CONNECTED" in line:
            action = "Connected"
        elif "ACTION_POWER_DISCONNECTED" in line:
            action = "Disconnected"
        else:
            action = "Other event"
        add(CATEGORY_POWER_EVENTS, time, action, "Power cable connect/disconnect log.")

    # --- Uncategorized ---
    sectioned = set(history) | set(events)
    for line in lines:
        split = _split(line)
        if split is None or line in sectioned:
            continue
        key, value = split
        if not value or key in _ROUTED_KEYS:
            continue
        if any(needle in line for needle in _SKIP_SUBSTRINGS):
            continue
        if key.startswith("Date") or _DATE_KEY.match(key):
            continue
        add(CATEGORY_UNCATEGORIZED, key, value, _raw_description(key, value))

    return result


def overlay_live(
    diagnostics: CategorizedDiagnostics,
    live: LiveSample,
) -> CategorizedDiagnostics:
    """Replace parsed live-status values with the live reading.

    Voltage, temperature and current items of the live-status category are
    rendered from *live*; every other item is returned unchanged.
    """
    reading = live.reading
    live_values = {
        LABEL_VOLTAGE: f"{reading.voltage_mv / 1000:g} V",
        LABEL_TEMPERATURE: f"{reading.temperature_dc / 10:g} °C",
        LABEL_CURRENT: f"{live.signed_current_ma} mA",
    }
    overlaid = dict(diagnostics)
    overlaid[CATEGORY_LIVE] = [
        item.model_copy(update={"value": live_values[item.label]})
        if item.label in live_values
        else item
        for item in diagnostics.get(CATEGORY_LIVE, [])
    ]
    return overlaid
