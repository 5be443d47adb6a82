"""
Battery engine configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
Every value has a default, so the engine starts with an empty environment;
the unit-detection thresholds are exposed here so devices that straddle
them can be corrected without code changes.

CHANGELOG:
- 2026-10-19: Add design_capacity_mah override (STORY-012)
- 2026-10-19: Initial creation (STORY-001)

TODO:
- None
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings

from sambat.src import codes
from sambat.src.collector import SHELL_TIMEOUT_S
from sambat.src.diagnostics import HISTORY_MAX_ENTRIES, POWER_EVENT_MAX_ENTRIES
from sambat.src.normalizer import CHARGE_COUNTER_UNIT_THRESHOLD, CURRENT_UNIT_THRESHOLD


class EngineSettings(BaseSettings):
    """Battery engine configuration.

    Attributes:
        poll_interval_s: Seconds between live samples.
        shell_timeout_s: Timeout for each privileged shell command.
        current_unit_threshold: Raw current magnitude above which the value
            is treated as microamps.
        charge_counter_unit_threshold: Raw charge counter above which the
            value is treated as microamp-hours.
        cycle_count_paths: Diagnostic files probed for a cycle count, in
            order (JSON list in the environment).
        history_max_entries: Window of the battery-history detail category.
        power_event_max_entries: Window of the power-event detail category.
        power_supply_root: sysfs power_supply directory.
        privileged_shell_enabled: Whether to run the privileged diagnostic
            commands.
        shell_prefix: Argument vector prepended to each privileged command
            (e.g. ``["su", "-c"]``).
        design_capacity_mah: Rated capacity to report when the platform
            lookup is unavailable (0 = none).
        default_technology: Technology reported when the broadcast has none.
    """

    poll_interval_s: float = 1.0
    shell_timeout_s: float = SHELL_TIMEOUT_S
    current_unit_threshold: int = CURRENT_UNIT_THRESHOLD
    charge_counter_unit_threshold: int = CHARGE_COUNTER_UNIT_THRESHOLD
    cycle_count_paths: list[str] = list(codes.CYCLE_COUNT_PATHS)
    history_max_entries: int = HISTORY_MAX_ENTRIES
    power_event_max_entries: int = POWER_EVENT_MAX_ENTRIES
    power_supply_root: str = "/sys/class/power_supply"
    privileged_shell_enabled: bool = False
    shell_prefix: list[str] = ["sh", "-c"]
    design_capacity_mah: int = 0
    default_technology: str = codes.DEFAULT_TECHNOLOGY

    @field_validator("poll_interval_s", "shell_timeout_s")
    @classmethod
    def interval_must_be_positive(cls, v: float) -> float:
        """Validate that sampling interval and shell timeout are positive."""
        if v <= 0:
            raise ValueError("POLL_INTERVAL_S and SHELL_TIMEOUT_S must be > 0")
        return v

    @field_validator("current_unit_threshold", "charge_counter_unit_threshold")
    @classmethod
    def threshold_must_be_positive(cls, v: int) -> int:
        """Validate unit-detection thresholds are positive."""
        if v <= 0:
            raise ValueError("Unit-detection thresholds must be > 0")
        return v

    @field_validator("history_max_entries", "power_event_max_entries")
    @classmethod
    def window_must_be_positive(cls, v: int) -> int:
        """Validate detail-view windows hold at least one entry."""
        if v < 1:
            raise ValueError("HISTORY_MAX_ENTRIES and POWER_EVENT_MAX_ENTRIES must be >= 1")
        return v

    @field_validator("shell_prefix")
    @classmethod
    def shell_prefix_must_not_be_empty(cls, v: list[str]) -> list[str]:
        """Validate the shell prefix names an executable."""
        if not v:
            raise ValueError("SHELL_PREFIX must contain at least one argument")
        return v

    @field_validator("design_capacity_mah")
    @classmethod
    def design_capacity_must_be_non_negative(cls, v: int) -> int:
        """Validate the configured design capacity is non-negative."""
        if v < 0:
            raise ValueError("DESIGN_CAPACITY_MAH must be >= 0")
        return v

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
