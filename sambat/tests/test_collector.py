"""
Tests for the privileged diagnostic-dump collector.

Verifies key extraction from the dump (usage counter, cycle count, charge
counter, health and technology overrides) and that timeouts, error strings
and exceptions from the shell degrade to an empty result.

CHANGELOG:
- 2026-10-19: Initial creation -- TDD tests written first (STORY-007)

TODO:
- None
"""

from __future__ import annotations

import logging

import pytest
from conftest import SAMPLE_DUMP, FakeShell
from sambat.src.codes import CAPACITY_COMMAND, DUMP_COMMAND
from sambat.src.collector import (
    PrivilegedDataCollector,
    parse_privileged_dump,
    parse_usage_counter,
)
from sambat.src.models import BatteryHealth


class _BrokenGateShell(FakeShell):
    def is_available(self) -> bool:
        raise RuntimeError("binder dead")


# ===========================================================================
# AC1: Usage counter
# ===========================================================================


class TestParseUsageCounter:
    """AC1: the usage counter prefers a bracketed numeral."""

    def test_bracketed(self) -> None:
        assert parse_usage_counter("[28600]") == 28600

    def test_bracketed_preferred_over_leading_number(self) -> None:
        assert parse_usage_counter("3 [28600]") == 28600

    def test_bare_number(self) -> None:
        assert parse_usage_counter("28600") == 28600

    def test_no_number(self) -> None:
        assert parse_usage_counter("unknown") is None


# ===========================================================================
# AC2: Dump parsing
# ===========================================================================


class TestParsePrivilegedDump:
    """AC2: vendor fields are extracted from the dump."""

    def test_sample_dump(self) -> None:
        data = parse_privileged_dump(SAMPLE_DUMP, "Capacity: 4000")
        assert data.usage_cycles == 286
        assert data.cycle_count == -1
        assert data.charge_counter_raw == 3_000_000
        assert data.health is BatteryHealth.GOOD
        assert data.technology == "Li-ion"
        assert data.capacity_dump == "Capacity: 4000"
        assert data.available

    def test_cycle_count_line(self) -> None:
        assert parse_privileged_dump("  Cycle count: 412\n").cycle_count == 412

    def test_charge_counter_is_case_insensitive(self) -> None:
        assert parse_privileged_dump("charge COUNTER: 3500\n").charge_counter_raw == 3500

    def test_first_occurrence_wins(self) -> None:
        dump = "Cycle count: 10\nCycle count: 20\nmSavedBatteryUsage: [500]\nmSavedBatteryUsage: [900]\n"
        data = parse_privileged_dump(dump)
        assert data.cycle_count == 10
        assert data.usage_cycles == 5

    def test_usage_below_one_cycle_rounds_down(self) -> None:
        assert parse_privileged_dump("mSavedBatteryUsage: [99]").usage_cycles == 0

    def test_non_positive_usage_is_ignored(self) -> None:
        assert parse_privileged_dump("mSavedBatteryUsage: [0]").usage_cycles == -1

    def test_malformed_values_are_ignored(self) -> None:
        dump = "Cycle count: many\nCharge counter: ?\nhealth: good\ntechnology:\n"
        data = parse_privileged_dump(dump)
        assert data.cycle_count == -1
        assert data.charge_counter_raw == -1
        assert data.health is None
        assert data.technology is None

    def test_empty_dump(self) -> None:
        data = parse_privileged_dump("")
        assert not data.available
        assert data.usage_cycles == -1

    def test_keys_are_case_sensitive(self) -> None:
        assert parse_privileged_dump("cycle count: 412").cycle_count == -1


# ===========================================================================
# AC3: Collection through the shell
# ===========================================================================


class TestCollect:
    """AC3: collection runs both commands and never raises."""

    @pytest.mark.asyncio
    async def test_collects_dump_and_capacity(self) -> None:
        shell = FakeShell({DUMP_COMMAND: SAMPLE_DUMP, CAPACITY_COMMAND: "Capacity: 4000"})
        data = await PrivilegedDataCollector(shell).collect()
        assert shell.commands == [DUMP_COMMAND, CAPACITY_COMMAND]
        assert data.raw_dump == SAMPLE_DUMP
        assert data.capacity_dump == "Capacity: 4000"
        assert data.usage_cycles == 286

    @pytest.mark.asyncio
    async def test_unavailable_shell_is_skipped(self) -> None:
        shell = FakeShell({DUMP_COMMAND: SAMPLE_DUMP}, available=False)
        data = await PrivilegedDataCollector(shell).collect()
        assert shell.commands == []
        assert not data.available

    @pytest.mark.asyncio
    async def test_availability_check_failure_counts_as_unavailable(self) -> None:
        collector = PrivilegedDataCollector(_BrokenGateShell({DUMP_COMMAND: SAMPLE_DUMP}))
        assert collector.is_available() is False
        assert not (await collector.collect()).available

    @pytest.mark.asyncio
    @pytest.mark.parametrize("output", ["Error: permission denied", "Exception: binder died"])
    async def test_error_strings_are_treated_as_empty(
        self, output: str, caplog: pytest.LogCaptureFixture
    ) -> None:
        shell = FakeShell({DUMP_COMMAND: output, CAPACITY_COMMAND: output})
        with caplog.at_level(logging.WARNING):
            data = await PrivilegedDataCollector(shell).collect()
        assert data.raw_dump == ""
        assert data.capacity_dump == ""
        assert "returned an error" in caplog.text

    @pytest.mark.asyncio
    async def test_shell_exception_is_treated_as_empty(self) -> None:
        shell = FakeShell({DUMP_COMMAND: RuntimeError("boom"), CAPACITY_COMMAND: "Capacity: 4000"})
        data = await PrivilegedDataCollector(shell).collect()
        assert data.raw_dump == ""
        assert data.capacity_dump == "Capacity: 4000"

    @pytest.mark.asyncio
    async def test_timeout_is_treated_as_empty(self, caplog: pytest.LogCaptureFixture) -> None:
        shell = FakeShell({DUMP_COMMAND: SAMPLE_DUMP}, delay_s=1.0)
        with caplog.at_level(logging.WARNING):
            data = await PrivilegedDataCollector(shell, timeout_s=0.01).collect()
        assert not data.available
        assert "timed out" in caplog.text
