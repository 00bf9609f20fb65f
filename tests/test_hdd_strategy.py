"""Tests for the three-pass HDD overwrite."""
import pytest

from conftest import capacity_handler, fail, ok
from diskscrub.erase.hdd import HDDOverwriteStrategy
from diskscrub.models.errors import CapacityQueryFailure, ErasureCancelled, PassFailure, ToolUnavailableError

MIB = 1024 * 1024
BLOCK = 4 * MIB


def dd_sources(runner):
    return [c[1] for c in runner.commands("dd")]


def test_passes_run_random_zero_random(make_tools, audit, token):
    tools, runner = make_tools(capacity_handler(8 * MIB))
    strategy = HDDOverwriteStrategy(tools, audit, token, block_size=BLOCK)

    strategy.sanitize_hdd("/dev/sda")

    assert dd_sources(runner) == ["if=/dev/urandom", "if=/dev/zero", "if=/dev/urandom"]
    assert len(runner.commands("blockdev")) == 3
    for call in runner.commands("dd"):
        assert "count=2" in call
        assert f"bs={BLOCK}" in call


def test_trailing_partial_block_is_written(make_tools, audit, token):
    """Every byte of the device is covered, including the final partial block."""
    capacity = 10 * MIB + 1000
    tools, runner = make_tools(capacity_handler(capacity))
    strategy = HDDOverwriteStrategy(tools, audit, token, block_size=BLOCK)

    strategy.sanitize_hdd("/dev/sda")

    calls = runner.commands("dd")
    assert len(calls) == 6
    full, tail = calls[0], calls[1]
    assert "count=2" in full
    assert f"bs={capacity - 2 * BLOCK}" in tail
    assert "count=1" in tail
    assert f"seek={2 * BLOCK}" in tail
    assert "oflag=seek_bytes" in tail


def test_device_smaller_than_one_block(make_tools, audit, token):
    tools, runner = make_tools(capacity_handler(1000))
    strategy = HDDOverwriteStrategy(tools, audit, token, block_size=BLOCK)

    strategy.sanitize_hdd("/dev/sda")

    calls = runner.commands("dd")
    assert len(calls) == 3
    assert all("bs=1000" in c for c in calls)


@pytest.mark.parametrize("failing_pass", [1, 2, 3])
def test_failed_pass_stops_later_passes(make_tools, audit, token, failing_pass):
    counter = {"dd": 0}

    def overrides(args):
        if args[0] == "dd":
            counter["dd"] += 1
            if counter["dd"] == failing_pass:
                return fail("dd: error writing '/dev/sda': Input/output error")
        return None

    tools, runner = make_tools(capacity_handler(4 * MIB, overrides))
    strategy = HDDOverwriteStrategy(tools, audit, token, block_size=BLOCK)

    with pytest.raises(PassFailure) as exc_info:
        strategy.sanitize_hdd("/dev/sda")

    assert exc_info.value.pass_number == failing_pass
    assert "Input/output error" in str(exc_info.value)
    assert len(runner.commands("dd")) == failing_pass
    assert len(runner.commands("blockdev")) == failing_pass


def test_zero_capacity_is_fatal_before_writing(make_tools, audit, token):
    tools, runner = make_tools(capacity_handler(0))
    strategy = HDDOverwriteStrategy(tools, audit, token)

    with pytest.raises(CapacityQueryFailure):
        strategy.sanitize_hdd("/dev/sda")

    assert runner.commands("dd") == []


def test_capacity_tool_unavailable(make_tools, audit, token):
    def handler(args):
        if args[0] == "blockdev":
            return ToolUnavailableError("blockdev", "not found")
        return ok()

    tools, runner = make_tools(handler)
    strategy = HDDOverwriteStrategy(tools, audit, token)

    with pytest.raises(CapacityQueryFailure):
        strategy.sanitize_hdd("/dev/sda")
    assert runner.commands("dd") == []


def test_dd_unavailable_fails_first_pass(make_tools, audit, token):
    def overrides(args):
        if args[0] == "dd":
            return ToolUnavailableError("dd", "not found")
        return None

    tools, _ = make_tools(capacity_handler(BLOCK, overrides))
    strategy = HDDOverwriteStrategy(tools, audit, token, block_size=BLOCK)

    with pytest.raises(PassFailure) as exc_info:
        strategy.sanitize_hdd("/dev/sda")
    assert exc_info.value.pass_number == 1


def test_cancel_before_start_issues_nothing(make_tools, audit, token):
    tools, runner = make_tools(capacity_handler(BLOCK))
    token.cancel()

    with pytest.raises(ErasureCancelled):
        HDDOverwriteStrategy(tools, audit, token).sanitize_hdd("/dev/sda")
    assert runner.calls == []


def test_cancel_takes_effect_between_passes(make_tools, audit, token):
    """An in-flight pass completes; the next pass never starts."""
    def overrides(args):
        if args[0] == "dd":
            token.cancel()
        return None

    capacity = BLOCK + 512
    tools, runner = make_tools(capacity_handler(capacity, overrides))
    strategy = HDDOverwriteStrategy(tools, audit, token, block_size=BLOCK)

    with pytest.raises(ErasureCancelled) as exc_info:
        strategy.sanitize_hdd("/dev/sda")

    assert exc_info.value.step == "overwrite pass 2/3"
    # Both transfers of pass 1 (full blocks + tail) ran
    assert dd_sources(runner) == ["if=/dev/urandom", "if=/dev/urandom"]


def test_audit_records_each_pass(make_tools, audit, token):
    tools, _ = make_tools(capacity_handler(BLOCK))

    HDDOverwriteStrategy(tools, audit, token, block_size=BLOCK).sanitize_hdd("/dev/sda")

    successes = [e.action for e in audit.for_device("/dev/sda") if e.result == "success"]
    assert successes == ["pass 1/3", "pass 2/3", "pass 3/3", "hdd overwrite"]
