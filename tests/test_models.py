"""Tests for disk, task and report models."""
from dataclasses import FrozenInstanceError

import pytest

from diskscrub.models.disk import DescriptorSource, DiskDescriptor, MediaType, Transport
from diskscrub.models.errors import (
    AggregateEraseError,
    ChainStepFailure,
    DeviceNotFound,
    PassFailure,
    TaskStateError,
)
from diskscrub.models.task import ErasureTask, SanitizationReport, TaskStatus


class TestDiskDescriptor:

    def test_is_immutable(self, hdd_descriptor):
        with pytest.raises(FrozenInstanceError):
            hdd_descriptor.model = "changed"

    def test_identity_ignores_model(self):
        a = DiskDescriptor("/dev/sda", "WDC  WD20", MediaType.HDD, Transport.SATA)
        b = DiskDescriptor("/dev/sda", "WDC WD20", MediaType.HDD, Transport.SATA)
        assert a.identity == b.identity
        assert a.name == "sda"

    def test_to_dict(self, nvme_descriptor):
        assert nvme_descriptor.to_dict() == {
            'device_path': '/dev/nvme0n1',
            'model': 'Samsung PM9A1',
            'media_type': 'ssd',
            'transport': 'nvme',
            'source': 'detected',
        }

    @pytest.mark.parametrize("hint,expected", [
        ("sata", Transport.SATA),
        ("ATA", Transport.SATA),
        ("usb", Transport.USB),
        ("nvme", Transport.NVME),
        ("spi", Transport.UNKNOWN),
        ("", Transport.UNKNOWN),
        (None, Transport.UNKNOWN),
    ])
    def test_transport_from_hint(self, hint, expected):
        assert Transport.from_hint(hint) is expected

    def test_synthesized_flag(self):
        d = DiskDescriptor("/dev/sda", "x", MediaType.SSD, Transport.SATA, DescriptorSource.SYNTHESIZED)
        assert d.is_synthesized


class TestErasureTask:

    def test_lifecycle(self):
        task = ErasureTask("/dev/sda")
        assert task.status is TaskStatus.PENDING

        task.start()
        assert task.status is TaskStatus.IN_PROGRESS

        task.succeed()
        outcome = task.outcome()
        assert outcome.succeeded
        assert outcome.duration is not None

    def test_terminal_state_set_once(self):
        task = ErasureTask("/dev/sda")
        task.start()
        task.fail(PassFailure("/dev/sda", 1, "random"))

        with pytest.raises(TaskStateError):
            task.succeed()
        with pytest.raises(TaskStateError):
            task.fail(PassFailure("/dev/sda", 2, "zero"))
        assert task.error.pass_number == 1

    def test_fail_from_pending(self):
        task = ErasureTask("/dev/sdz")
        task.fail(DeviceNotFound("/dev/sdz"))

        outcome = task.outcome()
        assert outcome.status is TaskStatus.FAILED
        assert outcome.duration is None

    def test_cannot_succeed_without_start(self):
        with pytest.raises(TaskStateError):
            ErasureTask("/dev/sda").succeed()

    def test_cannot_start_twice(self):
        task = ErasureTask("/dev/sda")
        task.start()
        with pytest.raises(TaskStateError):
            task.start()

    def test_outcome_requires_terminal_state(self):
        task = ErasureTask("/dev/sda")
        task.start()
        with pytest.raises(TaskStateError):
            task.outcome()


def _report():
    ok_task = ErasureTask("/dev/sda")
    ok_task.start()
    ok_task.succeed()
    bad_task = ErasureTask("/dev/sdb")
    bad_task.start()
    bad_task.fail(ChainStepFailure("/dev/sdb", "ata", "set-password", "I/O error"))
    return SanitizationReport(outcomes=[ok_task.outcome(), bad_task.outcome()])


class TestSanitizationReport:

    def test_empty_report_succeeds(self):
        assert SanitizationReport().succeeded

    def test_failures_and_messages(self):
        report = _report()

        assert not report.succeeded
        assert [o.device_path for o in report.failures] == ["/dev/sdb"]
        assert report.failure_messages == ["/dev/sdb: ata set-password failed: I/O error"]

    def test_summary_names_every_device(self):
        summary = _report().summary()

        assert "1 succeeded, 1 failed" in summary
        assert "[OK]     /dev/sda" in summary
        assert "set-password" in summary

    def test_to_dict(self):
        data = _report().to_dict()

        assert data['succeeded'] is False
        assert data['outcomes'][1]['error_kind'] == "chain-step-failure"

    def test_aggregate_error_message(self):
        error = AggregateEraseError(_report())

        assert "Erasure failed for 1 device(s)" in str(error)
        assert "- /dev/sdb: ata set-password failed" in str(error)
