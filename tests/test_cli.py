"""Tests for the diskscrub command line."""
import pytest
from rich.console import Console
from typer.testing import CliRunner

from diskscrub.cli import app
from diskscrub.core.config import set_config

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv('DISKSCRUB_CONFIG', raising=False)
    monkeypatch.delenv('DISKSCRUB_MOCK', raising=False)
    monkeypatch.setenv('DISKSCRUB_AUDIT_LOG', str(tmp_path / 'audit.log'))
    monkeypatch.setattr('diskscrub.cli.console', Console(width=200))
    set_config(None)
    yield tmp_path
    set_config(None)


def test_help_lists_commands():
    result = runner.invoke(app, ['--help'])

    assert result.exit_code == 0
    assert 'list' in result.output
    assert 'erase' in result.output


def test_list_in_mock_mode_shows_demo_devices(monkeypatch):
    monkeypatch.setenv('DISKSCRUB_MOCK', '1')

    result = runner.invoke(app, ['list'])

    assert result.exit_code == 0
    assert '/dev/sda' in result.output
    assert '/dev/nvme0n1' in result.output
    assert 'synthesized' in result.output


def test_list_json(monkeypatch):
    monkeypatch.setenv('DISKSCRUB_MOCK', '1')

    result = runner.invoke(app, ['list', '--json'])

    assert result.exit_code == 0
    assert '"device_path": "/dev/sdb"' in result.output
    assert '"media_type": "hdd"' in result.output


def test_erase_in_mock_mode(monkeypatch, cli_env):
    monkeypatch.setenv('DISKSCRUB_MOCK', '1')

    result = runner.invoke(app, ['erase', '/dev/sdb'])

    assert result.exit_code == 0
    assert 'Mock mode' in result.output
    assert '1 device(s) erased' in result.output
    audit_lines = (cli_env / 'audit.log').read_text()
    assert 'action: hdd overwrite | result: success' in audit_lines


def test_erase_reports_every_failure(monkeypatch):
    monkeypatch.setenv('DISKSCRUB_MOCK', '1')

    result = runner.invoke(app, ['erase', '/dev/sda', '/dev/sdz'])

    assert result.exit_code == 1
    assert '/dev/sdz: device not found in detected device set' in result.output


def test_erase_aborted_at_prompt():
    result = runner.invoke(app, ['erase', '/dev/sdb'], input='n\n')

    assert result.exit_code == 1
    assert 'Permanently destroy ALL data on /dev/sdb?' in result.output
    assert 'Aborted; no device was touched' in result.output


def test_erase_workers_override_validated(monkeypatch):
    monkeypatch.setenv('DISKSCRUB_MOCK', '1')

    result = runner.invoke(app, ['erase', '/dev/sda', '--workers', '0'])

    assert result.exit_code == 1
    assert 'max_workers' in result.output


def test_config_file_errors_are_reported(cli_env):
    (cli_env / 'diskscrub.yml').write_text('passes: 35\n')

    result = runner.invoke(app, ['list'])

    assert result.exit_code == 1
    assert 'Unknown configuration key' in result.output
