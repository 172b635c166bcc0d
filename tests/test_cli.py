"""Mini README: Tests for the rover console command line."""

from typer.testing import CliRunner

from rover_console import cli

runner = CliRunner()


def test_simulate_prints_samples():
    result = runner.invoke(cli, ["simulate", "0,0", "1,1", "--steps", "2", "--interval", "0"])
    assert result.exit_code == 0
    assert "Route completed with 3 samples." in result.output


def test_simulate_rejects_single_waypoint():
    result = runner.invoke(cli, ["simulate", "0,0", "--interval", "0"])
    assert result.exit_code == 1


def test_simulate_rejects_malformed_waypoint():
    result = runner.invoke(cli, ["simulate", "north", "--interval", "0"])
    assert result.exit_code != 0


def test_transports_lists_builtins():
    result = runner.invoke(cli, ["transports"])
    assert result.exit_code == 0
    assert "network" in result.output
    assert "host, port, device_name, timeout" in result.output
