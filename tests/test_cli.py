"""Tests for launcher command-line handling."""

from parity_launcher.cli import apply_cli, launch_args, log_command, parse_cli, parity_argv
from parity_launcher.config import Config


def test_unknown_arguments_are_forwarded():
    options = parse_cli(["--chain", "kovan", "--no-warp"])

    assert options.run_parity is True
    assert options.parity_argv == ["--chain", "kovan", "--no-warp"]


def test_no_run_parity():
    options = parse_cli(["--no-run-parity"])

    assert options.run_parity is False
    assert options.parity_argv == []


def test_ws_settings_are_kept_and_forwarded():
    options = parse_cli(["--ws-interface", "0.0.0.0", "--ws-port", "8600"])

    assert options.ws_interface == "0.0.0.0"
    assert options.ws_port == 8600
    assert options.parity_argv == ["--ws-interface", "0.0.0.0", "--ws-port", "8600"]


def test_apply_cli_overrides_config(tmp_path):
    cfg = Config(data_dir=tmp_path, parity_args=["--chain", "kovan"])

    apply_cli(parse_cli(["--no-run-parity", "--ws-port", "8600", "--jsonrpc-cors", "all"]), cfg)

    assert cfg.run_parity is False
    assert cfg.ws_port == 8600
    assert cfg.ws_url() == "http://127.0.0.1:8600"
    assert parity_argv(cfg) == ["--chain", "kovan", "--jsonrpc-cors", "all", "--ws-port", "8600"]


def test_launch_args_end_with_light_mode():
    assert launch_args([]) == ["--light"]
    assert launch_args(["--chain", "kovan"]) == ["--chain", "kovan", "--light"]


def test_log_command_quotes_paths():
    assert log_command("/opt/my parity/parity", ["--light"]) == "'/opt/my parity/parity' --light"
