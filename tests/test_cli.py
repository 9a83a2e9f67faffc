"""Tests for the graphite-pusher CLI."""

import pytest

from graphite_pusher import Sample
from graphite_pusher.cli import main
from graphite_pusher.errors import ConfigError
from graphite_pusher.wire import encode


def _run(argv):
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    return excinfo.value.code


def test_version(capsys):
    assert _run(["version"]) == 0
    assert "graphite_pusher" in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    assert _run([]) == 1
    assert "usage" in capsys.readouterr().out


def test_send(carbon_server, tmp_path):
    config = tmp_path / "graphite_pusher.yaml"
    config.write_text("pusher:\n  frequency: 600\n")
    code = _run([
        "--config", str(config),
        "--host", carbon_server.host,
        "--port", str(carbon_server.port),
        "send", "cli.metric", "4.5", "--timestamp", "1700000000",
    ])
    assert code == 0
    assert carbon_server.wait_for(1) == [Sample("cli.metric", 1700000000, 4.5)]


def test_send_unreachable(closed_port, tmp_path):
    config = tmp_path / "graphite_pusher.yaml"
    config.write_text("pusher:\n  frequency: 600\n  connect_timeout: 1\n")
    code = _run([
        "--config", str(config),
        "--host", "127.0.0.1",
        "--port", str(closed_port),
        "send", "cli.metric", "1", "--timeout", "0.3",
    ])
    assert code == 1


def test_decode(tmp_path, capsys):
    capture = tmp_path / "capture.bin"
    capture.write_bytes(
        encode([Sample("a.b", 100, 1.0), Sample("a.b", 101, 2.0)])
        + encode([Sample("c.d", 102, 3.0)])
    )
    assert _run(["decode", str(capture)]) == 0
    out = capsys.readouterr().out
    assert "a.b" in out
    assert "c.d" in out
    assert "3 samples" in out


def test_decode_truncated(tmp_path, capsys):
    capture = tmp_path / "capture.bin"
    capture.write_bytes(encode([Sample("a.b", 100, 1.0)])[:-2])
    assert _run(["decode", str(capture)]) == 1
    assert "Decode error" in capsys.readouterr().out


def test_port_zero_is_rejected_not_ignored(tmp_path):
    config = tmp_path / "graphite_pusher.yaml"
    config.write_text("pusher:\n  port: 2004\n")
    with pytest.raises(ConfigError, match="port"):
        main(["--config", str(config), "--host", "127.0.0.1", "--port", "0", "send", "a", "1"])
