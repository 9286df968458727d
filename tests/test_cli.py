from __future__ import annotations

import io
from pathlib import Path

import pytest
from typer.testing import CliRunner

from sermeas.acq.transport import StreamTransport, TransportError
from sermeas.cli import app

runner = CliRunner()


def use_stream(monkeypatch, data: bytes) -> list:
    opened = []

    def fake_open(cfg):
        opened.append(cfg)
        return StreamTransport(io.BytesIO(data))

    monkeypatch.setattr("sermeas.cli.open_cli_transport", fake_open)
    return opened


def test_run_binary_writes_dat(monkeypatch, tmp_path: Path):
    opened = use_stream(monkeypatch, b"<\x01\x00><\x02\x00><\x03\x00>")
    result = runner.invoke(
        app,
        ["run", "-p", "/dev/ttyFAKE", "-b", "9600", "-n", "3", "-r", "--out", "bench", "--out-dir", str(tmp_path)],
    )
    assert result.exit_code == 0, result.output
    assert opened[0].serial.port == "/dev/ttyFAKE"
    assert opened[0].serial.baudrate == 9600
    assert opened[0].mode == "binary"
    assert "Time taken:" in result.output
    assert "SPS:" in result.output
    lines = (tmp_path / "bench.dat").read_text().splitlines()
    assert [float(line) for line in lines] == pytest.approx([0.000118, 0.000236, 0.000354])


def test_run_text_default_name_and_echo(monkeypatch, tmp_path: Path):
    use_stream(monkeypatch, b"100\n200\n")
    result = runner.invoke(app, ["run", "-n", "2", "-o", "--out-dir", str(tmp_path), "--csv"])
    assert result.exit_code == 0, result.output
    assert "100\n200\n" in result.output
    assert (tmp_path / "test.dat").exists()
    assert (tmp_path / "test.csv").exists()


def test_run_shortfall_exits_with_error(monkeypatch, tmp_path: Path):
    use_stream(monkeypatch, b"<\x01\x00>" + b"\x00" * 4)
    result = runner.invoke(app, ["run", "-n", "2", "-r", "--out-dir", str(tmp_path)])
    assert result.exit_code == 1
    assert not (tmp_path / "test.dat").exists()


def test_run_idle_timeout_exits_with_error(monkeypatch, tmp_path: Path):
    use_stream(monkeypatch, b"<\x01")
    result = runner.invoke(
        app, ["run", "-n", "1", "-r", "--idle-timeout", "0.05", "--out-dir", str(tmp_path)]
    )
    assert result.exit_code == 1


def test_run_transport_error(monkeypatch, tmp_path: Path):
    def fail(cfg):
        raise TransportError("Cannot open /dev/ttyNONE")

    monkeypatch.setattr("sermeas.cli.open_cli_transport", fail)
    result = runner.invoke(app, ["run", "-p", "/dev/ttyNONE", "--out-dir", str(tmp_path)])
    assert result.exit_code == 1
    assert not (tmp_path / "test.dat").exists()


def test_run_rejects_bad_sample_count(monkeypatch, tmp_path: Path):
    use_stream(monkeypatch, b"")
    result = runner.invoke(app, ["run", "-n", "0", "--out-dir", str(tmp_path)])
    assert result.exit_code != 0


def test_ports_command(monkeypatch):
    monkeypatch.setattr("sermeas.cli.list_ports", lambda: {"/dev/ttyACM0": "Arduino Uno"})
    result = runner.invoke(app, ["ports"])
    assert result.exit_code == 0
    assert "/dev/ttyACM0\tArduino Uno" in result.output


def test_help_lists_options():
    result = runner.invoke(app, ["run", "--help"])
    assert result.exit_code == 0
    assert "--samples" in result.output


def test_run_plot_writes_png(monkeypatch, tmp_path: Path):
    pytest.importorskip("matplotlib")
    monkeypatch.setenv("HOME", str(tmp_path))
    use_stream(monkeypatch, b"1\n2\n3\n")
    result = runner.invoke(app, ["run", "-n", "3", "--out", "wave", "--out-dir", str(tmp_path), "--plot"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "wave.png").exists()
