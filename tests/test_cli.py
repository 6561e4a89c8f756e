"""
Command surface: argument checking and load-time failures. None of these
reach the window.
"""
import pytest

from chip8.cli import main
from chip8.constants import MAX_ROM_SIZE


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("CHIP8_CPU_HZ", "CHIP8_SCALE", "CHIP8_TRACE", "CHIP8_SHOW_STATS"):
        monkeypatch.delenv(name, raising=False)


class TestMain:

    @pytest.mark.parametrize("argv", [[], ["a.ch8", "b.ch8"]])
    def test_wrong_argument_count(self, argv, capsys):
        assert main(argv) == 1
        assert "Usage" in capsys.readouterr().err

    def test_unreadable_image(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.ch8")]) == 1
        assert "Failed to open ROM" in capsys.readouterr().err

    def test_image_too_large(self, tmp_path, capsys):
        rom = tmp_path / "big.ch8"
        rom.write_bytes(bytes(MAX_ROM_SIZE + 1))
        assert main([str(rom)]) == 1
        assert "too large" in capsys.readouterr().err

    def test_bad_config(self, tmp_path, monkeypatch, capsys):
        rom = tmp_path / "ok.ch8"
        rom.write_bytes(b"\x00\xFD")
        monkeypatch.setenv("CHIP8_CPU_HZ", "zero")
        assert main([str(rom)]) == 1
        assert "CHIP8_CPU_HZ" in capsys.readouterr().err
