# file: tests/test_main.py

import io

import pytest

from conftest import THEORA_ID
from oggscope.core.config import load_config
from oggscope.main import EXIT_IO_ERROR, EXIT_OK, EXIT_SCAN_FAILED, EXIT_USAGE, build_parser, main, run
from oggscope.services.inspect.scanner import PageScanner, scan_file


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ["OGGSCOPE_FILE", "OGGSCOPE_TARGET_CODEC", "OGGSCOPE_INVALID_PAGE_POLICY",
                 "OGGSCOPE_LOG_LEVEL", "OGGSCOPE_LOG_JSON", "OGGSCOPE_LOGGING_CONFIG"]:
        monkeypatch.delenv(name, raising=False)


def test_lists_pages(av_file, capsys):
    assert main([str(av_file)]) == EXIT_OK
    lines = capsys.readouterr().out.splitlines()

    assert len(lines) == 11
    assert lines[0].strip() == "0  Page Header - stream serial: 0d0c0b0a - page: 0"
    assert lines[1].endswith("Page Header - stream serial: 44332211 - page: 0")
    assert lines[-1] == f"10 pages, {av_file.stat().st_size} bytes"


def test_selects_codec(av_file, capsys):
    assert main([str(av_file), "--codec", "theora"]) == EXIT_OK
    out = capsys.readouterr().out

    assert "stream 0a0b0c0d: vorbis, 5 packets" in out
    assert "stream 11223344: theora, 5 packets" in out
    assert "selected theora stream 11223344" in out


def test_no_matching_codec(av_file, capsys):
    assert main([str(av_file), "--codec", "opus"]) == EXIT_OK
    assert "no opus bitstream" in capsys.readouterr().out


def test_truncated_file_keeps_partial_listing(ogg, capsys):
    path = ogg.write(ogg.page(1, 0, [b'abc']) + ogg.page(1, 1, [b'x' * 100])[:-10])
    assert main([str(path)]) == EXIT_SCAN_FAILED
    lines = capsys.readouterr().out.splitlines()

    assert lines[0].endswith("page: 0")
    assert lines[1].startswith("1 pages")
    assert lines[2].startswith("error: Page at offset")


def test_resync_policy(ogg, capsys):
    path = ogg.write(ogg.page(1, 0, [b'abc']) + b'junk' + ogg.page(1, 1, [b'def']))
    assert main([str(path), "--on-invalid-page", "resync"]) == EXIT_OK
    out = capsys.readouterr().out
    assert "2 pages" in out
    assert "invalid pages at offsets: 31 (4 bytes skipped)" in out


def test_missing_file(tmp_path):
    assert main([str(tmp_path / "missing.ogg")]) == EXIT_IO_ERROR


def test_unreadable_during_packet_pass(av_file, monkeypatch, capsys):
    def refuse(*args, **kwargs):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr("oggscope.main.open", refuse, raising=False)
    assert main([str(av_file), "--packets"]) == EXIT_IO_ERROR
    assert "10 pages" in capsys.readouterr().out


def test_packet_pass_reuses_scanned_pages(av_file, monkeypatch, capsys):
    def scan_once(*args, **kwargs):
        result = scan_file(*args, **kwargs)
        monkeypatch.setattr(PageScanner, "iter_pages", rescan)
        return result

    def rescan(self):
        raise AssertionError("file scanned twice")

    monkeypatch.setattr("oggscope.main.scan_file", scan_once)
    assert main([str(av_file), "--codec", "theora"]) == EXIT_OK
    assert "selected theora stream 11223344" in capsys.readouterr().out


def test_resync_with_codec_selection(ogg, capsys):
    path = ogg.write(ogg.page(1, 0, [THEORA_ID], header_type=0x02) + b"junk")
    assert main([str(path), "--codec", "theora", "--on-invalid-page", "resync"]) == EXIT_OK
    out = capsys.readouterr().out
    assert "invalid pages at offsets:" in out
    assert "selected theora stream 00000001" in out


def test_help_documents_exit_codes():
    help_text = " ".join(build_parser().format_help().split())
    assert "3 when the file cannot be read" in help_text


def test_no_file_given():
    assert main([]) == EXIT_USAGE


def test_file_from_env(av_file, monkeypatch):
    monkeypatch.setenv("OGGSCOPE_FILE", str(av_file))
    out = io.StringIO()
    assert run(load_config(use_dotenv=False), out=out) == EXIT_OK
    assert "10 pages" in out.getvalue()
