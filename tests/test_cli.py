"""
keccak256 command-line tests

Coverage:
  - MESSAGE as UTF-8 and as --hex
  - --file, small --chunk-size, stdin streaming
  - Exit codes for bad hex, unreadable files and argument errors
"""

import io
import logging
import sys

import pytest

from keccak256 import (
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    EXIT_USAGE_ERROR,
    keccak256_hex,
    main,
)

ABC_DIGEST = "4e03657aea45a94fc7d47ba826c8d667c0d1e6e33a64a036ec44f58fa12d6c45"
ZERO_BYTE_DIGEST = "bc36789e7a1e281436464229828f817d6612f7b477d66591ff96a9e064bcc98a"


def _stdin(monkeypatch, data):
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))


def test_message(capsys):
    assert main(["abc"]) == EXIT_SUCCESS
    assert capsys.readouterr().out.strip() == ABC_DIGEST


def test_utf8_message(capsys):
    assert main(["héllo"]) == EXIT_SUCCESS
    assert capsys.readouterr().out.strip() == keccak256_hex("héllo".encode("utf-8"))


def test_hex_message(capsys):
    assert main(["--hex", "0"]) == EXIT_SUCCESS
    assert capsys.readouterr().out.strip() == ZERO_BYTE_DIGEST


def test_file_with_small_chunks(tmp_path, capsys):
    data = bytes(range(256)) * 5
    path = tmp_path / "blob.bin"
    path.write_bytes(data)
    assert main(["--file", str(path), "--chunk-size", "7"]) == EXIT_SUCCESS
    assert capsys.readouterr().out.strip() == keccak256_hex(data)


def test_stdin_default(monkeypatch, capsys):
    _stdin(monkeypatch, b"abc")
    assert main([]) == EXIT_SUCCESS
    assert capsys.readouterr().out.strip() == ABC_DIGEST


def test_stdin_dash(monkeypatch, capsys):
    _stdin(monkeypatch, b"")
    assert main(["--file", "-"]) == EXIT_SUCCESS
    assert capsys.readouterr().out.strip() == keccak256_hex(b"")


def test_bad_hex(capsys, caplog):
    with caplog.at_level(logging.ERROR, logger="keccak256"):
        assert main(["--hex", "xyz"]) == EXIT_USAGE_ERROR
    assert capsys.readouterr().out == ""
    assert "Invalid hex" in caplog.text


def test_missing_file(tmp_path, caplog):
    with caplog.at_level(logging.ERROR, logger="keccak256"):
        assert main(["--file", str(tmp_path / "nope.bin")]) == EXIT_RUNTIME_ERROR
    assert "Cannot read" in caplog.text


def test_message_and_file_conflict(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(["abc", "--file", str(tmp_path / "x")])
    assert exc.value.code == 2


@pytest.mark.parametrize("size", ["0", "-3", "many"])
def test_bad_chunk_size(size):
    with pytest.raises(SystemExit) as exc:
        main(["--chunk-size", size, "abc"])
    assert exc.value.code == 2
