"""Command-line behaviour of b64url.main: flags, exit status and stderr."""

import io
import sys

import pytest

import b64url


@pytest.fixture
def stdin(monkeypatch):
    """Replaces sys.stdin with one whose .buffer yields the given bytes."""
    def feed(data):
        monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))
    return feed


def run_main(argv):
    with pytest.raises(SystemExit) as excinfo:
        b64url.main(argv)
    return excinfo.value.code


def test_encode_stdin(stdin, capsysbinary):
    stdin(b"hello")
    assert run_main([]) == b64url.EX_SUCCESS
    assert capsysbinary.readouterr().out == b"aGVsbG8\n"


def test_encode_dash(stdin, capsysbinary):
    stdin(b"hello\n")
    assert run_main(["-"]) == b64url.EX_SUCCESS
    assert capsysbinary.readouterr().out == b"aGVsbG8K\n"


@pytest.mark.parametrize("flag", ["-d", "--decode"])
def test_decode_stdin(stdin, capsysbinary, flag):
    stdin(b"aGVsbG8\n")
    assert run_main([flag]) == b64url.EX_SUCCESS
    assert capsysbinary.readouterr().out == b"hello"


def test_decode_file(tmp_path, stdin, capsysbinary):
    stdin(b"")
    path = tmp_path / "sushi.txt"
    path.write_bytes(b"8J-Now\n")
    assert run_main(["-d", str(path)]) == b64url.EX_SUCCESS
    assert capsysbinary.readouterr().out == b"\xF0\x9F\x8D\xA3"


def test_missing_file(tmp_path, stdin, capsysbinary):
    stdin(b"")
    path = tmp_path / "missing.bin"
    assert run_main([str(path)]) == b64url.EX_FAILURE
    captured = capsysbinary.readouterr()
    assert captured.out == b""
    assert b"cannot open" in captured.err
    assert str(path).encode() in captured.err


def test_invalid_input(stdin, capsysbinary):
    stdin(b"a!b2\n")
    assert run_main(["-d"]) == b64url.EX_FAILURE
    captured = capsysbinary.readouterr()
    assert captured.out == b""
    assert b"invalid character" in captured.err


def test_version(capsys):
    assert run_main(["--version"]) == 0
    assert b64url.__version__ in capsys.readouterr().out


def test_unknown_option(capsys):
    assert run_main(["--wrap"]) == 2
    assert "usage:" in capsys.readouterr().err
