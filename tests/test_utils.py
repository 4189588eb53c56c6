"""Tests for wasm_js.utils."""

import io
import os
import zlib

import pytest

from helpers import payload
from wasm_js.utils import compress_bytes, elapsed, read_and_compress, to_os_bytes


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0.0, "0.00s"),
        (3.25, "3.25s"),
        (59.5, "59.50s"),
        (60.0, "1m 00s"),
        (125.9, "2m 05s"),
    ],
)
def test_elapsed(seconds, expected):
    assert elapsed(seconds) == expected


def test_to_os_bytes_normalizes_line_endings(monkeypatch):
    monkeypatch.setattr(os, "linesep", "\r\n")
    assert to_os_bytes("a\nb\r\nc\rd") == b"a\r\nb\r\nc\r\nd"
    monkeypatch.setattr(os, "linesep", "\n")
    assert to_os_bytes("a\r\nb") == b"a\nb"


def test_read_and_compress_streams_zlib(tmp_path):
    data = payload(3 * 1024 * 1024 + 5)
    path = tmp_path / "mod.wasm"
    path.write_bytes(data)

    out = io.BytesIO()
    assert read_and_compress(out, path, level=1) == len(data)
    assert zlib.decompress(out.getvalue()) == data


def test_read_and_compress_empty_file(tmp_path):
    path = tmp_path / "empty.wasm"
    path.write_bytes(b"")
    out = io.BytesIO()
    assert read_and_compress(out, path) == 0
    assert zlib.decompress(out.getvalue()) == b""


def test_compress_bytes():
    data = b"wasm" * 10_000
    out = io.BytesIO()
    assert compress_bytes(out, data) == len(data)
    assert zlib.decompress(out.getvalue()) == data


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (3.29, "3.29s"),
        (0.07, "0.07s"),
        (59.999, "59.99s"),
    ],
)
def test_elapsed_does_not_truncate_float_error(seconds, expected):
    assert elapsed(seconds) == expected
