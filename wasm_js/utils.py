"""Utility helpers shared by the build steps.

- ``read_and_compress`` / ``compress_bytes`` feed zlib-framed DEFLATE output
  into any writer, incrementally.
- ``to_os_bytes`` renders fixed text with the host line-ending convention.
"""

import os
import pathlib
import typing
import zlib


# 1 MiB reads keep memory bounded for large modules.
_READ_SIZE: int = 1024 * 1024


class BinaryWriter(typing.Protocol):
    """Anything that accepts bytes via ``write``."""

    def write(self, data: bytes, /) -> int | None: ...


def read_and_compress(out: BinaryWriter, input_path: pathlib.Path, *, level: int = 9) -> int:
    """Stream a file through zlib into ``out``.

    The output uses the zlib wrapper format, which is what the JS
    ``DecompressionStream('deflate')`` expects.

    :param out: Destination writer (usually a ``WasmJsWriter``).
    :param input_path: File to compress.
    :param level: zlib compression level (0-9).
    :returns: Number of input bytes read.
    """

    compressor = zlib.compressobj(level, zlib.DEFLATED, zlib.MAX_WBITS)
    total: int = 0
    with open(input_path, "rb") as f:
        while True:
            block: bytes = f.read(_READ_SIZE)
            if len(block) == 0:
                break
            total += len(block)
            out.write(compressor.compress(block))
    out.write(compressor.flush())
    return total


def compress_bytes(out: BinaryWriter, data: bytes, *, level: int = 9) -> int:
    """Compress in-memory bytes into ``out``.

    :param out: Destination writer.
    :param data: Raw bytes to compress.
    :param level: zlib compression level (0-9).
    :returns: Number of input bytes consumed.
    """

    compressor = zlib.compressobj(level, zlib.DEFLATED, zlib.MAX_WBITS)
    view: memoryview = memoryview(data)
    i: int = 0
    n: int = len(view)
    while i < n:
        j: int = min(i + _READ_SIZE, n)
        out.write(compressor.compress(view[i:j]))
        i = j
    out.write(compressor.flush())
    return n


def to_os_bytes(text: str) -> bytes:
    """Encode text as UTF-8 using the host line-ending convention.

    :param text: Text with any mix of ``\\r\\n``, ``\\r`` and ``\\n``.
    :returns: Encoded bytes.
    """

    normalized: str = text.replace("\r\n", "\n").replace("\r", "\n")
    return normalized.replace("\n", os.linesep).encode("utf-8")


def create_output_dir(out_dir: pathlib.Path) -> None:
    """Create the output directory (and parents) if needed."""

    out_dir.mkdir(parents=True, exist_ok=True)


def elapsed(seconds: float) -> str:
    """Render a duration for log output.

    :param seconds: Duration in seconds.
    :returns: ``"2m 05s"`` for a minute or more, otherwise ``"3.25s"``.
    """

    secs: int = int(seconds)
    if secs >= 60:
        return f"{secs // 60}m {secs % 60:02d}s"
    centis: int = min(round((seconds - secs) * 100), 99)
    return f"{secs}.{centis:02d}s"
