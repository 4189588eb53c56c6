"""Reference decoder for modules produced by :class:`~wasm_js.js_bin.WasmJsWriter`.

The real consumer of a generated module is a JS runtime. This module follows
the same protocol in Python so builds can be verified without one:

1. Parse the ``CHUNK_STACK`` array literal.
2. Reverse it once.
3. Pop from the end until empty, base64-decoding each chunk.
4. Stream the decoded bytes through a zlib decompressor.
"""

from collections.abc import Iterable, Iterator
import base64
import binascii
import json
import pathlib
import re
import zlib


class LoadError(RuntimeError):
    """Raised when a generated module cannot be decoded back into wasm bytes."""


# Anchored to a line start; the JSON-escaped import specifier never spans lines.
_CONTAINER_DECL: re.Pattern[str] = re.compile(r"^const CHUNK_STACK = ", re.MULTILINE)
_CONTAINER_END: str = "].reverse();"


def extract_chunks(text: str) -> list[str]:
    """Return the chunks of a generated module in encode order.

    :param text: Generated JS module source.
    :returns: Chunk strings, oldest first.
    :raises LoadError: If the chunk array is missing or malformed.
    """

    m = _CONTAINER_DECL.search(text)
    if m is None:
        raise LoadError("Module does not declare CHUNK_STACK.")
    start: int = m.end()

    end: int = text.find(_CONTAINER_END, start)
    if end < 0:
        raise LoadError("CHUNK_STACK literal is not terminated (module was never finalized?).")

    # The array literal is plain JSON: double-quoted base64 strings.
    try:
        chunks = json.loads(text[start : end + 1])
    except json.JSONDecodeError as e:
        raise LoadError(f"CHUNK_STACK literal is malformed: {e}") from e

    if isinstance(chunks, list) is False or any(isinstance(c, str) is False for c in chunks):
        raise LoadError("CHUNK_STACK must be an array of strings.")
    if len(chunks) == 0:
        raise LoadError("CHUNK_STACK is empty.")
    return chunks


def pop_order(chunks: list[str]) -> list[str]:
    """Replay the loader's reverse-then-pop consumption of the chunk array.

    :param chunks: Chunks as they appear in the array literal.
    :returns: Chunks in the order the loader consumes them.
    """

    stack: list[str] = list(chunks)
    stack.reverse()
    popped: list[str] = []
    while len(stack) > 0:
        popped.append(stack.pop())
    return popped


def iter_chunk_bytes(chunks: list[str]) -> Iterator[bytes]:
    """Base64-decode chunks one at a time, in pop order.

    :param chunks: Chunks as they appear in the array literal.
    :returns: Iterator of decoded (still compressed) byte blocks.
    :raises LoadError: If a chunk is not valid base64.
    """

    for i, chunk in enumerate(pop_order(chunks)):
        try:
            yield base64.b64decode(chunk, validate=True)
        except (binascii.Error, ValueError) as e:
            raise LoadError(f"Chunk {i} is not valid base64: {e}") from e


def join_chunks(chunks: list[str]) -> bytes:
    """Decode and concatenate all chunks, without decompressing."""

    return b"".join(iter_chunk_bytes(chunks))


def decompress_blocks(blocks: Iterable[bytes]) -> bytes:
    """Stream zlib-compressed blocks through a decompressor.

    :param blocks: Compressed byte blocks in stream order.
    :returns: Decompressed bytes.
    :raises LoadError: If the stream is corrupt, truncated or has trailing data.
    """

    d = zlib.decompressobj()
    parts: list[bytes] = []
    try:
        for block in blocks:
            parts.append(d.decompress(block))
        parts.append(d.flush())
    except zlib.error as e:
        raise LoadError(f"Failed to decompress module payload: {e}") from e

    if d.eof is False:
        raise LoadError("Module payload is truncated (no end of compressed stream).")
    if len(d.unused_data) > 0:
        raise LoadError(f"Module payload has {len(d.unused_data)} trailing bytes.")
    return b"".join(parts)


def decode_chunks(chunks: list[str]) -> bytes:
    """Reconstruct the original wasm bytes from the chunk array.

    :param chunks: Chunks as they appear in the array literal.
    :returns: Original wasm bytes.
    :raises LoadError: On any decode or decompression failure.
    """

    return decompress_blocks(iter_chunk_bytes(chunks))


def decode_module(text: str) -> bytes:
    """Reconstruct the wasm bytes embedded in a generated module.

    :param text: Generated JS module source.
    :returns: Original wasm bytes.
    :raises LoadError: On any decode or decompression failure.
    """

    return decode_chunks(extract_chunks(text))


def decode_module_file(path: pathlib.Path) -> bytes:
    """Read a generated module from disk and reconstruct its wasm bytes.

    :param path: Path to the generated ``.js`` file.
    :returns: Original wasm bytes.
    :raises LoadError: On any decode or decompression failure.
    """

    try:
        text: str = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise LoadError(f"{path} is not a UTF-8 text module: {e}") from e
    return decode_module(text)
