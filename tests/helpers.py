"""Shared test helpers for the wasm_js test suite.

Chunk-level tests use a tiny window (``chunk_words=4``, 12 bytes) so that
boundary cases are cheap to construct. Payloads are pseudo-random but seeded,
so failures are reproducible.
"""

import io
import random

from wasm_js.decode import extract_chunks, join_chunks
from wasm_js.js_bin import WasmJsWriter


SMALL_WORDS = 4
SMALL_WINDOW = SMALL_WORDS * 3

# Minimal valid wasm header followed by filler; the encoder never parses it.
WASM_MAGIC = b"\x00asm\x01\x00\x00\x00"


def payload(n, seed=0):
    """Return ``n`` deterministic pseudo-random bytes."""
    return random.Random(seed).randbytes(n)


def encode_raw(data, *, chunk_words=SMALL_WORDS, imports_module="./foo_bg.js"):
    """Run bytes through a WasmJsWriter with a single write and return the text."""
    out = io.BytesIO()
    writer = WasmJsWriter(out, imports_module, chunk_words=chunk_words)
    writer.write(data)
    writer.finalize()
    return out.getvalue().decode("utf-8")


def raw_chunks(text):
    """Chunks of a generated module, in the order they appear in the text."""
    return extract_chunks(text)


def raw_bytes(text):
    """Concatenated (uncompressed-layer) bytes recovered from a generated module."""
    return join_chunks(extract_chunks(text))
