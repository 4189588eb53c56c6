"""Writer that converts a stream of wasm bytes into a JS module.

The generated module looks like::

    import * as importObject from "./foo_bg.js";
    const IMPORTS_KEY = "./foo_bg.js";

    const CHUNK_STACK = [
    "<chunk 0>",
    "<chunk 1>",
    ...
    "<terminal chunk>"
    ].reverse();

    <loader>

Chunks are written oldest first. The loader reverses the array once and then
pops from the end, so chunks are consumed in the order they were written.

Every chunk except the terminal one encodes exactly ``chunk_words * 3`` bytes,
so it base64-encodes without padding and chunks can be decoded one at a time
and concatenated. Only the terminal chunk may carry ``=`` padding, and the
reversal guarantees it is consumed last.
"""

import base64
import binascii
import json
import textwrap

from wasm_js.utils import BinaryWriter, to_os_bytes


# 8192 base64 words = 24 KiB of input per chunk, 32 KiB of text.
CHUNK_WORDS: int = 8192


class EncodingError(ValueError):
    """Raised when a chunk cannot be base64-encoded."""


_PROLOG: bytes = to_os_bytes('\nconst CHUNK_STACK = [\n"')

_CHUNK_SEP: bytes = to_os_bytes('",\n"')

_EPILOG: bytes = to_os_bytes(
    '"'
    + textwrap.dedent(
        r"""
        ].reverse();

        class WasmLoadError extends Error {
          constructor(message, cause) {
            super(message);
            this.name = 'WasmLoadError';
            this.cause = cause;
          }
        }

        async function chunkBytes(base64) {
          if (typeof Buffer !== 'undefined') {
            return Buffer.from(base64, 'base64');
          }
          const res = await fetch('data:application/octet-stream;base64,' + base64);
          return new Uint8Array(await res.arrayBuffer());
        }

        async function loadWasm() {
          const compressed = new ReadableStream({
            type: 'bytes',
            cancel: () => {
              CHUNK_STACK.length = 0;
            },
            pull: async (ctrl) => {
              if (CHUNK_STACK.length) {
                ctrl.enqueue(await chunkBytes(CHUNK_STACK.pop()));
              } else {
                ctrl.close();
              }
            }
          });
          const body = compressed.pipeThrough(new DecompressionStream('deflate'));
          const response = new Response(body, {
            status: 200,
            statusText: 'OK',
            headers: {
              'content-type': 'application/wasm'
            }
          });
          try {
            const {instance} = await WebAssembly.instantiateStreaming(response, {
              [IMPORTS_KEY]: importObject
            });
            importObject.__wbg_set_wasm(instance.exports);
            if (typeof instance.exports.__wbindgen_start === 'function') {
              instance.exports.__wbindgen_start();
            }
          } catch (err) {
            CHUNK_STACK.length = 0;
            throw new WasmLoadError('Failed to load embedded wasm module: ' + err, err);
          }
          return importObject;
        }

        let WASM_PROMISE = null;

        export function getWasm() {
          if (WASM_PROMISE === null) {
            WASM_PROMISE = loadWasm();
          }
          return WASM_PROMISE;
        }
        """
    )
)


def _opening(imports_module: str) -> bytes:
    """Render the import statement that binds the wasm-bindgen glue module.

    :param imports_module: Module specifier of the glue JS (e.g. ``./foo_bg.js``).
    :returns: Encoded opening statement.
    """

    literal: str = json.dumps(imports_module)
    return to_os_bytes(
        f"import * as importObject from {literal};\n"
        f"const IMPORTS_KEY = {literal};\n"
    )


class WasmJsWriter:
    """Streaming writer that embeds wasm bytes as base64 chunks in a JS module.

    Bytes passed to :meth:`write` are staged in a fixed window of
    ``chunk_words * 3`` bytes. Each time the window fills, it is emitted as
    one chunk. :meth:`finalize` emits whatever is left as the terminal chunk
    and writes the loader. A module is only loadable once finalized.

    The writer is not thread-safe; chunk order follows write order.

    :param out: Binary destination (file, ``BufferedWriter``, ``BytesIO``...).
    :param imports_module: Module specifier of the wasm-bindgen glue JS.
    :param chunk_words: Window size in base64 words (3 bytes each).
    """

    def __init__(self, out: BinaryWriter, imports_module: str, *, chunk_words: int = CHUNK_WORDS) -> None:
        if chunk_words < 1:
            raise ValueError(f"Invalid chunk_words={chunk_words}; expected >= 1.")

        self._out: BinaryWriter = out
        self._imports_module: str = imports_module
        self._cap: int = chunk_words * 3
        self._buf: bytearray = bytearray(self._cap)
        self._n: int = 0
        self._chunks: int = 0
        self._started: bool = False
        self._sealing: bool = False
        self._epilog_written: bool = False
        self._finished: bool = False

    @property
    def chunk_size(self) -> int:
        """Window capacity in bytes (always a multiple of 3)."""

        return self._cap

    @property
    def chunks_written(self) -> int:
        return self._chunks

    @property
    def started(self) -> bool:
        return self._started

    @property
    def finished(self) -> bool:
        return self._finished

    def write(self, data: bytes | bytearray | memoryview) -> int:
        """Append bytes, emitting a chunk each time the window fills.

        :param data: Bytes of any length.
        :returns: Number of bytes accepted (always ``len(data)``).
        :raises OSError: If the writer is finished or the destination fails.
        """

        if self._finished is True:
            raise OSError("Cannot write to finished WasmJsWriter")
        # The terminal chunk is already out; more chunks would follow its padding.
        if self._sealing is True:
            raise OSError("Cannot write to WasmJsWriter after finalize() started")

        view: memoryview = memoryview(data).cast("B")
        total: int = len(view)
        pos: int = 0
        while pos < total:
            k: int = min(self._cap - self._n, total - pos)
            self._buf[self._n : self._n + k] = view[pos : pos + k]
            self._n += k
            pos += k
            if self._n == self._cap:
                self._push_chunk()
        return total

    def flush(self) -> None:
        """Flush the destination without emitting a chunk."""

        self._out.flush()

    def finalize(self) -> None:
        """Emit the terminal chunk and the loader, then flush the destination.

        Calling this more than once is a no-op. If the destination fails, the
        writer stays unfinished; a retry rewrites only what is still missing.

        :raises OSError: If the destination fails.
        """

        if self._finished is True:
            return

        if self._sealing is False:
            self._push_chunk()
            self._sealing = True
        if self._epilog_written is False:
            self._out.write(_EPILOG)
            self._epilog_written = True
        self._out.flush()
        self._finished = True

    def close(self) -> None:
        self.finalize()

    def __enter__(self) -> "WasmJsWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # An interrupted embedding must not be sealed with a loader.
        if exc_type is None:
            self.finalize()

    def _push_chunk(self) -> None:
        """Encode the window contents and write them as the next chunk.

        :raises EncodingError: If base64 encoding fails.
        """

        try:
            encoded: bytes = base64.b64encode(memoryview(self._buf)[0 : self._n])
        except (binascii.Error, TypeError) as e:
            raise EncodingError(f"Failed to encode chunk {self._chunks}: {e}") from e

        if self._started is False:
            self._out.write(_opening(self._imports_module))
            self._out.write(_PROLOG)
            self._started = True
        else:
            self._out.write(_CHUNK_SEP)
        self._out.write(encoded)
        self._n = 0
        self._chunks += 1
