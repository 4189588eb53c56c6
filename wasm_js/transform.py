"""Build steps that turn wasm-bindgen output into a self-contained JS module.

- ``embed_wasm`` compresses a ``.wasm`` file and writes it, chunked and
  base64-encoded, into a JS module with an embedded loader.
- ``transform_bindgen_output`` applies that to a wasm-bindgen output
  directory: it writes ``<name>.js``, copies the ``<name>_bg.js`` glue module
  next to it and wraps ``<name>.d.ts`` so it also declares ``getWasm()``.

Outputs are written to a temporary sibling and renamed into place, so a
failed build never leaves a truncated module behind.
"""

from dataclasses import dataclass
import logging
import os
import pathlib
import shutil
import time

from wasm_js.js_bin import EncodingError, WasmJsWriter
from wasm_js.options import EmbedConfig
from wasm_js.utils import create_output_dir, elapsed, read_and_compress, to_os_bytes


class BuildError(RuntimeError):
    """Raised when embedding fails."""


@dataclass(frozen=True, slots=True)
class EmbedStats:
    """Stats collected while embedding a module.

    :ivar input_bytes: Size of the raw wasm module.
    :ivar output_bytes: Size of the generated JS module.
    :ivar chunks: Number of base64 chunks emitted.
    """

    input_bytes: int
    output_bytes: int
    chunks: int


@dataclass(frozen=True, slots=True)
class TransformResult:
    """Files written by :func:`transform_bindgen_output`.

    :ivar module_path: Generated JS module with the embedded wasm.
    :ivar imports_path: Copied wasm-bindgen glue module.
    :ivar types_path: Wrapped TypeScript declarations, if generated.
    :ivar stats: Embedding stats for the module.
    """

    module_path: pathlib.Path
    imports_path: pathlib.Path
    types_path: pathlib.Path | None
    stats: EmbedStats


_TYPES_PROLOG: str = "/* tslint:disable */\n/* eslint-disable */\ndeclare namespace WasmDecls {\n"

_TYPES_EPILOG: str = (
    "\n}\n"
    "export type WasmExports = typeof WasmDecls;\n"
    "export function getWasm(): Promise<typeof WasmExports>;\n"
)


def name_prefix_for(crate_name: str) -> str:
    """Return the file-name prefix wasm-bindgen uses for a crate.

    :param crate_name: Crate (or ``--out-name``) name.
    :returns: Name with dashes replaced by underscores.
    """

    return crate_name.replace("-", "_")


def _tmp_sibling(path: pathlib.Path) -> pathlib.Path:
    return path.with_name(f".{path.name}.tmp")


def embed_wasm(
    *,
    input_path: pathlib.Path,
    output_path: pathlib.Path,
    imports_module: str,
    config: EmbedConfig,
    logger: logging.Logger | None = None,
) -> EmbedStats:
    """Embed a wasm module into a generated JS module.

    :param input_path: ``.wasm`` file to embed.
    :param output_path: Output path for the generated ``.js`` module.
    :param imports_module: Module specifier the generated module imports its
        wasm imports from (e.g. ``./foo_bg.js``).
    :param config: Embedding options.
    :param logger: Optional logger for progress output.
    :returns: Embedding stats.
    :raises BuildError: If the input is missing or any write fails.
    """

    if logger is None:
        logger = logging.getLogger("wasm_js")

    if input_path.is_file() is False:
        raise BuildError(f"Input wasm file does not exist: {input_path}")

    logger.info(f"wasm-js: embedding {input_path} -> {output_path}")
    if logger.isEnabledFor(logging.DEBUG) is True:
        logger.debug(
            f"wasm-js: imports_module={imports_module} chunk_words={config.chunk_words} "
            f"compresslevel={config.compresslevel}"
        )

    t0: float = time.perf_counter()
    create_output_dir(output_path.parent)
    tmp_path: pathlib.Path = _tmp_sibling(output_path)
    try:
        with open(tmp_path, "wb") as f:
            writer: WasmJsWriter = WasmJsWriter(f, imports_module, chunk_words=config.chunk_words)
            input_bytes: int = read_and_compress(writer, input_path, level=config.compresslevel)
            writer.finalize()
            os.fsync(f.fileno())
        os.replace(tmp_path, output_path)
    except (OSError, EncodingError) as e:
        tmp_path.unlink(missing_ok=True)
        raise BuildError(f"Failed to embed {input_path} into {output_path}: {e}") from e

    stats: EmbedStats = EmbedStats(
        input_bytes=input_bytes,
        output_bytes=output_path.stat().st_size,
        chunks=writer.chunks_written,
    )
    t1: float = time.perf_counter()
    logger.info(
        f"wasm-js: wrote {output_path} ({stats.input_bytes / 1024:.1f} KiB wasm -> "
        f"{stats.output_bytes / 1024:.1f} KiB js, {stats.chunks} chunks) in {elapsed(t1 - t0)}"
    )
    return stats


def write_types_file(*, input_path: pathlib.Path, output_path: pathlib.Path) -> None:
    """Wrap wasm-bindgen's declarations so they also describe ``getWasm()``.

    :param input_path: Declarations produced by wasm-bindgen.
    :param output_path: Output path for the wrapped declarations.
    :raises BuildError: If reading or writing fails.
    """

    tmp_path: pathlib.Path = _tmp_sibling(output_path)
    try:
        types_text: bytes = input_path.read_bytes()
        with open(tmp_path, "wb") as f:
            f.write(to_os_bytes(_TYPES_PROLOG))
            f.write(types_text)
            f.write(to_os_bytes(_TYPES_EPILOG))
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, output_path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise BuildError(f"Failed to write types file {output_path}: {e}") from e


def transform_bindgen_output(
    *,
    bindgen_dir: pathlib.Path,
    out_dir: pathlib.Path,
    name_prefix: str,
    config: EmbedConfig,
    logger: logging.Logger | None = None,
) -> TransformResult:
    """Turn a wasm-bindgen output directory into a self-contained JS package.

    :param bindgen_dir: Directory holding ``<name>_bg.wasm`` and ``<name>_bg.js``.
    :param out_dir: Output directory.
    :param name_prefix: File-name prefix (see :func:`name_prefix_for`).
    :param config: Embedding options.
    :param logger: Optional logger for progress output.
    :returns: Paths of the written files.
    :raises BuildError: If required inputs are missing or any write fails.
    """

    if logger is None:
        logger = logging.getLogger("wasm_js")

    wasm_filename: str = f"{name_prefix}_bg.wasm"
    imports_filename: str = f"{name_prefix}_bg.js"
    types_filename: str = f"{name_prefix}.d.ts"
    module_filename: str = f"{name_prefix}.js"

    if bindgen_dir.is_dir() is False:
        raise BuildError(f"wasm-bindgen output directory does not exist: {bindgen_dir}")
    for required in (wasm_filename, imports_filename):
        if (bindgen_dir / required).is_file() is False:
            raise BuildError(f"wasm-bindgen output is missing {required} in {bindgen_dir}")

    t0: float = time.perf_counter()
    logger.info(f"wasm-js: transforming {bindgen_dir} -> {out_dir}")
    create_output_dir(out_dir)

    module_path: pathlib.Path = out_dir / module_filename
    stats: EmbedStats = embed_wasm(
        input_path=bindgen_dir / wasm_filename,
        output_path=module_path,
        imports_module=f"./{imports_filename}",
        config=config,
        logger=logger,
    )

    imports_path: pathlib.Path = out_dir / imports_filename
    if (bindgen_dir / imports_filename).resolve() != imports_path.resolve():
        try:
            shutil.copy2(bindgen_dir / imports_filename, imports_path)
        except OSError as e:
            raise BuildError(f"Failed to copy {imports_filename}: {e}") from e

    types_path: pathlib.Path | None = None
    if config.disable_dts is True:
        logger.debug("wasm-js: skipping TypeScript declarations")
    elif (bindgen_dir / types_filename).is_file() is False:
        logger.warning(f"wasm-js: {types_filename} not found in {bindgen_dir}; skipping declarations")
    else:
        types_path = out_dir / types_filename
        write_types_file(input_path=bindgen_dir / types_filename, output_path=types_path)

    t1: float = time.perf_counter()
    logger.info(f"wasm-js: Javascript files created in {out_dir} in {elapsed(t1 - t0)}")
    return TransformResult(
        module_path=module_path,
        imports_path=imports_path,
        types_path=types_path,
        stats=stats,
    )
