"""Command line interface for wasm-js."""

import argparse
import logging
import pathlib
import sys

from wasm_js import __version__
from wasm_js.decode import LoadError, decode_module_file
from wasm_js.options import ConfigError, EmbedConfig, resolve_embed_config
from wasm_js.transform import BuildError, embed_wasm, name_prefix_for, transform_bindgen_output


_LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def _configure_logging(*, verbose: int, quiet: int, log_level: str | None) -> logging.Logger:
    """Configure the wasm-js logger.

    An explicit ``--log-level`` wins over ``-v`` / ``-q``.

    :param verbose: Verbosity count (0+).
    :param quiet: Quietness count (0+).
    :param log_level: Optional explicit level name.
    :returns: Configured logger.
    """

    level: int = logging.INFO
    if log_level is not None:
        level = _LOG_LEVELS[log_level]
    elif quiet >= 2:
        level = logging.ERROR
    elif quiet >= 1:
        level = logging.WARNING
    elif verbose >= 1:
        level = logging.DEBUG

    logger: logging.Logger = logging.getLogger("wasm_js")
    logger.setLevel(level)
    logger.propagate = False

    handler: logging.Handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger.handlers.clear()
    logger.addHandler(handler)
    return logger


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Enable verbose logging. Pass multiple times for more detail.",
    )
    p.add_argument(
        "-q",
        "--quiet",
        action="count",
        default=0,
        help="Reduce logging. Pass multiple times to suppress more output.",
    )
    p.add_argument(
        "--log-level",
        choices=sorted(_LOG_LEVELS),
        default=None,
        help="Maximum level of messages to log (overrides -v/-q).",
    )


def _add_embed_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--chunk-words",
        type=int,
        default=None,
        help="Chunk size in base64 words of 3 bytes (default: 8192, or $WASM_JS_CHUNK_WORDS).",
    )
    p.add_argument(
        "--compresslevel",
        type=int,
        default=None,
        help="zlib compression level 0-9 (default: 9, or $WASM_JS_COMPRESSION_LEVEL).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="wasm-js",
        description="Embed a WebAssembly module into a self-loading JavaScript module.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_embed = subparsers.add_parser(
        "embed",
        help="Embed a single .wasm file into a .js module.",
    )
    p_embed.add_argument("input", type=pathlib.Path, help="Path to the .wasm file.")
    p_embed.add_argument(
        "-o",
        "--output",
        type=pathlib.Path,
        required=True,
        help="Output path for the generated .js module.",
    )
    p_embed.add_argument(
        "--imports-module",
        type=str,
        default=None,
        help="Module specifier to import wasm imports from (default: ./foo_bg.js for foo.wasm or foo_bg.wasm).",
    )
    _add_embed_args(p_embed)
    _add_common_args(p_embed)

    p_transform = subparsers.add_parser(
        "transform",
        help="Turn a wasm-bindgen output directory into a self-contained JS package.",
    )
    p_transform.add_argument(
        "bindgen_dir",
        type=pathlib.Path,
        help="Directory containing <name>_bg.wasm and <name>_bg.js.",
    )
    p_transform.add_argument(
        "-n",
        "--name",
        type=str,
        required=True,
        help="Crate or --out-name used by wasm-bindgen (dashes become underscores).",
    )
    p_transform.add_argument(
        "-d",
        "--out-dir",
        type=pathlib.Path,
        default=pathlib.Path("dist"),
        help="Output directory (default: dist).",
    )
    p_transform.add_argument(
        "--no-typescript",
        action="store_true",
        help="Do not generate the wrapped .d.ts declarations.",
    )
    _add_embed_args(p_transform)
    _add_common_args(p_transform)

    p_verify = subparsers.add_parser(
        "verify",
        help="Decode a generated .js module and check it reproduces the wasm bytes.",
    )
    p_verify.add_argument("module", type=pathlib.Path, help="Path to the generated .js module.")
    p_verify.add_argument(
        "--expect",
        type=pathlib.Path,
        default=None,
        help="Original .wasm file to compare against.",
    )
    _add_common_args(p_verify)

    return parser


def _default_imports_module(input_path: pathlib.Path) -> str:
    """Guess the glue module for ``foo_bg.wasm`` (``./foo_bg.js``) or ``foo.wasm`` (``./foo_bg.js``)."""

    stem: str = input_path.stem
    if stem.endswith("_bg") is True:
        return f"./{stem}.js"
    return f"./{stem}_bg.js"


def _run_verify(*, module_path: pathlib.Path, expect_path: pathlib.Path | None, logger: logging.Logger) -> int:
    """Decode a generated module and optionally compare it with the original.

    :returns: Exit code.
    """

    wasm_bytes: bytes = decode_module_file(module_path)
    logger.info(f"wasm-js: {module_path} decodes to {len(wasm_bytes)} bytes")
    if expect_path is None:
        return 0

    expected: bytes = expect_path.read_bytes()
    if wasm_bytes != expected:
        logger.error(
            f"wasm-js: {module_path} does not match {expect_path} "
            f"({len(wasm_bytes)} vs {len(expected)} bytes)"
        )
        return 1
    logger.info(f"wasm-js: {module_path} matches {expect_path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the wasm-js CLI.

    :param argv: Optional argv list (excluding program name).
    :returns: Exit code.
    """

    parser: argparse.ArgumentParser = _build_parser()
    ns = parser.parse_args(argv)
    logger: logging.Logger = _configure_logging(
        verbose=ns.verbose,
        quiet=ns.quiet,
        log_level=ns.log_level,
    )

    try:
        if ns.command == "embed":
            config: EmbedConfig = resolve_embed_config(
                chunk_words_override=ns.chunk_words,
                compresslevel_override=ns.compresslevel,
            )
            imports_module: str = ns.imports_module
            if imports_module is None:
                imports_module = _default_imports_module(ns.input)
            embed_wasm(
                input_path=ns.input,
                output_path=ns.output,
                imports_module=imports_module,
                config=config,
                logger=logger,
            )
            return 0

        if ns.command == "transform":
            config = resolve_embed_config(
                chunk_words_override=ns.chunk_words,
                compresslevel_override=ns.compresslevel,
                disable_dts=ns.no_typescript,
            )
            transform_bindgen_output(
                bindgen_dir=ns.bindgen_dir,
                out_dir=ns.out_dir,
                name_prefix=name_prefix_for(ns.name),
                config=config,
                logger=logger,
            )
            return 0

        if ns.command == "verify":
            return _run_verify(module_path=ns.module, expect_path=ns.expect, logger=logger)
    except (BuildError, ConfigError, LoadError, OSError) as e:
        logger.error(f"Error: {e}")
        cause: BaseException | None = e.__cause__
        while cause is not None:
            logger.error(f"Caused by: {cause}")
            cause = cause.__cause__
        return 1

    raise AssertionError(f"Unhandled command: {ns.command}")
