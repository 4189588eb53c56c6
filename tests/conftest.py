"""Shared fixtures for the wasm_js test suite."""

import pathlib

import pytest

from helpers import WASM_MAGIC, payload


@pytest.fixture
def wasm_file(tmp_path) -> pathlib.Path:
    """A fake 100 KiB wasm module on disk."""
    path = tmp_path / "input" / "hello_bg.wasm"
    path.parent.mkdir()
    path.write_bytes(WASM_MAGIC + payload(100 * 1024, seed=7))
    return path


@pytest.fixture
def bindgen_dir(tmp_path) -> pathlib.Path:
    """A directory laid out like wasm-bindgen output for a crate named ``js-hello-world``."""
    d = tmp_path / "bindgen"
    d.mkdir()
    (d / "js_hello_world_bg.wasm").write_bytes(WASM_MAGIC + payload(50 * 1024, seed=3))
    (d / "js_hello_world_bg.js").write_text(
        "let wasm;\nexport function __wbg_set_wasm(val) { wasm = val; }\n"
        "export function greet() { return wasm.greet(); }\n",
        encoding="utf-8",
    )
    (d / "js_hello_world.d.ts").write_text(
        "export function greet(): string;\n",
        encoding="utf-8",
    )
    return d
