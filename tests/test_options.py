"""Tests for embedding configuration resolution (wasm_js.options)."""

import pytest

from wasm_js.js_bin import CHUNK_WORDS
from wasm_js.options import DEFAULT_COMPRESSLEVEL, ConfigError, EmbedConfig, resolve_embed_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("WASM_JS_CHUNK_WORDS", raising=False)
    monkeypatch.delenv("WASM_JS_COMPRESSION_LEVEL", raising=False)


def test_defaults():
    cfg = resolve_embed_config()
    assert cfg == EmbedConfig(chunk_words=CHUNK_WORDS, compresslevel=DEFAULT_COMPRESSLEVEL, disable_dts=False)


def test_overrides_win_over_environment(monkeypatch):
    monkeypatch.setenv("WASM_JS_CHUNK_WORDS", "100")
    monkeypatch.setenv("WASM_JS_COMPRESSION_LEVEL", "3")
    cfg = resolve_embed_config(chunk_words_override=7, compresslevel_override=1, disable_dts=True)
    assert cfg.chunk_words == 7
    assert cfg.compresslevel == 1
    assert cfg.disable_dts is True


def test_environment_values(monkeypatch):
    monkeypatch.setenv("WASM_JS_CHUNK_WORDS", " 100 ")
    monkeypatch.setenv("WASM_JS_COMPRESSION_LEVEL", "0")
    cfg = resolve_embed_config()
    assert cfg.chunk_words == 100
    assert cfg.compresslevel == 0


def test_blank_environment_uses_default(monkeypatch):
    monkeypatch.setenv("WASM_JS_CHUNK_WORDS", "")
    assert resolve_embed_config().chunk_words == CHUNK_WORDS


def test_unparseable_environment(monkeypatch):
    monkeypatch.setenv("WASM_JS_COMPRESSION_LEVEL", "max")
    with pytest.raises(ConfigError, match="WASM_JS_COMPRESSION_LEVEL"):
        resolve_embed_config()


@pytest.mark.parametrize("level", [-1, 10])
def test_compresslevel_out_of_range(level):
    with pytest.raises(ConfigError, match="compresslevel"):
        resolve_embed_config(compresslevel_override=level)


def test_chunk_words_must_be_positive():
    with pytest.raises(ConfigError, match="chunk_words"):
        resolve_embed_config(chunk_words_override=0)


def test_config_is_frozen():
    cfg = EmbedConfig()
    with pytest.raises(AttributeError):
        cfg.chunk_words = 1
