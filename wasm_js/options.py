"""Embedding configuration.

Values are resolved in order:

- explicit overrides (CLI flags),
- environment variables (``WASM_JS_CHUNK_WORDS``, ``WASM_JS_COMPRESSION_LEVEL``),
- built-in defaults.
"""

from dataclasses import dataclass
import os

from wasm_js.js_bin import CHUNK_WORDS


class ConfigError(ValueError):
    """Raised when an embedding option is invalid."""


DEFAULT_COMPRESSLEVEL: int = 9

_ENV_CHUNK_WORDS: str = "WASM_JS_CHUNK_WORDS"
_ENV_COMPRESSLEVEL: str = "WASM_JS_COMPRESSION_LEVEL"


@dataclass(frozen=True, slots=True)
class EmbedConfig:
    """Options for embedding a wasm module.

    :ivar chunk_words: Chunk window size in base64 words (3 input bytes each).
    :ivar compresslevel: zlib compression level (0-9).
    :ivar disable_dts: Skip generating the TypeScript declaration file.
    """

    chunk_words: int = CHUNK_WORDS
    compresslevel: int = DEFAULT_COMPRESSLEVEL
    disable_dts: bool = False


def resolve_embed_config(
    *,
    chunk_words_override: int | None = None,
    compresslevel_override: int | None = None,
    disable_dts: bool = False,
) -> EmbedConfig:
    """Resolve user-supplied options into an :class:`~EmbedConfig`.

    :param chunk_words_override: Optional explicit chunk size in words.
    :param compresslevel_override: Optional explicit compression level.
    :param disable_dts: Skip the TypeScript declaration file.
    :returns: Resolved config.
    :raises ConfigError: If any value is out of range or unparseable.
    """

    chunk_words: int = _resolve_int(
        override=chunk_words_override,
        env_name=_ENV_CHUNK_WORDS,
        default=CHUNK_WORDS,
    )
    if chunk_words < 1:
        raise ConfigError(f"Invalid chunk_words={chunk_words}; expected >= 1.")

    compresslevel: int = _resolve_int(
        override=compresslevel_override,
        env_name=_ENV_COMPRESSLEVEL,
        default=DEFAULT_COMPRESSLEVEL,
    )
    if compresslevel < 0 or compresslevel > 9:
        raise ConfigError(f"Invalid compresslevel={compresslevel}; expected 0-9.")

    return EmbedConfig(
        chunk_words=chunk_words,
        compresslevel=compresslevel,
        disable_dts=disable_dts,
    )


def _resolve_int(*, override: int | None, env_name: str, default: int) -> int:
    """Resolve one integer option.

    :param override: Explicit value, if any.
    :param env_name: Environment variable consulted when no override is given.
    :param default: Fallback value.
    :returns: Resolved integer.
    :raises ConfigError: If the environment value is not an integer.
    """

    if override is not None:
        return override

    raw: str | None = os.environ.get(env_name)
    if raw is None or len(raw.strip()) == 0:
        return default

    try:
        return int(raw.strip())
    except ValueError as e:
        raise ConfigError(f"Invalid {env_name}={raw!r}; expected an integer.") from e
