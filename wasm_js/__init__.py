"""wasm-js.

A small build utility that embeds a compiled WebAssembly module into a
JavaScript ES module as compressed, base64-encoded chunks, together with a
loader that reconstructs and instantiates it at runtime.
"""

__all__: list[str] = ["__version__"]

__version__: str = "0.1.0"
