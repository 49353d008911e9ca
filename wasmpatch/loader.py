"""
Embedding of the compiled binary into the loader module. The loader generated
by wasm-bindgen ends with a default export of its initializer, which callers
invoke with the URL of the `_bg.wasm` file. After patching, the default export
is a function that passes the initializer a data URI of the binary instead,
and the package no longer needs the separate file at runtime.
"""

import base64
import logging
import re
from typing import NamedTuple, TYPE_CHECKING

from .error import AmbiguousPatchTargetError, PatchTargetNotFoundError

if TYPE_CHECKING:
    from .config import PatchConfig
    from .fs import FileSystem


__all__ = (
    'DATA_URI_PREFIX',
    'data_uri_length',
    'decode_base64url',
    'Embedding',
    'encode_base64url',
    'extract_embedded_binary',
    'LoaderEmbedder',
    'loader_marker',
    'patch_loader',
    'to_data_uri',
)


logger = logging.getLogger('wasmpatch.loader')

DATA_URI_PREFIX = 'data:application/wasm;base64,'

_WASM_MAGIC = b'\x00asm'

_WRAPPER = """\
export default function() {{
    return {symbol}("{uri}");
}}"""


def encode_base64url(data: bytes) -> str:
    """Encode with the URL-safe alphabet, without padding or line breaks."""
    return base64.urlsafe_b64encode(data).rstrip(b'=').decode('ascii')


def decode_base64url(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + '=' * (-len(text) % 4))


def to_data_uri(data: bytes) -> str:
    return DATA_URI_PREFIX + encode_base64url(data)


def data_uri_length(size: int) -> int:
    """Determine the length of the data URI for a binary of the given size."""
    # Unpadded base64 uses 4 characters per 3 bytes, rounded up.
    return len(DATA_URI_PREFIX) + (4 * size + 2) // 3


def loader_marker(symbol: str = '__wbg_init') -> str:
    return f'export default {symbol};'


def _wrapper_pattern(symbol: str) -> 're.Pattern[str]':
    return re.compile(
        r'export\s+default\s+function\s*\(\s*\)\s*\{\s*return\s+'
        + re.escape(symbol)
        + r'\(\s*"'
        + re.escape(DATA_URI_PREFIX)
        + r'(?P<payload>[A-Za-z0-9_-]*)"\s*\)\s*;?\s*\}'
    )


# --------------------------------------------------------------------------------------


def patch_loader(
    text: str,
    binary: bytes,
    symbol: str = '__wbg_init',
    *,
    source: 'None | str' = None,
) -> str:
    """
    Replace the loader's default export of the initializer with a function
    that calls the initializer on the binary's data URI. The marker must occur
    exactly once. Otherwise, this function raises a `PatchTargetNotFoundError`.
    """
    marker = loader_marker(symbol)
    count = text.count(marker)
    if count == 0:
        already_patched = _wrapper_pattern(symbol).search(text) is not None
        raise PatchTargetNotFoundError(
            marker, text, already_patched=already_patched, path=source)
    if count > 1:
        raise AmbiguousPatchTargetError(marker, text, count, path=source)

    wrapper = _WRAPPER.format(symbol=symbol, uri=to_data_uri(binary))
    return text.replace(marker, wrapper, 1)


def extract_embedded_binary(text: str, symbol: str = '__wbg_init') -> 'None | bytes':
    """Recover the binary embedded by `patch_loader()`, if any."""
    match = _wrapper_pattern(symbol).search(text)
    if match is None:
        return None
    return decode_base64url(match.group('payload'))


# --------------------------------------------------------------------------------------


class Embedding(NamedTuple):
    binary_size: int
    data_uri_length: int


class LoaderEmbedder:
    """Embed the package's binary into its loader module, in place."""

    def __init__(self, config: 'PatchConfig', fs: 'FileSystem') -> None:
        self._config = config
        self._fs = fs

    def __repr__(self) -> str:
        return f'<wasmpatch-loader {self._config.loader_path}>'

    def run(self) -> Embedding:
        """Patch the loader and return the sizes of binary and data URI."""
        binary_path = self._config.binary_path
        loader_path = self._config.loader_path

        binary = self._fs.read_binary(binary_path)
        if not binary.startswith(_WASM_MAGIC):
            logger.warning('"%s" does not start with the WebAssembly magic', binary_path)

        text = self._fs.read_text(loader_path)
        patched = patch_loader(
            text, binary, self._config.init_symbol, source=str(loader_path))
        self._fs.write_text(loader_path, patched)

        uri_length = data_uri_length(len(binary))
        logger.info(
            'embedded %d bytes of "%s" into "%s" as %d character data URI',
            len(binary), binary_path, loader_path, uri_length)
        return Embedding(len(binary), uri_length)
