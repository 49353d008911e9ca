"""Make wasm-pack packages self-contained by embedding their WebAssembly binary."""

__version__ = '1.0.0'

from .config import PatchConfig
from .descriptor import DescriptorPatcher, patch_descriptor
from .error import (
    AmbiguousPatchTargetError,
    ConfigError,
    DescriptorParseError,
    PackageFileError,
    PatchError,
    PatchTargetNotFoundError,
)
from .fs import FileSystem, LocalFileSystem, MemoryFileSystem
from .loader import extract_embedded_binary, LoaderEmbedder, patch_loader, to_data_uri
from .patcher import PackagePatcher, PatchReport

__all__ = (
    'AmbiguousPatchTargetError',
    'ConfigError',
    'DescriptorParseError',
    'DescriptorPatcher',
    'extract_embedded_binary',
    'FileSystem',
    'LoaderEmbedder',
    'LocalFileSystem',
    'MemoryFileSystem',
    'PackageFileError',
    'PackagePatcher',
    'patch_descriptor',
    'patch_loader',
    'PatchConfig',
    'PatchError',
    'PatchReport',
    'PatchTargetNotFoundError',
    'to_data_uri',
)
