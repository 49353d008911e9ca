import logging
from typing import NamedTuple, TYPE_CHECKING

from .descriptor import DescriptorPatcher
from .fs import LocalFileSystem
from .loader import LoaderEmbedder

if TYPE_CHECKING:
    from .config import PatchConfig
    from .fs import FileSystem


__all__ = ('PackagePatcher', 'PatchReport')


logger = logging.getLogger('wasmpatch.patcher')


class PatchReport(NamedTuple):
    descriptor_changed: bool
    binary_size: int
    data_uri_length: int


class PackagePatcher:
    """
    Class to make a wasm-pack package self-contained and publishable under
    another name. It first patches the package descriptor and then embeds the
    binary into the loader module. Both steps rewrite their files in place. The
    first error aborts the run, so the loader is left alone if the descriptor
    cannot be patched.
    """

    def __init__(
        self,
        config: 'PatchConfig',
        fs: 'None | FileSystem' = None,
    ) -> None:
        self._config = config
        self._fs: 'FileSystem' = LocalFileSystem() if fs is None else fs

    def __repr__(self) -> str:
        return f'<wasmpatch {self._config.package_root}>'

    def run(self) -> PatchReport:
        logger.info('patching package "%s"', self._config.package_root)
        descriptor_changed = DescriptorPatcher(self._config, self._fs).run()
        embedding = LoaderEmbedder(self._config, self._fs).run()

        logger.info(
            'package "%s" is self-contained and named "%s"',
            self._config.package_root, self._config.target_package_name)
        return PatchReport(
            descriptor_changed, embedding.binary_size, embedding.data_uri_length)
