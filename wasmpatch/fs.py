"""
The file system capability. Patchers never touch the file system directly but
go through an object implementing the `FileSystem` protocol, so that tests can
substitute an in-memory file system for the real one.
"""

import logging
import os
from pathlib import Path, PurePath, PurePosixPath
import stat
import tempfile
from typing import Protocol

from .error import PackageFileError


__all__ = ('FileSystem', 'LocalFileSystem', 'MemoryFileSystem')


logger = logging.getLogger('wasmpatch.fs')


class FileSystem(Protocol):
    def read_text(self, path: 'str | PurePath') -> str:
        ...

    def read_binary(self, path: 'str | PurePath') -> bytes:
        ...

    def write_text(self, path: 'str | PurePath', text: str) -> None:
        ...


# --------------------------------------------------------------------------------------


class LocalFileSystem:
    """The real file system. All text is UTF-8 and all writes are atomic."""

    def read_text(self, path: 'str | PurePath') -> str:
        data = self.read_binary(path)
        try:
            return data.decode('utf8')
        except UnicodeDecodeError as x:
            raise PackageFileError('decode', path, str(x)) from x

    def read_binary(self, path: 'str | PurePath') -> bytes:
        try:
            data = Path(path).read_bytes()
        except OSError as x:
            raise PackageFileError('read', path, x.strerror or str(x)) from x
        logger.debug('read %d bytes from "%s"', len(data), path)
        return data

    def write_text(self, path: 'str | PurePath', text: str) -> None:
        # Write a sibling temporary file and rename it over the target. The
        # rename is atomic, so the target is either fully rewritten or untouched.
        target = Path(path)
        data = text.encode('utf8')

        try:
            mode = stat.S_IMODE(target.stat().st_mode)
        except FileNotFoundError:
            mode = None
        except OSError as x:
            raise PackageFileError('write', path, x.strerror or str(x)) from x

        try:
            fd, tmpname = tempfile.mkstemp(
                prefix=f'.{target.name}.', suffix='.tmp', dir=target.parent)
        except OSError as x:
            raise PackageFileError('write', path, x.strerror or str(x)) from x

        try:
            with os.fdopen(fd, mode='wb') as file:
                file.write(data)
            if mode is not None:
                os.chmod(tmpname, mode)
            os.replace(tmpname, target)
        except OSError as x:
            try:
                os.unlink(tmpname)
            except FileNotFoundError:
                pass
            raise PackageFileError('write', path, x.strerror or str(x)) from x

        logger.debug('wrote %d bytes to "%s"', len(data), path)


# --------------------------------------------------------------------------------------


class MemoryFileSystem:
    """
    An in-memory file system. Paths are normalized to POSIX paths, so that
    `pkg/package.json` and `PurePosixPath('pkg') / 'package.json'` name the
    same file.
    """

    def __init__(self, files: 'None | dict[str, bytes | str]' = None) -> None:
        self._files: 'dict[PurePosixPath, bytes]' = {}
        for path, content in (files or {}).items():
            self.put(path, content)
        self.writes = 0

    def __repr__(self) -> str:
        return f'<memory-fs with {len(self._files)} files>'

    def __contains__(self, path: 'str | PurePath') -> bool:
        return self._key(path) in self._files

    @staticmethod
    def _key(path: 'str | PurePath') -> PurePosixPath:
        return PurePosixPath(PurePath(path).as_posix())

    def put(self, path: 'str | PurePath', content: 'bytes | str') -> None:
        if isinstance(content, str):
            content = content.encode('utf8')
        self._files[self._key(path)] = bytes(content)

    def get(self, path: 'str | PurePath') -> 'None | bytes':
        return self._files.get(self._key(path))

    def read_text(self, path: 'str | PurePath') -> str:
        data = self.read_binary(path)
        try:
            return data.decode('utf8')
        except UnicodeDecodeError as x:
            raise PackageFileError('decode', path, str(x)) from x

    def read_binary(self, path: 'str | PurePath') -> bytes:
        data = self._files.get(self._key(path))
        if data is None:
            raise PackageFileError('read', path, 'No such file or directory')
        return data

    def write_text(self, path: 'str | PurePath', text: str) -> None:
        self._files[self._key(path)] = text.encode('utf8')
        self.writes += 1
