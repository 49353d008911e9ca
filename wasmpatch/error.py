from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import PurePath


__all__ = (
    'AmbiguousPatchTargetError',
    'ConfigError',
    'DescriptorParseError',
    'PackageFileError',
    'PatchError',
    'PatchTargetNotFoundError',
)


class PatchError(Exception):
    """The base class of all errors raised while patching a package."""

    def __init__(self, message: str, *, path: 'None | str | PurePath' = None) -> None:
        super().__init__(message)
        self.path = None if path is None else str(path)

    def __str__(self) -> str:
        message = super().__str__()
        return message if self.path is None else f'{self.path}: {message}'


class ConfigError(PatchError):
    pass


class PackageFileError(PatchError):
    """A package file is missing, unreadable, unwritable, or not UTF-8 text."""

    def __init__(
        self,
        operation: str,
        path: 'str | PurePath',
        reason: str,
    ) -> None:
        super().__init__(f'unable to {operation} file ({reason})', path=path)
        self.operation = operation
        self.reason = reason


class DescriptorParseError(PatchError):
    pass


class PatchTargetNotFoundError(PatchError):
    """
    The loader does not contain the default-export marker. For diagnosis, the
    error carries the loader's first and last lines. It also tracks whether
    the loader already embeds a binary, which distinguishes a second
    invocation from a change in the compiler's output format.
    """

    def __init__(
        self,
        marker: str,
        text: str,
        *,
        already_patched: bool = False,
        path: 'None | str | PurePath' = None,
    ) -> None:
        lines = text.splitlines()
        self.marker = marker
        self.first_line = lines[0] if lines else ''
        self.last_line = lines[-1] if lines else ''
        self.already_patched = already_patched

        if already_patched:
            hint = 'loader already embeds its binary'
        else:
            hint = 'loader format may have changed'
        super().__init__(
            f'marker {marker!r} not found ({hint}); '
            f'first line is {self.first_line!r}, last line is {self.last_line!r}',
            path=path,
        )


class AmbiguousPatchTargetError(PatchTargetNotFoundError):
    def __init__(
        self,
        marker: str,
        text: str,
        count: int,
        *,
        path: 'None | str | PurePath' = None,
    ) -> None:
        super().__init__(marker, text, path=path)
        self.count = count
        self.args = (f'marker {marker!r} occurs {count} times instead of once',)
