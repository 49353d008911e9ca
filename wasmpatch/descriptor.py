import json
import logging
from typing import TYPE_CHECKING

from .error import DescriptorParseError

if TYPE_CHECKING:
    from .config import PatchConfig
    from .fs import FileSystem


__all__ = ('DescriptorPatcher', 'patch_descriptor')


logger = logging.getLogger('wasmpatch.descriptor')

_INDENT = 4


def load_descriptor(text: str, *, source: 'None | str' = None) -> 'dict[str, object]':
    def reject_constant(token: str) -> object:
        raise DescriptorParseError(
            f'descriptor is not valid JSON ({token} is not a JSON value)', path=source)

    try:
        descriptor = json.loads(text, parse_constant=reject_constant)
    except json.JSONDecodeError as x:
        raise DescriptorParseError(
            f'descriptor is not valid JSON ({x})', path=source) from x
    if not isinstance(descriptor, dict):
        raise DescriptorParseError(
            f'descriptor is a JSON {type(descriptor).__name__}, not an object',
            path=source)
    return descriptor


def dump_descriptor(descriptor: 'dict[str, object]') -> str:
    return json.dumps(descriptor, indent=_INDENT, ensure_ascii=False) + '\n'


def patch_descriptor(
    text: str,
    target_name: str,
    *,
    source: 'None | str' = None,
) -> str:
    """
    Patch the descriptor text so that the package is an ES module published
    under the target name. Both entry points resolve to the original `module`,
    all other fields are passed through in their original order, and the
    result is serialized with four-space indentation and a trailing newline.
    A descriptor without `module` loses its `main` entry point as well.
    """
    descriptor = load_descriptor(text, source=source)

    # Read before write: main aliases the module entry point as it was.
    has_module = 'module' in descriptor
    module = descriptor.get('module')

    descriptor['type'] = 'module'
    if has_module:
        descriptor['main'] = module
    else:
        logger.warning('descriptor has no "module" entry point, dropping "main"')
        descriptor.pop('main', None)
    descriptor['name'] = target_name
    return dump_descriptor(descriptor)


def changed_fields(before: str, after: str) -> 'list[str]':
    old = json.loads(before)
    new = json.loads(after)
    changed = [key for key in new if key not in old or old[key] != new[key]]
    return changed + [key for key in old if key not in new]


class DescriptorPatcher:
    """Patch the package descriptor in place."""

    def __init__(self, config: 'PatchConfig', fs: 'FileSystem') -> None:
        self._config = config
        self._fs = fs

    def __repr__(self) -> str:
        return f'<wasmpatch-descriptor {self._config.descriptor_path}>'

    def run(self) -> bool:
        """Patch the descriptor and return whether its text changed."""
        path = self._config.descriptor_path
        text = self._fs.read_text(path)
        patched = patch_descriptor(
            text, self._config.target_package_name, source=str(path))
        self._fs.write_text(path, patched)

        fields = changed_fields(text, patched)
        if fields:
            logger.info('patched "%s" fields in "%s"', '", "'.join(fields), path)
        else:
            logger.info('descriptor "%s" is already patched', path)
        return patched != text
