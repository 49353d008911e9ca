from argparse import ArgumentParser
import sys
from typing import NamedTuple, TYPE_CHECKING

from wasmpatch.descriptor import load_descriptor
from wasmpatch.error import PackageFileError, PatchError
from wasmpatch.fs import LocalFileSystem
from wasmpatch.loader import extract_embedded_binary, loader_marker

if TYPE_CHECKING:
    from wasmpatch.config import PatchConfig
    from wasmpatch.fs import FileSystem


class PackageStatus(NamedTuple):
    descriptor_problems: 'tuple[str, ...]'
    has_marker: bool
    embedded_size: 'None | int'
    binary_size: 'None | int'
    binary_matches: 'None | bool'

    @property
    def is_patched(self) -> bool:
        return (
            not self.descriptor_problems
            and not self.has_marker
            and self.embedded_size is not None
            and self.binary_matches is not False
        )


def check_descriptor(descriptor: 'dict[str, object]', target_name: str) -> 'list[str]':
    problems = []
    if descriptor.get('type') != 'module':
        problems.append(f'"type" is {descriptor.get("type")!r}, not "module"')
    if 'module' not in descriptor:
        if 'main' in descriptor:
            problems.append('"main" is present without "module"')
    elif descriptor.get('main') != descriptor['module']:
        problems.append(
            f'"main" is {descriptor.get("main")!r}, not {descriptor["module"]!r}')
    if descriptor.get('name') != target_name:
        problems.append(f'"name" is {descriptor.get("name")!r}, not {target_name!r}')
    return problems


def inspect_package(config: 'PatchConfig', fs: 'FileSystem') -> PackageStatus:
    """
    Determine whether the package has been patched. The binary file is
    optional, since a self-contained package does not need to ship it.
    """
    path = config.descriptor_path
    descriptor = load_descriptor(fs.read_text(path), source=str(path))
    problems = check_descriptor(descriptor, config.target_package_name)

    loader = fs.read_text(config.loader_path)
    has_marker = loader_marker(config.init_symbol) in loader
    embedded = extract_embedded_binary(loader, config.init_symbol)

    try:
        binary: 'None | bytes' = fs.read_binary(config.binary_path)
    except PackageFileError:
        binary = None

    if embedded is None or binary is None:
        matches = None
    else:
        matches = embedded == binary

    return PackageStatus(
        tuple(problems),
        has_marker,
        None if embedded is None else len(embedded),
        None if binary is None else len(binary),
        matches,
    )


def print_status(config: 'PatchConfig', status: PackageStatus) -> None:
    print(f'package "{config.package_root}" for "{config.target_package_name}"')
    if status.descriptor_problems:
        for problem in status.descriptor_problems:
            print(f'    descriptor: {problem}')
    else:
        print('    descriptor: patched')

    if status.has_marker:
        print(f'    loader: still contains "{loader_marker(config.init_symbol)}"')
    if status.embedded_size is None:
        print('    loader: embeds no binary')
    else:
        print(f'    loader: embeds {status.embedded_size} bytes')

    if status.binary_size is None:
        print(f'    binary: "{config.binary_path}" is absent')
    elif status.binary_matches is False:
        print(f'    binary: "{config.binary_path}" differs from embedded binary')
    else:
        print(f'    binary: {status.binary_size} bytes')


if __name__ == '__main__':
    from wasmpatch.__main__ import add_config_arguments, ToolOptions

    parser = ArgumentParser(
        'wasmpatch.debug', description='Check whether a package has been patched.')
    add_config_arguments(parser)
    options = parser.parse_args(namespace=ToolOptions())

    try:
        config = options.load_config()
        status = inspect_package(config, LocalFileSystem())
    except PatchError as x:
        print(f'Error: {x}')
        sys.exit(1)

    print_status(config, status)
    sys.exit(0 if status.is_patched else 1)
