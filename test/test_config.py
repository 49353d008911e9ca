from pathlib import Path
import tempfile

from .console import Console
from wasmpatch.config import PatchConfig
from wasmpatch.error import ConfigError
from wasmpatch.name import (
    is_js_identifier,
    is_module_base_name,
    is_scoped,
    validate_package_name,
)


def test_package_names(console: Console) -> None:
    for name in ('@elimerl/fvd-rs', 'fvd-rs', 'fvd_rs', '@a/b.c~d', 'x'):
        console.assert_eq(validate_package_name(name), None)

    for name in (
        '', 'FVD-rs', '.fvd', '_fvd', '@elimerl/', '@/fvd', 'fvd rs', 'fvd/rs',
        '@elimerl/fvd/rs', 'fvd%rs', 'a' * 215,
    ):
        console.assert_op(validate_package_name, name)

    console.assert_true(is_scoped('@elimerl/fvd-rs'))
    console.assert_eq(is_scoped('fvd-rs'), False)


def test_module_names_and_symbols(console: Console) -> None:
    for name in ('fvd_rs', 'package.json', 'my-module'):
        console.assert_true(is_module_base_name(name))
    for name in ('', '.', '..', 'pkg/fvd_rs', 'pkg\\fvd_rs'):
        console.assert_eq(is_module_base_name(name), False)

    for symbol in ('__wbg_init', 'init', '$init', '_1'):
        console.assert_true(is_js_identifier(symbol))
    for symbol in ('', '1init', 'wbg-init', 'init;'):
        console.assert_eq(is_js_identifier(symbol), False)


def test_config_paths(console: Console) -> None:
    config = PatchConfig(module_base_name='fvd_rs', target_package_name='@elimerl/fvd-rs')
    console.assert_eq(config.package_root, Path('pkg'))
    console.assert_eq(config.descriptor_path, Path('pkg') / 'package.json')
    console.assert_eq(config.loader_path, Path('pkg') / 'fvd_rs.js')
    console.assert_eq(config.binary_path, Path('pkg') / 'fvd_rs_bg.wasm')
    console.assert_eq(config.init_symbol, '__wbg_init')

    other = PatchConfig(
        module_base_name='spam', target_package_name='@can/spam',
        package_root='out/dist', descriptor_name='manifest.json') # type: ignore[arg-type]
    console.assert_eq(other.package_root, Path('out/dist'))
    console.assert_eq(other.descriptor_path, Path('out/dist/manifest.json'))
    console.assert_eq(other.binary_path, Path('out/dist/spam_bg.wasm'))


def test_config_validation(console: Console) -> None:
    for kwargs in (
        dict(module_base_name='fvd_rs', target_package_name='Not Valid'),
        dict(module_base_name='pkg/fvd_rs', target_package_name='@elimerl/fvd-rs'),
        dict(module_base_name='', target_package_name='@elimerl/fvd-rs'),
        dict(module_base_name='fvd_rs', target_package_name='@elimerl/fvd-rs',
             init_symbol='wbg-init'),
        dict(module_base_name='fvd_rs', target_package_name='@elimerl/fvd-rs',
             descriptor_name='../package.json'),
    ):
        console.assert_raises(ConfigError, PatchConfig, **kwargs)


def test_from_mapping(console: Console) -> None:
    config = PatchConfig.from_mapping({
        'package-root': 'build/pkg',
        'module-base-name': 'fvd_rs',
        'target_package_name': '@elimerl/fvd-rs',
        'init-symbol': 'init',
    })
    console.assert_eq(config.package_root, Path('build/pkg'))
    console.assert_eq(config.module_base_name, 'fvd_rs')
    console.assert_eq(config.target_package_name, '@elimerl/fvd-rs')
    console.assert_eq(config.init_symbol, 'init')

    x = console.assert_raises(
        ConfigError, PatchConfig.from_mapping, {'module-base-name': 'fvd_rs'})
    console.assert_op('contains', str(x), 'target-package-name')

    x = console.assert_raises(ConfigError, PatchConfig.from_mapping, {
        'module-base-name': 'fvd_rs',
        'target-package-name': '@elimerl/fvd-rs',
        'scope': '@elimerl',
    })
    console.assert_op('contains', str(x), 'scope')

    console.assert_raises(ConfigError, PatchConfig.from_mapping, {
        'module-base-name': 'fvd_rs',
        'target-package-name': 665,
    })


def test_load(console: Console) -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / 'wasmpatch.toml'
        path.write_text(
            'package-root = "pkg"\n'
            'module-base-name = "fvd_rs"\n'
            'target-package-name = "@elimerl/fvd-rs"\n',
            encoding='utf8',
        )

        config = PatchConfig.load(path)
        console.assert_eq(config.module_base_name, 'fvd_rs')
        console.assert_eq(config.target_package_name, '@elimerl/fvd-rs')

        config = PatchConfig.load(
            path, package_root=Path(tmpdir), target_package_name='@other/fvd-rs',
            init_symbol=None)
        console.assert_eq(config.package_root, Path(tmpdir))
        console.assert_eq(config.target_package_name, '@other/fvd-rs')
        console.assert_eq(config.init_symbol, '__wbg_init')

        pyproject = Path(tmpdir) / 'pyproject.toml'
        pyproject.write_text(
            '[project]\n'
            'name = "fvd-tools"\n'
            '\n'
            '[tool.wasmpatch]\n'
            'module-base-name = "spam"\n'
            'target-package-name = "@can/spam"\n',
            encoding='utf8',
        )
        config = PatchConfig.load(pyproject)
        console.assert_eq(config.module_base_name, 'spam')
        console.assert_eq(config.target_package_name, '@can/spam')

        broken = Path(tmpdir) / 'broken.toml'
        broken.write_text('module-base-name = \n', encoding='utf8')
        x = console.assert_raises(ConfigError, PatchConfig.load, broken)
        console.assert_op('contains', str(x), 'malformed')

        missing = Path(tmpdir) / 'missing.toml'
        console.assert_raises(ConfigError, PatchConfig.load, missing)

        config = PatchConfig.load(
            None, module_base_name='fvd_rs', target_package_name='@elimerl/fvd-rs')
        console.assert_eq(config.package_root, Path('pkg'))
