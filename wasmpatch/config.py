"""Configuration for patching one package directory."""

from dataclasses import dataclass, field, fields
import logging
from pathlib import Path
import tomllib
from typing import cast, Mapping

from .error import ConfigError
from .name import (
    is_js_identifier,
    is_module_base_name,
    is_scoped,
    validate_package_name,
)


__all__ = ('DEFAULT_CONFIG_FILE', 'PatchConfig')


logger = logging.getLogger('wasmpatch.config')

DEFAULT_CONFIG_FILE = 'wasmpatch.toml'

_REQUIRED = ('module_base_name', 'target_package_name')


@dataclass(frozen=True)
class PatchConfig:
    """
    The package directory to patch, the base name shared by its loader and
    binary, and the name under which the package is going to be published.
    """
    module_base_name: str
    target_package_name: str
    package_root: Path = field(default=Path('pkg'))
    descriptor_name: str = 'package.json'
    init_symbol: str = '__wbg_init'

    def __post_init__(self) -> None:
        if not isinstance(self.package_root, Path):
            object.__setattr__(self, 'package_root', Path(self.package_root))

        problem = validate_package_name(self.target_package_name)
        if problem is not None:
            raise ConfigError(
                f'invalid target package name "{self.target_package_name}": {problem}')
        if not is_scoped(self.target_package_name):
            logger.warning(
                'target package name "%s" is not scoped', self.target_package_name)
        if not is_module_base_name(self.module_base_name):
            raise ConfigError(f'invalid module base name "{self.module_base_name}"')
        if not is_module_base_name(self.descriptor_name):
            raise ConfigError(f'invalid descriptor file name "{self.descriptor_name}"')
        if not is_js_identifier(self.init_symbol):
            raise ConfigError(
                f'initializer symbol "{self.init_symbol}" is not a JavaScript identifier')

    @property
    def descriptor_path(self) -> Path:
        return self.package_root / self.descriptor_name

    @property
    def loader_path(self) -> Path:
        return self.package_root / f'{self.module_base_name}.js'

    @property
    def binary_path(self) -> Path:
        return self.package_root / f'{self.module_base_name}_bg.wasm'

    # ----------------------------------------------------------------------------------

    @classmethod
    def from_mapping(
        cls, values: 'Mapping[str, object]', *, source: 'None | str' = None
    ) -> 'PatchConfig':
        """
        Create a new configuration from the mapping. Keys may be spelled in
        snake case or kebab case. Missing required keys, unknown keys, and
        non-string values are errors.
        """
        where = '' if source is None else f' in "{source}"'
        known = {f.name for f in fields(cls)}

        options: 'dict[str, str | Path]' = {}
        for key, value in values.items():
            name = key.replace('-', '_')
            if name not in known:
                raise ConfigError(f'unknown configuration key "{key}"{where}')
            if not isinstance(value, str):
                raise ConfigError(f'configuration key "{key}"{where} is not a string')
            options[name] = Path(value) if name == 'package_root' else value

        for name in _REQUIRED:
            if name not in options:
                raise ConfigError(
                    f'configuration{where} has no "{name.replace("_", "-")}" entry')

        return cls(**options) # type: ignore[arg-type]

    @staticmethod
    def read_file(path: 'str | Path') -> 'dict[str, object]':
        """
        Read the configuration table from the TOML file. If the file is named
        `pyproject.toml`, the table is `[tool.wasmpatch]`. Otherwise, it is the
        file's top level.
        """
        try:
            with open(path, mode='rb') as file:
                document = cast(dict[str, object], tomllib.load(file))
        except OSError as x:
            raise ConfigError(
                f'unable to read configuration ({x.strerror or x})', path=path) from x
        except tomllib.TOMLDecodeError as x:
            raise ConfigError(f'malformed configuration ({x})', path=path) from x

        if Path(path).name != 'pyproject.toml':
            return document

        tool = document.get('tool', {})
        table = tool.get('wasmpatch', {}) if isinstance(tool, dict) else None
        if not isinstance(table, dict):
            raise ConfigError('"tool.wasmpatch" is not a table', path=path)
        return table

    @classmethod
    def load(
        cls,
        path: 'None | str | Path' = None,
        **overrides: 'None | str | Path',
    ) -> 'PatchConfig':
        """
        Load the configuration from the file and apply the overrides, with
        None values ignored. Without an explicit path, this method reads
        `wasmpatch.toml` in the current directory if it exists.
        """
        values: 'dict[str, object]' = {}
        source = None
        if path is None and Path(DEFAULT_CONFIG_FILE).exists():
            path = DEFAULT_CONFIG_FILE
        if path is not None:
            values.update(cls.read_file(path))
            source = str(path)
            logger.debug('loaded configuration from "%s"', path)

        for key, value in overrides.items():
            if value is not None:
                values[key] = str(value)

        return cls.from_mapping(values, source=source)
