from argparse import ArgumentParser, HelpFormatter, RawTextHelpFormatter
from dataclasses import dataclass
import logging
import os
import sys
from textwrap import dedent
import traceback

from .config import PatchConfig
from .patcher import PackagePatcher


def add_config_arguments(parser: ArgumentParser) -> None:
    parser.add_argument(
        '-c', '--config',
        metavar='FILENAME',
        help='read configuration from this TOML file;\n'
        'defaults to "wasmpatch.toml" if it exists')
    parser.add_argument(
        '-r', '--root',
        metavar='PKGROOT',
        help='patch the package in this directory;\ndefaults to "pkg"')
    parser.add_argument(
        '-m', '--module',
        metavar='BASENAME',
        help='use this base name for loader "BASENAME.js"\n'
        'and binary "BASENAME_bg.wasm"')
    parser.add_argument(
        '-n', '--name',
        metavar='PKGNAME',
        help='publish the package under this name')
    parser.add_argument(
        '-d', '--descriptor',
        metavar='FILENAME',
        help='use this descriptor file name;\ndefaults to "package.json"')
    parser.add_argument(
        '-s', '--init-symbol',
        metavar='SYMBOL',
        help="the loader's initializer function;\ndefaults to \"__wbg_init\"")
    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='enable verbose output; repeat for debug output')


def parser() -> ArgumentParser:
    try:
        width = min(os.get_terminal_size()[0], 70)
    except OSError:
        width = 70

    def width_limited_formatter(prog: str) -> HelpFormatter:
        return RawTextHelpFormatter(prog, width=width)

    parser = ArgumentParser('wasmpatch',
        description=dedent("""
            Make a package built by wasm-pack self-contained and publishable
            under another name.

            wasmpatch rewrites two files of the package in place. First, it
            updates the package.json descriptor, marking the package as an ES
            module, pointing "main" at the same file as "module", and renaming
            the package. Second, it replaces the loader module's default
            export of its initializer with a function that passes the
            initializer the WebAssembly binary as a base64 data URI. As a
            result, the package no longer fetches its "_bg.wasm" file at
            runtime.

            Running wasmpatch on an already patched package fails, since the
            loader's default export is gone. Options override the entries of
            the configuration file, which uses the long option names as keys
            ("root" is spelled "package-root", "module" is spelled
            "module-base-name", and "name" is spelled "target-package-name").
        """),
        formatter_class=width_limited_formatter)
    add_config_arguments(parser)
    return parser


@dataclass
class ToolOptions:
    config: 'None | str' = None
    root: 'None | str' = None
    module: 'None | str' = None
    name: 'None | str' = None
    descriptor: 'None | str' = None
    init_symbol: 'None | str' = None
    verbose: int = 0

    def configure_logging(self) -> None:
        if self.verbose >= 2:
            level = logging.DEBUG
        elif self.verbose == 1:
            level = logging.INFO
        else:
            level = logging.WARNING
        logging.basicConfig(level=level, format='%(levelname)s: %(message)s')

    def load_config(self) -> PatchConfig:
        return PatchConfig.load(
            self.config,
            package_root=self.root,
            module_base_name=self.module,
            target_package_name=self.name,
            descriptor_name=self.descriptor,
            init_symbol=self.init_symbol,
        )


def main() -> None:
    options = parser().parse_args(namespace=ToolOptions())
    options.configure_logging()

    try:
        PackagePatcher(options.load_config()).run()
    except Exception as x:
        if options.verbose:
            traceback.print_exception(x)
        else:
            print(f'Error: {x}')
        sys.exit(1)


if __name__ == '__main__':
    main()
