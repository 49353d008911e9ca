#!.venv/bin/python

# mypy: disallow_any_expr = false

from dataclasses import dataclass
from importlib import import_module
import json
import os
from pathlib import Path
import subprocess
import shutil
import sys
from typing import Callable

from test.console import Console


TEST_MODULES = (
    'test.test_config',
    'test.test_fs',
    'test.test_descriptor',
    'test.test_loader',
    'test.test_patcher',
)

# ======================================================================================


@dataclass
class Options:
    test_runner: str
    console: Console
    module_name: str = ''
    verbose: bool = False

    def make_verbose(self) -> None:
        self.verbose = True
        self.console.verbose = True

    def test_command(self) -> list[str]:
        command = [sys.executable, self.test_runner]
        if self.verbose:
            command.append('-v')
        return command


def run_tests(options: Options) -> int:
    console = options.console
    console.info("Getting started with wasmpatch's test suite...")
    console.detail(f'Running "{sys.executable}"')
    console.detail(f' - Python {sys.version}')

    try:
        import wasmpatch
        from wasmpatch.loader import extract_embedded_binary
    except ImportError:
        console.error('Unable to import wasmpatch')
        sys.exit(1)

    console.detail(f'Testing wasmpatch {wasmpatch.__version__}')

    cwd = Path('.').absolute()
    tmpdir = cwd / 'tmp'

    shutil.rmtree(tmpdir, ignore_errors=True)
    tmpdir.mkdir()

    # ----------------------------------------------------------------------------------

    console.info('Running unit tests...')

    for module in TEST_MODULES:
        console.detail(f'╭──── {module}')
        subprocess.run([*options.test_command(), 'run-test-module', module], check=True)
        console.detail('╰─╼')

    # ----------------------------------------------------------------------------------

    console.info('Patching a freshly built package...')
    from test.test_loader import LOADER

    pkgdir = tmpdir / 'pkg'
    pkgdir.mkdir()
    (pkgdir / 'package.json').write_text('{"module": "fvd_rs.js"}', encoding='utf8')
    (pkgdir / 'fvd_rs.js').write_text(LOADER, encoding='utf8')
    binary = b'\x00asm\x01\x00\x00\x00' + bytes(range(256))
    (pkgdir / 'fvd_rs_bg.wasm').write_bytes(binary)

    env = dict(os.environ, PYTHONPATH=str(cwd))
    tool = [
        sys.executable, '-m', 'wasmpatch',
        '--module', 'fvd_rs',
        '--name', '@elimerl/fvd-rs',
    ]
    subprocess.run(tool, cwd=tmpdir, env=env, check=True)
    console.detail('Patched tmp/pkg')

    # ----------------------------------------------------------------------------------

    console.info('Checking patched descriptor...')
    descriptor = json.loads((pkgdir / 'package.json').read_text(encoding='utf8'))

    err_count = 0
    for key, expected in (
        ('type', 'module'),
        ('main', 'fvd_rs.js'),
        ('name', '@elimerl/fvd-rs'),
        ('module', 'fvd_rs.js'),
    ):
        actual = descriptor.get(key)
        if actual != expected:
            console.detail(f'descriptor.{key} is {actual!r} instead of {expected!r}')
            err_count += 1

    if err_count > 0:
        console.error('Patching of descriptors is broken!')
        sys.exit(1)

    console.detail('Descriptor is an ES module named "@elimerl/fvd-rs"')

    # ----------------------------------------------------------------------------------

    console.info('Comparing embedded binary file to original...')
    loader = (pkgdir / 'fvd_rs.js').read_text(encoding='utf8')
    embedded = extract_embedded_binary(loader)

    if embedded != binary:
        console.detail('Embedded binary in "tmp/pkg/fvd_rs.js" differs from original:')
        for line in loader.splitlines()[-3:]:
            console.detail(f'    {line[:72]!r}')
        console.error('Embedding of binary files is broken!')
        sys.exit(1)

    console.detail('Embedded binary is the same as original')

    # ----------------------------------------------------------------------------------

    console.info('Patching the same package again...')
    completion = subprocess.run(tool, cwd=tmpdir, env=env, capture_output=True, text=True)
    if completion.returncode == 0:
        console.error('Patching an already patched package succeeded!')
        sys.exit(1)
    if (pkgdir / 'fvd_rs.js').read_text(encoding='utf8') != loader:
        console.error('Failed patch modified the loader!')
        sys.exit(1)

    console.detail(completion.stdout.strip())

    # ----------------------------------------------------------------------------------

    console.success('W00t! All tests passed!')

    shutil.rmtree(tmpdir)
    return 0

# ======================================================================================

def collect_tests(module_name: str) -> 'list[Callable[[Console], None]]':
    module = import_module(module_name)
    return [
        getattr(module, key) for key in dir(module)
        if key.startswith('test_') and callable(getattr(module, key))
    ]


def run_module_test(options: Options) -> int:
    console = options.console
    tests = collect_tests(options.module_name)

    failed: list[str] = []
    for test in tests:
        assertions_so_far = console.failed_assertions
        console.detail(f'├─ {test.__name__}')
        with console.new_prefix('│   '):
            try:
                test(console)
            except Exception as x:
                console.exception(x)
                failed.append(test.__name__)
                continue
        if console.failed_assertions > assertions_so_far:
            failed.append(test.__name__)

    if failed:
        console.error(f'{len(failed)}/{len(tests)} tests failed: {", ".join(failed)}')
    else:
        console.trace(f'{len(tests)} tests passed')
    return int(bool(failed))

# --------------------------------------------------------------------------------------

def select_command(options: Options, args: 'list[str]') -> 'Callable[[Options], int]':
    command: 'Callable[[Options], int]' = run_tests
    pending = list(args)
    while pending:
        arg = pending.pop(0)
        if arg == '-v':
            options.make_verbose()
        elif arg == 'run-test-module':
            if not pending or pending[0] == '-v':
                raise SystemExit('"run-test-module" requires a module name')
            command = run_module_test
            options.module_name = pending.pop(0)
        else:
            raise SystemExit(f'unrecognized command line argument "{arg}"')
    return command


def main() -> None:
    options = Options(sys.argv[0], Console(sys.stdout))
    console = options.console

    try:
        command = select_command(options, sys.argv[1:])
        code: object = command(options)
    except SystemExit as x:
        code = x.code
    except subprocess.CalledProcessError as x:
        program = Path(x.cmd[0]).name
        console.error(f'{program} {" ".join(x.cmd[1:])} exited with status {x.returncode}')
        code = 1
    except Exception as x:
        console.exception(x)
        code = 1

    if isinstance(code, str):
        console.error(code)
        code = 1
    sys.exit(code)


if __name__ == '__main__':
    main()
