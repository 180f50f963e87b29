"""
Command line entry point: `jinko [options] file`.

Author: xwest
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from colorama import Fore, Style, just_fix_windows_console

from . import __version__
from .config import JinkoConfig
from .errors import JinkoError, QuitRequest
from .parser.parser import parse_file
from .interpreter import Interpreter, FileLoader

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jinko",
        description="Parse and run jinko programs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    jinko program.jk               # Run a program, exit with its value
    jinko --check program.jk       # Only check that it parses
    jinko --print program.jk       # Print the parsed program
    jinko --test program.jk        # Run its test declarations
        """
    )

    parser.add_argument("file", help="jinko source file")
    parser.add_argument("--print", dest="print_ast", action="store_true",
                        help="Print the parsed program")
    parser.add_argument("--check", action="store_true",
                        help="Parse without executing")
    parser.add_argument("--test", action="store_true",
                        help="Run test declarations instead of the program value")
    parser.add_argument("--debug", action="store_true",
                        help="Log parser and interpreter activity")
    parser.add_argument("--chained-method-calls", action="store_true",
                        help="Accept a.b().c() as nested method calls")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def report(error: JinkoError, stream: TextIO):
    """Write a diagnostic, coloured when the stream is a terminal."""
    text = str(error.diagnostic).rstrip("\n")
    if stream.isatty():
        text = f"{Fore.RED}{Style.BRIGHT}{text}{Style.RESET_ALL}"
    print(text, file=stream)


def _exit_code(value) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the command line.

    Returns:
        The process exit code: the program's integer value, 1 on errors
    """
    args = build_parser().parse_args(argv)
    just_fix_windows_console()

    try:
        config = JinkoConfig.from_env(
            chained_method_calls=True if args.chained_method_calls else None,
            log_level="DEBUG" if args.debug else None,
        )
    except ValueError as error:
        print(f"jinko: invalid configuration: {error}", file=sys.stderr)
        return 2

    logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")

    path = Path(args.file)
    try:
        root = parse_file(path, config)
    except OSError as error:
        print(f"jinko: cannot read {path}: {error.strerror or error}", file=sys.stderr)
        return 1
    except JinkoError as error:
        report(error, sys.stderr)
        return 1

    if args.print_ast:
        print(root.print())
    if args.check:
        return 0

    interpreter = Interpreter(config, FileLoader(path.parent, config))
    try:
        value = interpreter.execute(root)
        if args.test:
            return _run_tests(interpreter)
    except QuitRequest as request:
        logger.debug("quit requested with exit code %d", request.exit_code)
        return request.exit_code
    except JinkoError as error:
        report(error, sys.stderr)
        return 1

    return _exit_code(value)


def _run_tests(interpreter: Interpreter) -> int:
    results = interpreter.run_tests()
    for result in results:
        if sys.stdout.isatty():
            colour = Fore.GREEN if result.passed else Fore.RED
            print(f"{colour}{result}{Style.RESET_ALL}")
        else:
            print(result)
        if result.error is not None:
            report(result.error, sys.stderr)

    failed = sum(1 for result in results if not result.passed)
    print(f"{len(results) - failed} passed, {failed} failed")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
