from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from .assembler import AssemblerFailed, AssemblerNotFound
from .build import BuildOptions, OutputWriteError, SourceReadError, build_file
from .generator import CellAddressing, StructureError

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_ASSEMBLER_MISSING = 2
EXIT_ASSEMBLER_FAILED = 3


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Compile Brainfuck to a WebAssembly module")
    parser.add_argument("source", help="Path to Brainfuck source file")
    parser.add_argument(
        "-o",
        "--output",
        help="Output file; its extension is replaced by .wat/.wasm (default: the source path)",
    )
    parser.add_argument(
        "-c",
        "--wat-only",
        action="store_true",
        help="Only emit the .wat text module, don't run wat2wasm",
    )
    parser.add_argument(
        "--keep-wat",
        action="store_true",
        help="Keep the intermediate .wat after a successful wat2wasm run",
    )
    parser.add_argument(
        "--addressing",
        choices=[mode.value for mode in CellAddressing],
        default=CellAddressing.LOCAL.value,
        help="Hold the cell pointer in a function local or a module global (default: local)",
    )
    parser.add_argument(
        "--assembler",
        default="wat2wasm",
        help="wat2wasm executable to invoke (default: wat2wasm)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log build steps to stderr")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    options = BuildOptions(
        output=args.output,
        wat_only=args.wat_only,
        keep_wat=args.keep_wat,
        addressing=CellAddressing(args.addressing),
        assembler=args.assembler,
    )

    try:
        result = build_file(args.source, options)
    except SourceReadError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    except StructureError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    except OutputWriteError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    except AssemblerNotFound as exc:
        print(f"error: {exc}", file=sys.stderr)
        print("If you didn't intend to use wat2wasm, pass the -c flag.", file=sys.stderr)
        return EXIT_ASSEMBLER_MISSING
    except AssemblerFailed as exc:
        print(f"error: wat2wasm failed to compile the .wat file (exit code {exc.returncode})", file=sys.stderr)
        if exc.stderr:
            sys.stderr.write(exc.stderr)
        return EXIT_ASSEMBLER_FAILED

    if result.wasm_path is not None:
        print(f"Compiled module using {args.assembler}: {result.wasm_path}")
    else:
        print(f"Wrote {result.wat_path}")
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
