from __future__ import annotations

import argparse
import sys
from typing import Optional

from bf2wasm.assembler import Wat2Wasm

from .app import create_app


try:
    import uvicorn
except ModuleNotFoundError as exc:  # pragma: no cover - import failure path
    uvicorn = None
    _IMPORT_ERROR = exc
else:
    _IMPORT_ERROR = None

APP_FACTORY = "bf2wasm.webui.app:create_app"


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run the bf2wasm compile server")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on (default: 8000)")
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload (development only; uses the default wat2wasm)",
    )
    parser.add_argument(
        "--assembler",
        default="wat2wasm",
        help="wat2wasm executable used for /module.wasm (default: wat2wasm)",
    )
    args = parser.parse_args(argv)

    if uvicorn is None:
        message = "uvicorn is required to run the bf2wasm compile server"
        if _IMPORT_ERROR is not None:
            message = f"{message}: {_IMPORT_ERROR}"
        print(message, file=sys.stderr)
        return 1

    if args.reload:
        if args.assembler != "wat2wasm":
            print("--assembler cannot be combined with --reload", file=sys.stderr)
            return 1
        # the reloader re-imports the app, so it needs an import string
        uvicorn.run(APP_FACTORY, factory=True, host=args.host, port=args.port, reload=True)
        return 0

    app = create_app(assembler=Wat2Wasm(args.assembler))
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
