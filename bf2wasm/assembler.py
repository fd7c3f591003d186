from __future__ import annotations

import logging
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class AssemblerError(Exception):
    pass


class AssemblerNotFound(AssemblerError):
    def __init__(self, executable: str) -> None:
        super().__init__(f"Unable to run '{executable}'. Is it installed and on your PATH?")
        self.executable = executable


class AssemblerFailed(AssemblerError):
    def __init__(self, executable: str, returncode: int, stderr: str = "") -> None:
        message = f"{executable} exited with status {returncode}"
        if stderr.strip():
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)
        self.executable = executable
        self.returncode = returncode
        self.stderr = stderr


@dataclass
class Wat2Wasm:
    """Runs the external ``wat2wasm`` tool on a module written to disk."""

    executable: str = "wat2wasm"

    def assemble(self, wat_path: PathLike, wasm_path: PathLike) -> Path:
        command = [self.executable, str(wat_path), "-o", str(wasm_path)]
        logger.info("running %s", " ".join(command))
        try:
            completed = subprocess.run(command, capture_output=True, text=True)
        except OSError as exc:
            raise AssemblerNotFound(self.executable) from exc
        if completed.returncode != 0:
            raise AssemblerFailed(self.executable, completed.returncode, completed.stderr)
        return Path(wasm_path)

    def assemble_text(self, module_text: str) -> bytes:
        with tempfile.TemporaryDirectory(prefix="bf2wasm-") as tmp:
            wat_path = Path(tmp) / "module.wat"
            wasm_path = Path(tmp) / "module.wasm"
            wat_path.write_text(module_text, encoding="utf-8")
            self.assemble(wat_path, wasm_path)
            return wasm_path.read_bytes()


__all__ = [
    "AssemblerError",
    "AssemblerFailed",
    "AssemblerNotFound",
    "Wat2Wasm",
]
