from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .assembler import Wat2Wasm
from .generator import CellAddressing
from .module import compile_source

logger = logging.getLogger(__name__)


class SourceReadError(Exception):
    pass


class OutputWriteError(Exception):
    pass


@dataclass(frozen=True)
class OutputPaths:
    wat: Path
    wasm: Path


@dataclass
class BuildOptions:
    output: Optional[str] = None
    wat_only: bool = False
    keep_wat: bool = False
    addressing: CellAddressing = CellAddressing.LOCAL
    assembler: str = "wat2wasm"


@dataclass
class BuildResult:
    wat_path: Path
    wasm_path: Optional[Path]
    wat_removed: bool


def derive_output_paths(source: Union[str, Path], output: Optional[Union[str, Path]] = None) -> OutputPaths:
    """Swap the extension of ``output`` (or ``source``) for ``.wat``/``.wasm``."""
    stem = Path(output if output else source).with_suffix("")
    return OutputPaths(
        wat=stem.with_name(stem.name + ".wat"),
        wasm=stem.with_name(stem.name + ".wasm"),
    )


def _read_source(path: Path) -> str:
    try:
        return path.read_bytes().decode("utf-8", errors="replace")
    except FileNotFoundError as exc:
        raise SourceReadError(f"Source file not found: {path}") from exc
    except OSError as exc:
        raise SourceReadError(f"Failed to read {path}: {exc}") from exc


def _write_output(path: Path, data: str) -> None:
    try:
        path.write_text(data, encoding="utf-8")
    except OSError as exc:
        raise OutputWriteError(f"Unable to write {path}: {exc}") from exc


def build_file(source: Union[str, Path], options: Optional[BuildOptions] = None) -> BuildResult:
    options = options or BuildOptions()
    source_path = Path(source)
    paths = derive_output_paths(source_path, options.output)

    source_text = _read_source(source_path)
    logger.info("read %d characters from %s", len(source_text), source_path)

    module_text = compile_source(source_text, addressing=options.addressing)
    _write_output(paths.wat, module_text)
    logger.info("wrote %s", paths.wat)

    if options.wat_only:
        return BuildResult(wat_path=paths.wat, wasm_path=None, wat_removed=False)

    # assembler errors leave the written .wat in place
    Wat2Wasm(options.assembler).assemble(paths.wat, paths.wasm)
    logger.info("assembled %s", paths.wasm)

    removed = False
    if not options.keep_wat:
        try:
            paths.wat.unlink()
            removed = True
        except OSError as exc:
            logger.warning("could not delete intermediate %s: %s", paths.wat, exc)
    return BuildResult(wat_path=paths.wat, wasm_path=paths.wasm, wat_removed=removed)


__all__ = [
    "BuildOptions",
    "BuildResult",
    "OutputPaths",
    "OutputWriteError",
    "SourceReadError",
    "build_file",
    "derive_output_paths",
]
