from .assembler import AssemblerError, AssemblerFailed, AssemblerNotFound, Wat2Wasm
from .build import BuildOptions, BuildResult, build_file, derive_output_paths
from .generator import CellAddressing, Generator, StructureError, translate
from .module import ModuleLayout, compile_source, render_module

__all__ = [
    "AssemblerError",
    "AssemblerFailed",
    "AssemblerNotFound",
    "BuildOptions",
    "BuildResult",
    "CellAddressing",
    "Generator",
    "ModuleLayout",
    "StructureError",
    "Wat2Wasm",
    "build_file",
    "compile_source",
    "derive_output_paths",
    "render_module",
    "translate",
]
