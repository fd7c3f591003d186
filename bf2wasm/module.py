from __future__ import annotations

from dataclasses import dataclass

from .generator import CellAddressing, Generator


@dataclass(frozen=True)
class ModuleLayout:
    """Import and export names the host runtime binds the module against."""

    memory_module: str = "js"
    memory_field: str = "mem"
    memory_pages: int = 1
    io_module: str = "console"
    put_char_field: str = "putChar"
    get_char_field: str = "getChar"
    export_name: str = "runBrainfuck"


def render_module(
    body: str,
    addressing: CellAddressing = CellAddressing.LOCAL,
    layout: ModuleLayout = ModuleLayout(),
) -> str:
    addressing = CellAddressing(addressing)
    lines = [
        "(module",
        f' (import "{layout.memory_module}" "{layout.memory_field}" (memory {layout.memory_pages}))',
        f' (import "{layout.io_module}" "{layout.put_char_field}" (func $putChar (param i32)))',
        f' (import "{layout.io_module}" "{layout.get_char_field}" (func $getChar (result i32)))',
    ]
    if addressing is CellAddressing.GLOBAL:
        lines.append(" (global $ptr (mut i32) (i32.const 0))")
        signature = " (func $runBrainfuck"
    else:
        signature = " (func $runBrainfuck (local $ptr i32)"
    lines.append("")
    lines.append(f' (export "{layout.export_name}" (func $runBrainfuck))')
    lines.append(signature)
    return "\n".join(lines) + "\n" + body + " )\n)\n"


def compile_source(
    source: str,
    addressing: CellAddressing = CellAddressing.LOCAL,
    layout: ModuleLayout = ModuleLayout(),
) -> str:
    """Translate ``source`` and wrap the body in a complete WAT module."""
    body = Generator(addressing=addressing).translate(source)
    return render_module(body, addressing=addressing, layout=layout)


__all__ = ["ModuleLayout", "compile_source", "render_module"]
