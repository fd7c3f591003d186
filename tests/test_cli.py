from pathlib import Path
import subprocess
import tempfile
from contextlib import redirect_stderr, redirect_stdout
import io
import unittest
from unittest import mock

from bf2wasm import BuildOptions, CellAddressing, build_file, compile_source, derive_output_paths
from bf2wasm.assembler import AssemblerFailed, AssemblerNotFound, Wat2Wasm
from bf2wasm.build import OutputWriteError, SourceReadError
from bf2wasm.cli import EXIT_ASSEMBLER_FAILED, EXIT_ASSEMBLER_MISSING, EXIT_FAILURE, EXIT_OK
from bf2wasm.cli import main as cli_main


def _fake_wat2wasm(returncode: int = 0, stderr: str = ""):
    def run(command, **kwargs):
        if returncode == 0:
            Path(command[3]).write_bytes(b"\x00asm\x01\x00\x00\x00")
        return subprocess.CompletedProcess(command, returncode, stdout="", stderr=stderr)

    return run


class DeriveOutputPathsTests(unittest.TestCase):
    def test_swaps_source_extension(self) -> None:
        paths = derive_output_paths("programs/hello.bf")
        self.assertEqual(paths.wat, Path("programs/hello.wat"))
        self.assertEqual(paths.wasm, Path("programs/hello.wasm"))

    def test_output_overrides_source(self) -> None:
        paths = derive_output_paths("hello.bf", "build/out.wasm")
        self.assertEqual(paths.wat, Path("build/out.wat"))
        self.assertEqual(paths.wasm, Path("build/out.wasm"))

    def test_only_last_extension_is_replaced(self) -> None:
        paths = derive_output_paths("archive.v2.b")
        self.assertEqual(paths.wat, Path("archive.v2.wat"))

    def test_source_without_extension(self) -> None:
        self.assertEqual(derive_output_paths("hello").wasm, Path("hello.wasm"))


class AssemblerTests(unittest.TestCase):
    def test_assemble_invokes_tool(self) -> None:
        with mock.patch("bf2wasm.assembler.subprocess.run", side_effect=_fake_wat2wasm()) as run:
            result = Wat2Wasm("wat2wasm").assemble("a.wat", "a.wasm")
        self.assertEqual(result, Path("a.wasm"))
        self.assertEqual(run.call_args.args[0], ["wat2wasm", "a.wat", "-o", "a.wasm"])

    def test_missing_tool(self) -> None:
        with mock.patch("bf2wasm.assembler.subprocess.run", side_effect=FileNotFoundError("wat2wasm")):
            with self.assertRaises(AssemblerNotFound) as ctx:
                Wat2Wasm("wat2wasm").assemble("a.wat", "a.wasm")
        self.assertEqual(ctx.exception.executable, "wat2wasm")

    def test_failing_tool(self) -> None:
        with mock.patch(
            "bf2wasm.assembler.subprocess.run",
            side_effect=_fake_wat2wasm(returncode=1, stderr="a.wat:3: unexpected token"),
        ):
            with self.assertRaises(AssemblerFailed) as ctx:
                Wat2Wasm().assemble("a.wat", "a.wasm")
        self.assertEqual(ctx.exception.returncode, 1)
        self.assertIn("unexpected token", str(ctx.exception))

    def test_assemble_text_returns_binary(self) -> None:
        with mock.patch("bf2wasm.assembler.subprocess.run", side_effect=_fake_wat2wasm()) as run:
            binary = Wat2Wasm().assemble_text(compile_source("+."))
        self.assertTrue(binary.startswith(b"\x00asm"))
        wat_path = Path(run.call_args.args[0][1])
        self.assertFalse(wat_path.exists())


class BuildFileTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_path = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write_source(self, content: str, name: str = "program.bf") -> Path:
        path = self.tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    def test_wat_only_writes_module(self) -> None:
        source_path = self._write_source("++[->+<].")
        result = build_file(source_path, BuildOptions(wat_only=True))
        self.assertEqual(result.wat_path, self.tmp_path / "program.wat")
        self.assertIsNone(result.wasm_path)
        self.assertEqual(result.wat_path.read_text(encoding="utf-8"), compile_source("++[->+<]."))

    def test_global_addressing_option(self) -> None:
        source_path = self._write_source("+.")
        result = build_file(source_path, BuildOptions(wat_only=True, addressing=CellAddressing.GLOBAL))
        self.assertIn("(global $ptr", result.wat_path.read_text(encoding="utf-8"))

    def test_successful_assembly_removes_wat(self) -> None:
        source_path = self._write_source("+.")
        with mock.patch("bf2wasm.assembler.subprocess.run", side_effect=_fake_wat2wasm()):
            result = build_file(source_path)
        self.assertTrue(result.wat_removed)
        self.assertFalse(result.wat_path.exists())
        self.assertTrue(result.wasm_path.exists())

    def test_keep_wat(self) -> None:
        source_path = self._write_source("+.")
        with mock.patch("bf2wasm.assembler.subprocess.run", side_effect=_fake_wat2wasm()):
            result = build_file(source_path, BuildOptions(keep_wat=True))
        self.assertFalse(result.wat_removed)
        self.assertTrue(result.wat_path.exists())

    def test_assembler_failure_keeps_wat(self) -> None:
        source_path = self._write_source("+.")
        with mock.patch("bf2wasm.assembler.subprocess.run", side_effect=_fake_wat2wasm(returncode=1)):
            with self.assertRaises(AssemblerFailed):
                build_file(source_path)
        wat_path = self.tmp_path / "program.wat"
        self.assertEqual(wat_path.read_text(encoding="utf-8"), compile_source("+."))

    def test_non_utf8_comment_is_ignored(self) -> None:
        source_path = self.tmp_path / "latin1.bf"
        source_path.write_bytes("caf\xe9 +.".encode("latin-1"))
        result = build_file(source_path, BuildOptions(wat_only=True))
        self.assertEqual(result.wat_path.read_text(encoding="utf-8"), compile_source("+."))

    def test_missing_source(self) -> None:
        with self.assertRaises(SourceReadError):
            build_file(self.tmp_path / "missing.bf", BuildOptions(wat_only=True))

    def test_unwritable_output(self) -> None:
        source_path = self._write_source("+.")
        output = self.tmp_path / "no_such_dir" / "out.wasm"
        with self.assertRaises(OutputWriteError):
            build_file(source_path, BuildOptions(output=str(output), wat_only=True))


class CLITests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_path = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write_source(self, content: str, name: str = "program.bf") -> Path:
        path = self.tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    def _run(self, argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            exit_code = cli_main(argv)
        return exit_code, out.getvalue(), err.getvalue()

    def test_cli_emits_wat_file(self) -> None:
        source_path = self._write_source(",[.,]")
        output_path = self.tmp_path / "echo.wasm"
        exit_code, stdout, _ = self._run([str(source_path), "-c", "-o", str(output_path)])
        self.assertEqual(exit_code, EXIT_OK)
        emitted = (self.tmp_path / "echo.wat").read_text(encoding="utf-8")
        self.assertEqual(emitted, compile_source(",[.,]"))
        self.assertIn("echo.wat", stdout)

    def test_cli_global_addressing(self) -> None:
        source_path = self._write_source("+")
        exit_code, _, _ = self._run([str(source_path), "-c", "--addressing", "global"])
        self.assertEqual(exit_code, EXIT_OK)
        emitted = (self.tmp_path / "program.wat").read_text(encoding="utf-8")
        self.assertIn("global.get $ptr", emitted)

    def test_cli_assembles_module(self) -> None:
        source_path = self._write_source("+.")
        with mock.patch("bf2wasm.assembler.subprocess.run", side_effect=_fake_wat2wasm()):
            exit_code, stdout, _ = self._run([str(source_path)])
        self.assertEqual(exit_code, EXIT_OK)
        self.assertIn("Compiled module", stdout)
        self.assertTrue((self.tmp_path / "program.wasm").exists())
        self.assertFalse((self.tmp_path / "program.wat").exists())

    def test_cli_missing_file_errors(self) -> None:
        exit_code, _, stderr = self._run([str(self.tmp_path / "does_not_exist.bf")])
        self.assertEqual(exit_code, EXIT_FAILURE)
        self.assertIn("Source file not found", stderr)

    def test_cli_unbalanced_source_errors(self) -> None:
        source_path = self._write_source("+]")
        exit_code, _, stderr = self._run([str(source_path), "-c"])
        self.assertEqual(exit_code, EXIT_FAILURE)
        self.assertIn("Unmatched ']' at position 1", stderr)
        self.assertFalse((self.tmp_path / "program.wat").exists())

    def test_cli_missing_assembler(self) -> None:
        source_path = self._write_source("+.")
        with mock.patch("bf2wasm.assembler.subprocess.run", side_effect=FileNotFoundError()):
            exit_code, _, stderr = self._run([str(source_path), "--assembler", "no-such-wat2wasm"])
        self.assertEqual(exit_code, EXIT_ASSEMBLER_MISSING)
        self.assertIn("no-such-wat2wasm", stderr)
        self.assertIn("-c flag", stderr)
        self.assertTrue((self.tmp_path / "program.wat").exists())

    def test_cli_failing_assembler(self) -> None:
        source_path = self._write_source("+.")
        with mock.patch(
            "bf2wasm.assembler.subprocess.run",
            side_effect=_fake_wat2wasm(returncode=4, stderr="bad module\n"),
        ):
            exit_code, _, stderr = self._run([str(source_path)])
        self.assertEqual(exit_code, EXIT_ASSEMBLER_FAILED)
        self.assertIn("exit code 4", stderr)
        self.assertIn("bad module", stderr)


if __name__ == "__main__":
    unittest.main()
