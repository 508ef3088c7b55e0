import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

from haifa_bf.cli import MISSING_SOURCE_MESSAGE, main

PRINT_A = "++++++++[>++++++++<-]>+."


class TestCLI(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmpdir.cleanup)

    def write_source(self, text, name="prog.bf"):
        path = os.path.join(self._tmpdir.name, name)
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(text)
        return path

    def run_main(self, argv, stdin=""):
        stdout_buffer = io.StringIO()
        stderr_buffer = io.StringIO()
        with mock.patch("sys.stdin", io.StringIO(stdin)):
            with redirect_stdout(stdout_buffer), redirect_stderr(stderr_buffer):
                exit_code = main(argv)
        return exit_code, stdout_buffer.getvalue(), stderr_buffer.getvalue()

    def test_requires_source_argument(self):
        exit_code, out, _ = self.run_main([])
        self.assertEqual(exit_code, 1)
        self.assertEqual(out.strip(), MISSING_SOURCE_MESSAGE)

    def test_reports_missing_file(self):
        missing = os.path.join(self._tmpdir.name, "nope.bf")
        exit_code, out, _ = self.run_main([missing])
        self.assertEqual(exit_code, 1)
        self.assertEqual(out.strip(), "Unable to find the file!")

    def test_runs_program_and_reports_bytes_read(self):
        path = self.write_source(PRINT_A)
        exit_code, out, _ = self.run_main([path])
        self.assertEqual(exit_code, 0)
        self.assertEqual(out, f"{len(PRINT_A)} bytes read.\nA")

    def test_quiet_suppresses_byte_count(self):
        path = self.write_source(PRINT_A)
        exit_code, out, _ = self.run_main([path, "-q"])
        self.assertEqual(exit_code, 0)
        self.assertEqual(out, "A")

    def test_unbalanced_program_fails(self):
        path = self.write_source("[[+]")
        exit_code, out, _ = self.run_main([path])
        self.assertEqual(exit_code, 1)
        self.assertNotIn("bytes read", out)
        self.assertIn("unbalanced number of '[' and ']'", out)

    def test_unreadable_source_reports_os_error(self):
        exit_code, out, err = self.run_main([self._tmpdir.name])
        self.assertEqual(exit_code, 1)
        self.assertNotIn("bytes read", out)
        self.assertIn("pybf: ", err)

    def test_reads_from_stdin(self):
        path = self.write_source(",[.,]")
        exit_code, out, _ = self.run_main([path, "-q", "--eof", "zero"], stdin="hey")
        self.assertEqual(exit_code, 0)
        self.assertEqual(out, "hey")

    def test_reads_from_input_file(self):
        path = self.write_source(",[.,]")
        data_path = os.path.join(self._tmpdir.name, "input.bin")
        with open(data_path, "wb") as fh:
            fh.write(b"file")
        exit_code, out, _ = self.run_main([path, "-q", "--eof", "zero", "--input", data_path])
        self.assertEqual(exit_code, 0)
        self.assertEqual(out, "file")

    def test_step_limit_reports_error(self):
        path = self.write_source("+[]")
        exit_code, _, err = self.run_main([path, "-q", "--max-steps", "100"])
        self.assertEqual(exit_code, 1)
        self.assertIn("pybf: step limit of 100 instructions exceeded", err)

    def test_trace_and_dump_go_to_stderr(self):
        path = self.write_source("+>++")
        exit_code, out, err = self.run_main([path, "-q", "--trace", "--dump"])
        self.assertEqual(exit_code, 0)
        self.assertEqual(out, "")
        self.assertIn("#1 pc=0 + INC_VALUE dp=0 cell=1", err)
        self.assertIn("#4 pc=3 + INC_VALUE dp=1 cell=2", err)
        self.assertIn("tape@0:  001 [002]", err)

    def test_tape_size_option(self):
        path = self.write_source("<" + "+" * 65 + ".")
        exit_code, out, _ = self.run_main([path, "-q", "--tape-size", "5"])
        self.assertEqual(exit_code, 0)
        self.assertEqual(out, "A")

    def test_visualize_curses_mode(self):
        path = self.write_source(PRINT_A)
        with mock.patch("haifa_bf.vm_visualizer_headless.VMVisualizer") as mock_vis:
            mock_vis.return_value.run.return_value = None
            exit_code, out, _ = self.run_main([path, "--visualize", "curses"])
        self.assertEqual(exit_code, 0)
        self.assertEqual(out, "")
        mock_vis.assert_called_once()
        self.assertIsNone(mock_vis.call_args.kwargs["max_steps"])


if __name__ == "__main__":
    unittest.main()
