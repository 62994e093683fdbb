"""
lmckit command-line tests - each subcommand driven through main().
"""
import sys
import os
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT)

import io

import pytest
import lmckit

PROGRAMS = os.path.join(ROOT, "programs")


@pytest.fixture
def add_program(tmp_path):
    out = tmp_path / "add.txt"
    assert lmckit.main(["assemble", os.path.join(PROGRAMS, "add.asm"), str(out)]) == 0
    return out


class TestAssemble:

    def test_writes_program_file(self, tmp_path, capsys):
        out = tmp_path / "add.txt"
        rc = lmckit.main(["assemble", os.path.join(PROGRAMS, "add.asm"), str(out)])
        assert rc == 0
        assert out.read_text() == "901\n306\n901\n106\n902\n000\n000\n"
        assert f"Assembled 7 words -> {out}" in capsys.readouterr().out

    def test_assembly_error(self, tmp_path, capsys):
        src = tmp_path / "bad.asm"
        src.write_text("IN\nJMP NOWHERE\n")
        rc = lmckit.main(["assemble", str(src), str(tmp_path / "out.txt")])
        assert rc == 1
        assert "Assembly error: Line 2:" in capsys.readouterr().err
        assert not (tmp_path / "out.txt").exists()

    def test_missing_input(self, tmp_path, capsys):
        rc = lmckit.main(["assemble", str(tmp_path / "none.asm"), str(tmp_path / "o.txt")])
        assert rc == 1
        assert capsys.readouterr().err.startswith("Error:")


class TestExecute:

    def test_reads_stdin_and_prints(self, add_program, monkeypatch, capsys):
        capsys.readouterr()
        monkeypatch.setattr(sys, "stdin", io.StringIO("5\n3\n"))
        assert lmckit.main(["execute", str(add_program)]) == 0
        assert capsys.readouterr().out == "Input: Input: 8\n"

    def test_comma_separated_program(self, tmp_path, monkeypatch, capsys):
        prog = tmp_path / "legacy.txt"
        prog.write_text("901,902,000\n")
        monkeypatch.setattr(sys, "stdin", io.StringIO("42\n"))
        assert lmckit.main(["execute", str(prog)]) == 0
        assert capsys.readouterr().out.endswith("42\n")

    def test_max_cycles(self, tmp_path, capsys):
        prog = tmp_path / "spin.txt"
        prog.write_text("600\n")
        assert lmckit.main(["--max-cycles", "5", "execute", str(prog)]) == 1
        assert "Execution error: max cycles hit: 5" in capsys.readouterr().err

    def test_bad_input_value(self, add_program, monkeypatch, capsys):
        monkeypatch.setattr(sys, "stdin", io.StringIO("five\n"))
        assert lmckit.main(["execute", str(add_program)]) == 1
        assert "Execution error: IO error" in capsys.readouterr().err

    def test_undecodable_program_file(self, tmp_path, capsys):
        prog = tmp_path / "bin.txt"
        prog.write_bytes(b"901\n\xff\n")
        assert lmckit.main(["execute", str(prog)]) == 1
        assert "Format error:" in capsys.readouterr().err

    @pytest.mark.parametrize("budget", ["0", "-5", "ten"])
    def test_max_cycles_must_be_positive(self, tmp_path, budget, capsys):
        prog = tmp_path / "spin.txt"
        prog.write_text("600\n")
        with pytest.raises(SystemExit) as exc:
            lmckit.main(["--max-cycles", budget, "execute", str(prog)])
        assert exc.value.code == 2
        assert "--max-cycles" in capsys.readouterr().err

    def test_bad_program_file(self, tmp_path, capsys):
        prog = tmp_path / "bad.txt"
        prog.write_text("901\n1234\n")
        assert lmckit.main(["execute", str(prog)]) == 1
        assert "Format error:" in capsys.readouterr().err


class TestBatch:

    def test_shipped_cases_pass(self, add_program, capsys):
        capsys.readouterr()
        rc = lmckit.main(["batch", str(add_program), os.path.join(PROGRAMS, "add.tests")])
        out = capsys.readouterr().out
        assert rc == 0
        assert "PASS  small #1  output=008" in out
        assert "PASS  zeros #2  output=000" in out
        assert out.rstrip().endswith("5 passed, 0 failed, 0 skipped")

    def test_failing_case(self, add_program, tmp_path, capsys):
        tests = tmp_path / "t.tests"
        tests.write_text("wrong;1,1;3;1\nafter;1,1;2;1\n")
        rc = lmckit.main(["batch", str(add_program), str(tests)])
        out = capsys.readouterr().out
        assert rc == 1
        assert "FAIL  wrong #1  output=002  (expected 003, got 002)" in out
        assert "SKIP  after  output=---  (not run)" in out

    def test_bad_descriptor(self, add_program, tmp_path, capsys):
        tests = tmp_path / "t.tests"
        tests.write_text("only;two\n")
        assert lmckit.main(["batch", str(add_program), str(tests)]) == 1
        assert "Format error: Line 1:" in capsys.readouterr().err


class TestGlobalOptions:

    def test_no_command_prints_help(self, capsys):
        assert lmckit.main([]) == 0
        assert "usage: lmckit" in capsys.readouterr().out

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            lmckit.main(["--version"])
        assert exc.value.code == 0
        assert "lmckit" in capsys.readouterr().out

    def test_log_file_captures_debug(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        out = tmp_path / "add.txt"
        rc = lmckit.main(["--log-file", str(log_file), "assemble",
                          os.path.join(PROGRAMS, "add.asm"), str(out)])
        assert rc == 0
        text = log_file.read_text()
        assert "starting first pass" in text
        assert "inserting label FIRST" in text
