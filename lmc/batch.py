"""
LMC Batch Runner - Repeated Trials of One Program
==================================================

Runs a loaded program against a list of test cases. Each case feeds the
same inputs to the machine one or more times and checks the last OUT
value against an expected answer.

Descriptor file, one case per line:

    name;input_csv;expected;iterations

    add-two;5,3;8;1
    echo;42;;3          <- empty expected: run, but do not compare

Blank lines and lines starting with '#' are ignored.

Between trials only the program counter is reset. Mailboxes and the
calculator carry over, exactly as they would on the real machine, so a
program that relies on DAT cells starting at zero must re-initialise them
itself.

The run stops at the first mismatch or machine fault; any cases not yet
started are reported as skipped.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union
import logging

from .numbers import NumberError, ThreeDigitNumber
from .vm import LMC, LMCError

__all__ = [
    'BatchCase', 'BatchReport', 'BatchFormatError',
    'parse_batch', 'read_batch', 'run_batch',
]

log = logging.getLogger(__name__)

PASS = "PASS"
FAIL = "FAIL"
ERROR = "ERROR"
SKIP = "SKIP"


class BatchFormatError(ValueError):
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


@dataclass
class BatchCase:
    """A single test case definition."""
    name: str
    inputs: List[ThreeDigitNumber] = field(default_factory=list)
    expected: Optional[ThreeDigitNumber] = None
    iterations: int = 1


@dataclass
class BatchReport:
    """Outcome of a batch run."""
    results: List[dict] = field(default_factory=list)
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    total: int = 0

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.skipped == 0

    def add_result(self, case: str, status: str, iteration: int = 0,
                   output: Optional[ThreeDigitNumber] = None, message: str = ""):
        self.results.append({
            "case": case,
            "iteration": iteration,
            "status": status,
            "output": None if output is None else output.value,
            "message": message,
        })
        self.total += 1
        if status == PASS:
            self.passed += 1
        elif status in (FAIL, ERROR):
            self.failed += 1
        elif status == SKIP:
            self.skipped += 1


# =============================================================================
#  DESCRIPTOR PARSING
# =============================================================================

def _parse_value(text: str, line_num: int, line: str) -> ThreeDigitNumber:
    try:
        return ThreeDigitNumber.parse(text)
    except NumberError as e:
        raise BatchFormatError(str(e), line_num, line) from e
    except ValueError as e:
        raise BatchFormatError(f"not an integer: {text.strip()!r}", line_num, line) from e


def parse_batch(text: str) -> List[BatchCase]:
    """Parse descriptor text into test cases."""
    cases: List[BatchCase] = []
    for line_num, raw in enumerate(text.splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith('#'):
            continue
        fields = line.split(';')
        if len(fields) != 4:
            raise BatchFormatError(
                f"expected 4 ';'-separated fields, got {len(fields)}", line_num, line)
        name, input_csv, expected, iterations = (f.strip() for f in fields)

        inputs = [_parse_value(v, line_num, line)
                  for v in input_csv.split(',') if v.strip()]
        expected_value = _parse_value(expected, line_num, line) if expected else None
        try:
            count = int(iterations)
        except ValueError:
            raise BatchFormatError(
                f"iteration count is not an integer: {iterations!r}", line_num, line) from None
        if count < 1:
            raise BatchFormatError(
                f"iteration count must be at least 1, got {count}", line_num, line)

        cases.append(BatchCase(name=name or f"case{len(cases) + 1}", inputs=inputs,
                               expected=expected_value, iterations=count))
    return cases


def read_batch(path: Union[str, Path]) -> List[BatchCase]:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise BatchFormatError(f"{path}: not UTF-8 text (byte {e.start}): {e.reason}") from e
    return parse_batch(text)


# =============================================================================
#  RUNNER
# =============================================================================

def run_batch(vm: LMC, cases: List[BatchCase]) -> BatchReport:
    """Run every case against the program already loaded into vm."""
    report = BatchReport()

    for index, case in enumerate(cases):
        log.info("running case %s (%d iteration%s)", case.name, case.iterations,
                 "" if case.iterations == 1 else "s")
        stopped = False
        for iteration in range(1, case.iterations + 1):
            vm.load_input(case.inputs)
            try:
                vm.execute()
            except LMCError as e:
                log.error("%s #%d: %s", case.name, iteration, e)
                report.add_result(case.name, ERROR, iteration, message=str(e))
                stopped = True
                break
            finally:
                vm.reset_counter()

            output = vm.get_output()
            if case.expected is not None and output != case.expected:
                got = "nothing" if output is None else str(output)
                message = f"expected {case.expected}, got {got}"
                log.error("%s #%d: %s", case.name, iteration, message)
                report.add_result(case.name, FAIL, iteration, output, message)
                stopped = True
                break
            report.add_result(case.name, PASS, iteration, output)

        if stopped:
            for rest in cases[index + 1:]:
                report.add_result(rest.name, SKIP, message="not run")
            break

    log.info("batch finished: %d passed, %d failed, %d skipped",
             report.passed, report.failed, report.skipped)
    return report
