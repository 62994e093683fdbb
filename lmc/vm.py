"""
LMC Virtual Machine - Fetch / Decode / Execute Engine

Machine state:
  mailboxes   100 x ThreeDigitNumber (addresses 00-99)
  calculator  ThreeDigitNumber accumulator
  counter     TwoDigitNumber program counter
  flag        NEG / OVERFLOW from the last ADD or SUB, cleared by LDA
  in basket   FIFO of ThreeDigitNumber consumed by IN
  out basket  last value written by OUT (a slot, not a queue)

Execution model, once per cycle:
  1. Count the cycle; stop with MaxCyclesHit when the budget is reached
  2. Fetch the word at mailboxes[counter]
  3. Decode hundreds digit -> instruction, last two digits -> operand
  4. Execute the handler -> update calculator, mailboxes, flag, counter

Termination:
  HLT            execute() returns the number of cycles used
  anything else  an LMCError subclass is raised at the failing instruction

The counter wraps 99 -> 00 like any 2-digit add; a program that runs off
the end of memory resumes at mailbox 00 and is only stopped by HLT or the
cycle budget.
"""

from __future__ import annotations
from collections import deque
from typing import Deque, Iterable, List, Optional, TextIO
import logging
import sys

from .config import DEFAULT_MAX_CYCLES, INPUT_PROMPT, MAILBOX_COUNT
from .numbers import (
    Flag, NumberError, ThreeDigitNumber, TwoDigitNumber,
)
from .opcodes import IllegalOpcode, Opcode, decode

__all__ = [
    'LMC', 'LMCError', 'ProgramTooLarge', 'InvalidOpcode',
    'LMCNumberError', 'LMCIOError', 'MaxCyclesHit',
]

log = logging.getLogger(__name__)

_ZERO = ThreeDigitNumber(0)
_COUNTER_START = TwoDigitNumber(0)
_COUNTER_STEP = TwoDigitNumber(1)


# ══════════════════════════════════════════════
# Errors
# ══════════════════════════════════════════════

class LMCError(Exception):
    """Base class for load-time and run-time machine faults."""


class ProgramTooLarge(LMCError):
    def __init__(self, size: int):
        self.size = size
        super().__init__(
            f"program too large: got {size} instructions, "
            f"the machine has {MAILBOX_COUNT} mailboxes")


class InvalidOpcode(LMCError):
    def __init__(self, word: ThreeDigitNumber, address: Optional[int] = None):
        self.word = word
        self.address = address
        where = f" at mailbox {address:02d}" if address is not None else ""
        super().__init__(f"invalid opcode: {word}{where}")


class LMCNumberError(LMCError):
    """A value read at run time fell outside 000-999."""
    def __init__(self, error: NumberError):
        self.error = error
        super().__init__(f"number error: {error}")


class LMCIOError(LMCError):
    """The input stream failed or supplied something that is not a number."""
    def __init__(self, message: str):
        super().__init__(f"IO error: {message}")


class MaxCyclesHit(LMCError):
    def __init__(self, max_cycles: int):
        self.max_cycles = max_cycles
        super().__init__(f"max cycles hit: {max_cycles}")


class _HaltException(Exception):
    pass


# ══════════════════════════════════════════════
# Machine
# ══════════════════════════════════════════════

class LMC:
    """Little Minion Computer.

    Usage:
        vm = LMC(max_cycles=1000)
        vm.load_program(words)
        vm.load_input([ThreeDigitNumber(7)])
        vm.execute()
        vm.get_output()   # ThreeDigitNumber or None

    For repeated trials of the same program call reset_counter() and
    load_input() between execute() calls; mailboxes and the calculator
    keep whatever the previous run left in them.
    """

    DEFAULT_MAX_CYCLES = DEFAULT_MAX_CYCLES

    def __init__(self, max_cycles: Optional[int] = None,
                 input_stream: Optional[TextIO] = None,
                 output_stream: Optional[TextIO] = None,
                 quiet: bool = False):
        self._mailboxes: List[ThreeDigitNumber] = [_ZERO] * MAILBOX_COUNT
        self._calculator = _ZERO
        self._counter = _COUNTER_START
        self._flag: Optional[Flag] = None
        self._in_basket: Deque[ThreeDigitNumber] = deque()
        self._out_basket: Optional[ThreeDigitNumber] = None

        self.max_cycles = self._check_budget(
            max_cycles if max_cycles is not None else self.DEFAULT_MAX_CYCLES)
        self.cycles = 0  # cycles used by the current / last execute()

        # None -> sys.stdin / sys.stdout looked up at use time
        self.input_stream = input_stream
        self.output_stream = output_stream
        self.quiet = quiet

        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Inspection
    # ══════════════════════════════════════════════

    @property
    def mailboxes(self) -> tuple:
        return tuple(self._mailboxes)

    @property
    def calculator(self) -> ThreeDigitNumber:
        return self._calculator

    @property
    def counter(self) -> TwoDigitNumber:
        return self._counter

    @property
    def flag(self) -> Optional[Flag]:
        return self._flag

    @property
    def pending_input(self) -> tuple:
        return tuple(self._in_basket)

    def get_output(self) -> Optional[ThreeDigitNumber]:
        """Last value written by OUT, or None if OUT never ran."""
        return self._out_basket

    def dump_memory(self) -> str:
        """Mailbox contents as a 10 x 10 grid for debugging."""
        lines = ["    " + " ".join(f"  {col}" for col in range(10))]
        for row in range(0, MAILBOX_COUNT, 10):
            cells = " ".join(str(w) for w in self._mailboxes[row:row + 10])
            lines.append(f"{row:02d}  {cells}")
        return "\n".join(lines)

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_program(self, program: Iterable[ThreeDigitNumber]):
        """Copy words into mailboxes 00..n-1.

        Mailboxes past the end of the program keep their current contents.
        Only the size is checked; the words themselves are not validated.
        """
        words = list(program)
        log.info("loading program with %d instructions", len(words))
        if len(words) > MAILBOX_COUNT:
            raise ProgramTooLarge(len(words))
        self._mailboxes[:len(words)] = words
        log.debug("memory after load:\n%s", self.dump_memory())

    def load_input(self, values: Iterable[ThreeDigitNumber]):
        """Append values to the back of the input queue."""
        for value in values:
            self._in_basket.append(value)

    def reset_counter(self):
        """Point the counter back at mailbox 00. Nothing else is touched."""
        log.debug("resetting counter to 0")
        self._counter = _COUNTER_START

    def set_max_cycles(self, max_cycles: int):
        self.max_cycles = self._check_budget(max_cycles)

    @staticmethod
    def _check_budget(max_cycles: int) -> int:
        # execute() stops on ==, so a budget below 1 would never be reached
        if max_cycles < 1:
            raise ValueError(f"max_cycles must be at least 1, got {max_cycles}")
        return max_cycles

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def execute(self) -> int:
        """Run from the current counter until HLT.

        Returns the number of cycles used, counting the HLT cycle.
        Raises an LMCError subclass on the first fault.
        """
        log.info("executing program...")
        self.cycles = 0
        while True:
            self.cycles += 1
            if self.cycles == self.max_cycles:
                log.error("max cycles hit after %d cycles at mailbox %s",
                          self.cycles, self._counter)
                raise MaxCyclesHit(self.max_cycles)
            if self.step():
                log.info("program halted after %d cycles", self.cycles)
                return self.cycles

    def step(self) -> bool:
        """Execute one instruction. Returns True if it was HLT."""
        address = self._counter.value
        word = self._mailboxes[address]
        try:
            op, operand = decode(word)
        except IllegalOpcode:
            raise InvalidOpcode(word, address) from None

        log.debug("executing instruction: %s (opcode: %s, operand: %02d)",
                  word, op.mnemonic, operand)
        try:
            self._dispatch[op](operand)
        except _HaltException:
            return True
        return False

    def _advance(self):
        self._counter = self._counter + _COUNTER_STEP
        if self._counter.flag is Flag.OVERFLOW:
            log.debug("counter wrapped past 99 to %s", self._counter)

    def _jump(self, operand: int):
        self._counter = TwoDigitNumber(operand)

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════

    def _build_dispatch(self) -> dict:
        """Build instruction -> handler dispatch table."""
        return {
            Opcode.ADD: self._op_add,
            Opcode.SUB: self._op_sub,
            Opcode.STO: self._op_sto,
            Opcode.LDA: self._op_lda,
            Opcode.BR:  self._op_br,
            Opcode.BRZ: self._op_brz,
            Opcode.BRP: self._op_brp,
            Opcode.IN:  self._op_in,
            Opcode.OUT: self._op_out,
            Opcode.HLT: self._op_hlt,
        }

    def _op_add(self, operand: int):
        value = self._mailboxes[operand]
        log.debug("adding: %s + %s", self._calculator, value)
        self._calculator = self._calculator + value
        self._set_flag(self._calculator.flag)
        self._advance()

    def _op_sub(self, operand: int):
        value = self._mailboxes[operand]
        log.debug("subtracting: %s - %s", self._calculator, value)
        self._calculator = self._calculator - value
        self._set_flag(self._calculator.flag)
        self._advance()

    def _set_flag(self, flag: Optional[Flag]):
        if flag is not None:
            log.debug("setting flag: %s", flag)
        self._flag = flag

    def _op_sto(self, operand: int):
        log.debug("storing to %02d: %s", operand, self._calculator)
        self._mailboxes[operand] = self._calculator
        self._advance()

    def _op_lda(self, operand: int):
        value = self._mailboxes[operand]
        log.debug("loading from %02d: %s", operand, value)
        self._calculator = value
        self._flag = None
        self._advance()

    def _op_br(self, operand: int):
        log.debug("branch: setting counter to %02d", operand)
        self._jump(operand)

    def _op_brz(self, operand: int):
        if self._calculator.value == 0:
            log.debug("branch zero: setting counter to %02d", operand)
            self._jump(operand)
        else:
            log.debug("branch zero: not taken")
            self._advance()

    def _op_brp(self, operand: int):
        """Branch unless the last ADD/SUB went negative.

        Zero, positive and OVERFLOW all count as "not negative".
        """
        if self._flag is Flag.NEG:
            log.debug("branch positive: not taken (NEG)")
            self._advance()
        else:
            log.debug("branch positive: setting counter to %02d", operand)
            self._jump(operand)

    def _op_in(self, operand: int):
        if self._in_basket:
            value = self._in_basket.popleft()
        else:
            value = self._read_blocking()
        log.debug("input: %s", value)
        self._calculator = value
        self._advance()

    def _read_blocking(self) -> ThreeDigitNumber:
        """Prompt on the output stream and read one number from the input stream."""
        stdin = self.input_stream if self.input_stream is not None else sys.stdin
        stdout = self.output_stream if self.output_stream is not None else sys.stdout
        try:
            stdout.write(INPUT_PROMPT)
            stdout.flush()
            line = stdin.readline()
        except (OSError, UnicodeDecodeError) as e:
            raise LMCIOError(str(e)) from e
        if not line:
            raise LMCIOError("unexpected end of input")
        try:
            return ThreeDigitNumber.parse(line)
        except NumberError as e:
            raise LMCNumberError(e) from e
        except ValueError as e:
            raise LMCIOError(f"not a number: {line.strip()!r}") from e

    def _op_out(self, operand: int):
        self._out_basket = self._calculator
        log.debug("output: %s", self._calculator)
        if not self.quiet:
            stdout = self.output_stream if self.output_stream is not None else sys.stdout
            print(self._calculator.value, file=stdout)
        self._advance()

    def _op_hlt(self, operand: int):
        raise _HaltException()
