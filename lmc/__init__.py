"""
LMC Toolkit - Little Minion Computer Assembler and Virtual Machine
==================================================================
A teaching toolkit for the Little Minion Computer, a base-10 machine with
100 three-digit mailboxes, one calculator (accumulator), a two-digit
program counter and ten instructions.

Architecture:
    ┌───────────┐    ┌───────────┐    ┌─────────────┐    ┌───────────┐
    │ .asm text │───>│ Assembler │───>│ machine     │───>│    LMC    │
    │ (lines)   │    │ (2 passes)│    │ words       │    │ (execute) │
    └───────────┘    └───────────┘    └─────────────┘    └───────────┘

    - numbers.py:    ThreeDigitNumber / TwoDigitNumber, wraparound + flags
    - opcodes.py:    Closed instruction set, word decoder
    - assembler.py:  Two-pass label resolver and encoder
    - vm.py:         Fetch / decode / execute engine
    - program_io.py: Source and program-file reading / writing
    - batch.py:      Repeated trials of one program against test cases
"""

__version__ = "1.0.0"

from .numbers import Flag, NumberError, OutOfBounds, ThreeDigitNumber, TwoDigitNumber
from .opcodes import Opcode
from .assembler import Assembler, AssemblerError, assemble
from .vm import (
    LMC, LMCError, ProgramTooLarge, InvalidOpcode, LMCNumberError, LMCIOError,
    MaxCyclesHit,
)
from .program_io import ProgramFormatError, read_source, read_program, write_program
from .batch import BatchCase, BatchReport, BatchFormatError, read_batch, run_batch


def run_source(source, inputs=(), *, max_cycles=None, quiet=True):
    """Assemble source, run it once, and return the halted machine.

    Convenience for scripts and tests: the caller reads get_output() or any
    other state from the returned LMC.
    """
    vm = LMC(max_cycles=max_cycles, quiet=quiet)
    vm.load_program(assemble(source))
    vm.load_input(ThreeDigitNumber(v) if isinstance(v, int) else v for v in inputs)
    vm.execute()
    return vm
