"""
LMC Toolkit - Instruction Set / Opcode Decoder

The instruction set is closed: ten executable instructions plus the DAT
directive. Each mnemonic maps to a base machine word; instructions that
take a mailbox operand add the operand (00-99) to that base.

  ADD  1xx    SUB  2xx    STO  3xx    LDA  5xx
  BR   6xx    BRZ  7xx    BRP  8xx
  IN   901    OUT  902    HLT  000
  DAT  raw literal (assembler directive, never decoded)

Decoding splits a word into its hundreds digit (opcode) and the remaining
two digits (operand). Opcode 4 and 9xx other than 901/902 are undefined.
"""

from __future__ import annotations
from enum import Enum
from typing import Dict, NamedTuple, Optional

from .config import OPCODE_DIVISOR
from .numbers import ThreeDigitNumber

__all__ = ['Opcode', 'MNEMONICS', 'Instruction', 'IllegalOpcode', 'split_word', 'decode']


class Opcode(Enum):
    """Mnemonic -> base machine word."""
    ADD = ('ADD', 100)
    SUB = ('SUB', 200)
    STO = ('STO', 300)
    LDA = ('LDA', 500)
    BR  = ('BR',  600)
    BRZ = ('BRZ', 700)
    BRP = ('BRP', 800)
    IN  = ('IN',  901)
    OUT = ('OUT', 902)
    HLT = ('HLT', 0)
    DAT = ('DAT', 0)

    def __init__(self, mnemonic: str, code: int):
        self.mnemonic = mnemonic
        self.code = code

    @property
    def base_word(self) -> ThreeDigitNumber:
        return ThreeDigitNumber(self.code)


# Case-sensitive lookup table used by the assembler
MNEMONICS: Dict[str, Opcode] = {op.mnemonic: op for op in Opcode}

# Hundreds digit -> instruction, for everything except the 9xx I/O group
_BY_DIGIT: Dict[int, Opcode] = {
    0: Opcode.HLT,
    1: Opcode.ADD,
    2: Opcode.SUB,
    3: Opcode.STO,
    5: Opcode.LDA,
    6: Opcode.BR,
    7: Opcode.BRZ,
    8: Opcode.BRP,
}

# 9xx: operand selects the I/O instruction
_IO_BY_OPERAND: Dict[int, Opcode] = {
    1: Opcode.IN,
    2: Opcode.OUT,
}


class IllegalOpcode(Exception):
    """Raised when a machine word does not decode to an instruction."""
    def __init__(self, word: ThreeDigitNumber):
        self.word = word
        super().__init__(f"undefined instruction {word}")


class Instruction(NamedTuple):
    opcode: Opcode
    operand: int


def split_word(word: ThreeDigitNumber):
    """Return (opcode_digit, operand) for a machine word."""
    return divmod(word.value, OPCODE_DIVISOR)


def decode(word: ThreeDigitNumber) -> Instruction:
    """Decode a machine word. Raises IllegalOpcode for undefined words."""
    digit, operand = split_word(word)
    op: Optional[Opcode]
    if digit == 9:
        op = _IO_BY_OPERAND.get(operand)
    else:
        op = _BY_DIGIT.get(digit)
    if op is None:
        raise IllegalOpcode(word)
    return Instruction(op, operand)
