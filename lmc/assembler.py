"""
LMC Two-Pass Assembler.

Translates line-oriented LMC assembly into machine words, one word per
source instruction line, in source order. Word i is loaded into mailbox i.

Input:  Assembly lines (list of str, or one str with newlines)
Output: list[ThreeDigitNumber]

Source format:
  [label] MNEMONIC [operand]    # comment

  - '#' starts a comment that runs to end of line
  - blank / comment-only lines are dropped before numbering
  - a label names the mailbox index of the line it sits on
  - the operand of an instruction is always a label
  - the operand of DAT is a literal decimal value

How the two-pass algorithm works:
  Pass 1: Walk the lines and record every label -> line index.
  Pass 2: Walk the lines again and encode each one. All labels are known
          now, so forward references (LDA FIRST ... FIRST DAT 5) resolve.

Line shapes (split on whitespace):
  1 token   MNEMONIC                 -> base word
  2 tokens  MNEMONIC LABEL           -> base word + index(LABEL)
            LABEL MNEMONIC           -> base word (label recorded)
  3 tokens  LABEL DAT VALUE          -> VALUE
            LABEL MNEMONIC LABEL2    -> base word + index(LABEL2)

Mnemonics are matched case-sensitively.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Union
import logging
import re

from .config import MAILBOX_COUNT
from .numbers import NumberError, ThreeDigitNumber, add3
from .opcodes import MNEMONICS, Opcode

__all__ = [
    'Assembler', 'AssemblerError', 'InvalidOpcode', 'InvalidLabel',
    'InvalidNumberOfMnemonics', 'EmptyInput', 'TooManyLinesOfInput',
    'InvalidDataValue', 'assemble',
]

log = logging.getLogger(__name__)


class AssemblerError(Exception):
    """Raised on assembly errors."""
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


class InvalidOpcode(AssemblerError):
    def __init__(self, mnemonic: str, line_num: int = 0, line_text: str = ""):
        self.mnemonic = mnemonic
        super().__init__(f"invalid opcode: got {mnemonic}", line_num, line_text)


class InvalidLabel(AssemblerError):
    def __init__(self, label: str, line_num: int = 0, line_text: str = ""):
        self.label = label
        super().__init__(f"invalid label: got {label}", line_num, line_text)


class InvalidNumberOfMnemonics(AssemblerError):
    def __init__(self, count: int, line_text: str, line_num: int = 0):
        self.count = count
        super().__init__(
            f"invalid number of mnemonics ({count}): {line_text}",
            line_num, line_text)


class EmptyInput(AssemblerError):
    def __init__(self):
        super().__init__("empty input")


class TooManyLinesOfInput(AssemblerError):
    def __init__(self, count: int):
        self.count = count
        super().__init__(
            f"too many lines of input: got {count}, "
            f"the machine has {MAILBOX_COUNT} mailboxes")


class InvalidDataValue(AssemblerError):
    """DAT literal that is not an integer in 000-999."""
    def __init__(self, token: str, line_num: int = 0, line_text: str = "",
                 reason: str = ""):
        self.token = token
        detail = f" ({reason})" if reason else ""
        super().__init__(f"invalid DAT value: got {token}{detail}",
                         line_num, line_text)


# ──────────────────────────────────────────────
# Line Parser
# ──────────────────────────────────────────────

_COMMENT_RE = re.compile(r'#.*$')


@dataclass
class AsmLine:
    """One instruction line after comment stripping."""
    index: int                 # mailbox index == position among kept lines
    line_num: int              # 1-based line number in the input source
    text: str                  # stripped text
    tokens: List[str] = field(default_factory=list)


def _preprocess(lines: Iterable[str]) -> List[AsmLine]:
    """Strip comments and whitespace, drop empty lines, number the rest."""
    result: List[AsmLine] = []
    for line_num, raw in enumerate(lines, 1):
        text = _COMMENT_RE.sub('', raw.rstrip('\r\n')).strip()
        if not text:
            continue
        result.append(AsmLine(index=len(result), line_num=line_num,
                              text=text, tokens=text.split()))
    return result


def _lookup(mnemonic: str, line: AsmLine) -> Opcode:
    op = MNEMONICS.get(mnemonic)
    if op is None:
        raise InvalidOpcode(mnemonic, line.line_num, line.text)
    return op


# ──────────────────────────────────────────────
# The Assembler
# ──────────────────────────────────────────────

class Assembler:
    """Two-pass LMC assembler.

    Usage:
        asm = Assembler()
        words = asm.assemble(source_lines)
        asm.labels   # label table from the last call
    """

    def __init__(self):
        self.labels: Dict[str, int] = {}   # label -> mailbox index
        self._lines: List[AsmLine] = []

    def assemble(self, source: Union[str, Iterable[str]]) -> List[ThreeDigitNumber]:
        """Assemble source lines into machine words.

        Raises an AssemblerError subclass on the first problem found; no
        partial output is returned.
        """
        if isinstance(source, str):
            source = source.splitlines()

        log.info("assembling program into machine code...")
        self.labels = {}

        log.debug("stripping comments and empty lines...")
        self._lines = _preprocess(source)
        if not self._lines:
            raise EmptyInput()
        if len(self._lines) > MAILBOX_COUNT:
            raise TooManyLinesOfInput(len(self._lines))

        log.info("starting first pass...")
        self._pass1()

        log.info("starting second pass...")
        words = self._pass2()
        log.info("assembled %d words", len(words))
        return words

    def _pass1(self):
        """Pass 1: record label -> line index."""
        for line in self._lines:
            tokens = line.tokens
            count = len(tokens)
            if count == 1:
                continue
            if count == 2:
                if tokens[0] in MNEMONICS:
                    continue  # MNEMONIC LABEL
                _lookup(tokens[1], line)  # LABEL MNEMONIC
                self._define(tokens[0], line)
            elif count == 3:
                self._define(tokens[0], line)
            else:
                raise InvalidNumberOfMnemonics(count, line.text, line.line_num)

    def _define(self, label: str, line: AsmLine):
        previous = self.labels.get(label)
        if previous is not None and previous != line.index:
            log.warning("label %s redefined on line %d (was mailbox %02d, now %02d)",
                        label, line.line_num, previous, line.index)
        self.labels[label] = line.index
        log.debug("inserting label %s at index %d", label, line.index)

    def _pass2(self) -> List[ThreeDigitNumber]:
        """Pass 2: emit one word per line."""
        words: List[ThreeDigitNumber] = []
        for line in self._lines:
            word = self._encode(line)
            log.debug("%02d:\t%s", line.index, word)
            words.append(word)
        return words

    def _encode(self, line: AsmLine) -> ThreeDigitNumber:
        tokens = line.tokens
        count = len(tokens)

        if count == 1:
            return _lookup(tokens[0], line).base_word

        if count == 2:
            if tokens[0] in MNEMONICS:
                op = MNEMONICS[tokens[0]]
                return self._with_operand(op, tokens[1], line)
            return _lookup(tokens[1], line).base_word

        if count == 3:
            op = _lookup(tokens[1], line)
            if op is Opcode.DAT:
                return self._data_word(tokens[2], line)
            return self._with_operand(op, tokens[2], line)

        raise InvalidNumberOfMnemonics(count, line.text, line.line_num)

    def _with_operand(self, op: Opcode, label: str, line: AsmLine) -> ThreeDigitNumber:
        index = self.labels.get(label)
        if index is None:
            raise InvalidLabel(label, line.line_num, line.text)
        # IN/OUT/HLT with an operand can pass 999; the word wraps like any add
        return ThreeDigitNumber(add3(op.base_word, ThreeDigitNumber(index)).value)

    @staticmethod
    def _data_word(token: str, line: AsmLine) -> ThreeDigitNumber:
        try:
            return ThreeDigitNumber.parse(token)
        except NumberError as e:
            raise InvalidDataValue(token, line.line_num, line.text, str(e)) from e
        except ValueError as e:
            raise InvalidDataValue(token, line.line_num, line.text,
                                   "not an integer") from e


# ──────────────────────────────────────────────
# Convenience functions
# ──────────────────────────────────────────────

def assemble(source: Union[str, Iterable[str]]) -> List[ThreeDigitNumber]:
    """Assemble source lines, return the machine words."""
    return Assembler().assemble(source)
