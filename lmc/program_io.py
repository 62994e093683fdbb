"""
LMC Toolkit - Source and Program File I/O

Assembly source:  plain text, one instruction per line (see assembler.py)

Program file (machine words):
  one signed decimal integer per line, e.g.

      505
      106
      902
      000

  The legacy form puts several comma-separated words on a line
  ("505,106,902,000"). Both forms may be mixed. Blank lines are skipped.
  Every value must fit 000-999.

Written program files always use the one-word-per-line form with
zero-padded 3-digit words and a trailing newline.
"""

from __future__ import annotations
from pathlib import Path
from typing import Iterable, List, Union

from .numbers import NumberError, ThreeDigitNumber

__all__ = [
    'ProgramFormatError', 'read_source', 'parse_program', 'read_program',
    'format_program', 'write_program',
]

PathLike = Union[str, Path]


class ProgramFormatError(ValueError):
    """Raised when a program file holds something other than 000-999 words."""
    def __init__(self, message: str, line_num: int = 0, source: str = ""):
        self.line_num = line_num
        self.source = source
        if line_num:
            prefix = f"{source}:{line_num}: " if source else f"{line_num}: "
        else:
            prefix = f"{source}: " if source else ""
        super().__init__(f"{prefix}{message}")


def _read_text(path: PathLike) -> str:
    path = Path(path)
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ProgramFormatError(
            f"not UTF-8 text (byte {e.start}): {e.reason}", source=str(path)) from e


def read_source(path: PathLike) -> List[str]:
    """Read assembly source as a list of lines (newlines stripped)."""
    return _read_text(path).splitlines()


def parse_program(text: str, source: str = "") -> List[ThreeDigitNumber]:
    """Parse program-file text into machine words."""
    words: List[ThreeDigitNumber] = []
    for line_num, line in enumerate(text.splitlines(), 1):
        line = line.strip()
        if not line:
            continue
        for part in line.split(','):
            try:
                words.append(ThreeDigitNumber.parse(part))
            except NumberError as e:
                raise ProgramFormatError(str(e), line_num, source) from e
            except ValueError as e:
                raise ProgramFormatError(
                    f"not an integer: {part.strip()!r}", line_num, source) from e
    return words


def read_program(path: PathLike) -> List[ThreeDigitNumber]:
    """Load a program file from disk."""
    return parse_program(_read_text(path), source=str(path))


def format_program(words: Iterable[ThreeDigitNumber]) -> str:
    return "".join(f"{word}\n" for word in words)


def write_program(path: PathLike, words: Iterable[ThreeDigitNumber]):
    """Write machine words, one zero-padded word per line."""
    Path(path).write_text(format_program(words), encoding="utf-8")
