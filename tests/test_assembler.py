"""
Assembler tests for the LMC toolkit.

Checks label resolution, encoding of every line shape, and the error
taxonomy against hand-assembled machine words.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging

import pytest
from lmc.assembler import (
    Assembler, AssemblerError, EmptyInput, InvalidDataValue, InvalidLabel,
    InvalidNumberOfMnemonics, InvalidOpcode, TooManyLinesOfInput, assemble,
)

PROGRAMS = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "programs")

ADD_FIXED = [
    "LOOP LDA FIRST",
    "ADD SECOND",
    "STO RESULT",
    "OUT",
    "HLT",
    "FIRST DAT 5",
    "SECOND DAT 3",
    "RESULT DAT 0",
]


def _values(words):
    return [w.value for w in words]


class TestEndToEndEncoding:

    def test_add_fixed_program(self):
        a = Assembler()
        words = a.assemble(ADD_FIXED)
        assert _values(words) == [505, 106, 307, 902, 0, 5, 3, 0]
        assert a.labels == {"LOOP": 0, "FIRST": 5, "SECOND": 6, "RESULT": 7}

    def test_string_source_is_split_into_lines(self):
        assert _values(assemble("\n".join(ADD_FIXED))) == [505, 106, 307, 902, 0, 5, 3, 0]

    def test_deterministic(self):
        first = assemble(ADD_FIXED)
        second = assemble(ADD_FIXED)
        assert [str(w) for w in first] == [str(w) for w in second]

    def test_no_labels_leak_between_calls(self):
        a = Assembler()
        a.assemble(["X DAT 1"])
        with pytest.raises(InvalidLabel):
            a.assemble(["LDA X"])

    def test_divide_program_file(self):
        with open(os.path.join(PROGRAMS, "divide.asm"), encoding="utf-8") as f:
            words = assemble(f.read())
        assert _values(words) == [
            901, 317, 901, 318, 520, 319,
            517, 218, 812, 519, 902, 0,
            317, 519, 121, 319, 606,
            0, 0, 0, 0, 1,
        ]

    def test_countdown_program_file(self):
        with open(os.path.join(PROGRAMS, "countdown.asm"), encoding="utf-8") as f:
            words = assemble(f.read())
        assert _values(words) == [901, 902, 705, 206, 601, 0, 1]

    def test_avg_three_program_file(self):
        with open(os.path.join(PROGRAMS, "avg-three.asm"), encoding="utf-8") as f:
            words = assemble(f.read())
        assert _values(words) == [
            535, 333, 235, 338, 235, 234, 337,
            533, 724, 234, 333, 901, 336,
            537, 134, 337, 536, 235, 336, 813,
            135, 138, 338, 607,
            537, 134, 337, 538, 235, 338, 824,
            537, 902,
            0, 1, 3, 0, 0, 0,
        ]

    def test_adddiv_program_file(self):
        with open(os.path.join(PROGRAMS, "adddiv.asm"), encoding="utf-8") as f:
            words = assemble(f.read())
        assert _values(words) == [
            901, 317, 901, 318, 521, 319,
            519, 120, 319, 517, 218, 317, 806,
            519, 220, 902, 0,
            0, 0, 0, 1, 0,
        ]


class TestPreprocessing:

    def test_comments_and_blank_lines_are_dropped(self):
        src = [
            "# header comment",
            "",
            "        IN      # read",
            "   ",
            "        OUT",
            "        HLT # done",
        ]
        assert _values(assemble(src)) == [901, 902, 0]

    def test_label_indices_count_only_kept_lines(self):
        src = ["# comment", "", "BR END", "# another", "END HLT"]
        assert _values(assemble(src)) == [601, 0]

    def test_empty_input(self):
        with pytest.raises(EmptyInput):
            assemble([])
        with pytest.raises(EmptyInput):
            assemble(["# only a comment", "   "])

    def test_exactly_100_lines_is_fine(self):
        assert len(assemble(["HLT"] * 100)) == 100

    def test_too_many_lines(self):
        with pytest.raises(TooManyLinesOfInput) as exc:
            assemble(["HLT"] * 101)
        assert exc.value.count == 101


class TestLineShapes:

    def test_bare_mnemonics(self):
        assert _values(assemble(["IN", "OUT", "HLT", "DAT"])) == [901, 902, 0, 0]

    def test_mnemonic_with_label_operand(self):
        src = ["LDA X", "ADD X", "SUB X", "STO X", "BR X", "BRZ X", "BRP X", "X DAT 7"]
        assert _values(assemble(src)) == [507, 107, 207, 307, 607, 707, 807, 7]

    def test_labelled_bare_mnemonic(self):
        src = ["BR END", "END HLT"]
        assert _values(assemble(src)) == [601, 0]

    def test_labelled_dat_without_value(self):
        src = ["LDA Z", "HLT", "Z DAT"]
        assert _values(assemble(src)) == [502, 0, 0]

    def test_dat_literal_is_stored_raw(self):
        assert _values(assemble(["A DAT 999", "B DAT 000", "C DAT 42"])) == [999, 0, 42]

    def test_dat_with_opcode_shaped_value(self):
        """A DAT word is data, even if it looks like an instruction."""
        assert _values(assemble(["A DAT 902"])) == [902]

    def test_three_token_instruction(self):
        src = ["START LDA ONE", "BR START", "ONE DAT 1"]
        assert _values(assemble(src)) == [502, 600, 1]

    def test_forward_and_backward_references(self):
        src = ["BR FWD", "BACK HLT", "FWD BR BACK"]
        assert _values(assemble(src)) == [602, 0, 601]

    def test_io_with_operand_wraps(self):
        src = ["OUT Z"] + ["HLT"] * 98 + ["Z DAT 0"]
        words = assemble(src)
        assert words[0].value == (902 + 99) % 1000


class TestErrors:

    def test_unknown_bare_mnemonic(self):
        with pytest.raises(InvalidOpcode) as exc:
            assemble(["NOP"])
        assert exc.value.mnemonic == "NOP"

    def test_lowercase_mnemonic_rejected(self):
        with pytest.raises(InvalidOpcode):
            assemble(["hlt"])

    def test_two_tokens_neither_mnemonic(self):
        with pytest.raises(InvalidOpcode) as exc:
            assemble(["FOO BAR"])
        assert exc.value.mnemonic == "BAR"

    def test_three_tokens_bad_middle(self):
        with pytest.raises(InvalidOpcode):
            assemble(["L JMP X", "X DAT 1"])

    def test_undefined_label(self):
        with pytest.raises(InvalidLabel) as exc:
            assemble(["LDA MISSING", "HLT"])
        assert exc.value.label == "MISSING"

    def test_numeric_operand_is_not_an_address(self):
        with pytest.raises(InvalidLabel):
            assemble(["LDA 5", "HLT"])

    def test_too_many_tokens(self):
        with pytest.raises(InvalidNumberOfMnemonics) as exc:
            assemble(["A LDA B C"])
        assert exc.value.count == 4
        assert "A LDA B C" in str(exc.value)

    @pytest.mark.parametrize("literal", ["abc", "1000", "-1", "5x"])
    def test_bad_dat_literal(self, literal):
        with pytest.raises(InvalidDataValue) as exc:
            assemble([f"A DAT {literal}"])
        assert exc.value.token == literal

    def test_errors_carry_source_line_number(self):
        with pytest.raises(AssemblerError) as exc:
            assemble(["# comment", "HLT", "LDA NOWHERE"])
        assert exc.value.line_num == 3
        assert str(exc.value).startswith("Line 3:")


class TestDuplicateLabels:

    def test_last_definition_wins(self):
        src = ["LDA X", "HLT", "X DAT 1", "X DAT 2"]
        assert _values(assemble(src)) == [503, 0, 1, 2]

    def test_redefinition_is_logged(self, caplog):
        src = ["LDA X", "X DAT 1", "X DAT 2"]
        with caplog.at_level(logging.WARNING, logger="lmc"):
            assemble(src)
        assert any("redefined" in r.getMessage() for r in caplog.records)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
