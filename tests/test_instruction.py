import pytest

from stackvm.core.instruction import (
    CONTROL_OPCODES,
    MNEMONICS,
    OPCODES_BY_MNEMONIC,
    Instruction,
    Opcode,
    get_operand_kind,
)
from stackvm.core.program import Program
from stackvm.errors import InvalidInstructionError, InvalidProgramError


def test_every_opcode_has_a_mnemonic():
    """Each opcode maps to a unique source mnemonic and back."""
    assert set(MNEMONICS) == set(Opcode)
    for opcode, name in MNEMONICS.items():
        assert OPCODES_BY_MNEMONIC[name] is opcode


def test_operand_kinds():
    assert get_operand_kind(Opcode.PUSH) == "value"
    assert get_operand_kind(Opcode.JNE) == "target"
    assert get_operand_kind(Opcode.CALL) == "target"
    assert get_operand_kind(Opcode.GETARG) == "index"
    assert get_operand_kind(Opcode.RET) is None
    assert Opcode.CALL in CONTROL_OPCODES
    assert Opcode.GET not in CONTROL_OPCODES


def test_instruction_is_immutable():
    instr = Instruction(Opcode.PUSH, 3)
    with pytest.raises(AttributeError):
        instr.operand = 4


def test_instruction_accepts_raw_opcode_values():
    instr = Instruction(int(Opcode.ADD))
    assert instr.opcode is Opcode.ADD


@pytest.mark.parametrize(
    "opcode, operand",
    [
        (Opcode.PUSH, None),  # missing operand
        (Opcode.ADD, 1),  # unexpected operand
        (Opcode.GET, -1),  # negative index
        (Opcode.JUMP, -3),  # negative target
        (Opcode.PUSH, "7"),  # not an integer
        (Opcode.PUSH, True),  # bool is rejected
        (0xEE, None),  # unknown opcode
    ],
)
def test_invalid_instructions_are_rejected(opcode, operand):
    with pytest.raises(InvalidInstructionError):
        Instruction(opcode, operand)


def test_push_accepts_negative_values():
    assert Instruction(Opcode.PUSH, -42).operand == -42


def test_instruction_str_uses_source_form():
    assert str(Instruction(Opcode.PUSH, -3)) == "Push -3"
    assert str(Instruction(Opcode.GETARG, 1)) == "GetArg 1"
    assert str(Instruction(Opcode.PRINTSTACK)) == "PrintStack"


def test_program_sequence_protocol():
    program = Program((Instruction(Opcode.PUSH, 1), Instruction(Opcode.PRINT)))
    assert len(program) == 2
    assert program[1].opcode is Opcode.PRINT
    assert [i.opcode for i in program] == [Opcode.PUSH, Opcode.PRINT]


def test_program_converts_lists_to_tuples():
    program = Program([Instruction(Opcode.NOOP)])
    assert isinstance(program.instructions, tuple)


def test_program_allows_target_at_end():
    """A target equal to the program length is the halt point."""
    program = Program((Instruction(Opcode.JUMP, 1),))
    assert len(program) == 1


def test_program_rejects_target_past_end():
    with pytest.raises(InvalidProgramError):
        Program((Instruction(Opcode.CALL, 5), Instruction(Opcode.RET)))


def test_program_rejects_non_instructions():
    with pytest.raises(InvalidProgramError):
        Program(("Push 1",))


def test_program_names_are_read_only():
    program = Program((Instruction(Opcode.NOOP),), labels={"start": 0})
    assert program.labels["start"] == 0
    assert program.names_at(0) == ("label start",)
    with pytest.raises(TypeError):
        program.labels["other"] = 0


def test_programs_hash_and_compare_by_instructions():
    instructions = (Instruction(Opcode.NOOP), Instruction(Opcode.JUMP, 0))
    named = Program(instructions, labels={"start": 0}, procedures={"f": 1})
    plain = Program(instructions)
    assert named == plain
    assert hash(named) == hash(plain)
    assert len({named, plain}) == 1
