import pytest

from stackvm.assembler import assemble, assemble_file, tokenize_line
from stackvm.core.instruction import Instruction, Opcode
from stackvm.errors import AssemblyError


def test_tokenize_drops_trailing_comment():
    assert tokenize_line("  Push -3   -- minus three") == ["Push", "-3"]
    assert tokenize_line("-- whole line") == []
    assert tokenize_line("") == []


def test_simple_program():
    program = assemble("Push 1\nPush 2\nAdd\nPrint\n")
    assert list(program) == [
        Instruction(Opcode.PUSH, 1),
        Instruction(Opcode.PUSH, 2),
        Instruction(Opcode.ADD),
        Instruction(Opcode.PRINT),
    ]


def test_blank_and_comment_lines_keep_line_alignment():
    """Instruction i always comes from source line i + 1."""
    source = "-- header\n\nPush 5\n   \nPrint"
    program = assemble(source)
    assert len(program) == 5
    assert program[0] == Instruction(Opcode.NOOP)
    assert program[1] == Instruction(Opcode.NOOP)
    assert program[2] == Instruction(Opcode.PUSH, 5)
    assert program[3] == Instruction(Opcode.NOOP)


def test_labels_resolve_to_their_own_line():
    source = """Push 3
label loop
Decr
Get 0
JNE loop
Jump loop"""
    program = assemble(source)
    assert program[1] == Instruction(Opcode.NOOP)
    assert program[4] == Instruction(Opcode.JNE, 1)
    assert program[5] == Instruction(Opcode.JUMP, 1)
    assert program.labels == {"loop": 1}


def test_forward_label_reference():
    program = assemble("Jump skip\nPush 1\nlabel skip")
    assert program[0] == Instruction(Opcode.JUMP, 2)


def test_proc_compiles_to_jump_past_end():
    source = """Proc double
GetArg 0
Push 2
Mul
SetArg 0
Ret
End
Push 21
Call double"""
    program = assemble(source)
    assert program[0] == Instruction(Opcode.JUMP, 7)
    assert program[6] == Instruction(Opcode.NOOP)
    assert program[8] == Instruction(Opcode.CALL, 1)
    assert program.procedures == {"double": 1}


def test_proc_at_end_of_file_jumps_to_halt():
    program = assemble("Proc f\nRet\nEnd")
    assert program[0] == Instruction(Opcode.JUMP, 3)
    assert len(program) == 3


def test_labels_and_procedures_have_separate_namespaces():
    source = """Call f
Jump f
Proc f
Ret
End
label f"""
    program = assemble(source)
    assert program[0] == Instruction(Opcode.CALL, 3)
    assert program[1] == Instruction(Opcode.JUMP, 5)


@pytest.mark.parametrize(
    "source, message, line_number",
    [
        ("Push 1\nFrobnicate", "Unknown instruction", 2),
        ("push 1", "Unknown instruction", 1),
        ("Push", "expects 1 operand", 1),
        ("Add 3", "expects 0 operands", 1),
        ("Push x", "Expected an integer", 1),
        ("Push 1_000", "Expected an integer", 1),
        ("Push \u0661\u0662", "Expected an integer", 1),
        ("Noop\nGet \uff13", "Expected an integer", 2),
        ("Get -1", "non-negative", 1),
        ("Jump nowhere", "Undefined label", 1),
        ("Call nowhere", "Undefined procedure", 1),
        ("label a\nlabel a", "Duplicate label", 2),
        ("Proc f\nEnd\nProc f\nEnd", "Duplicate procedure", 3),
        ("Proc f\nProc g\nEnd\nEnd", "nested", 2),
        ("Ret\nEnd", "End without a matching Proc", 2),
        ("Push 1\nProc f\nRet", "has no End", 2),
        ("label", "expects 1 operand", 1),
    ],
)
def test_assembly_errors_report_line(source, message, line_number):
    with pytest.raises(AssemblyError, match=message) as excinfo:
        assemble(source)
    assert excinfo.value.line_number == line_number
    assert f"line {line_number}" in str(excinfo.value)


def test_integer_operands_accept_explicit_sign():
    program = assemble("Push +5\nPush -12\nGet 007")
    assert [instr.operand for instr in program] == [5, -12, 7]


def test_assemble_file(tmp_path):
    path = tmp_path / "prog.svm"
    path.write_text("Push 4\nPrint\n", encoding="utf-8")
    program = assemble_file(path)
    assert len(program) == 2


def test_assemble_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        assemble_file(tmp_path / "missing.svm")
