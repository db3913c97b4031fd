import pytest
from src.mips32.parser import parse
from src.mips32.pseudo import expand
from src.mips32.ast import Instruction, Reg, Imm, Sym, Mem

ZERO = Reg("$zero", 0)
AT = Reg("$at", 1)
T0 = Reg("$t0", 8)
T1 = Reg("$t1", 9)
T2 = Reg("$t2", 10)

def _expand(src):
    nodes, diags = parse(src)
    assert not diags
    out, diags = expand(nodes)
    return [n for n in out if isinstance(n, Instruction)], diags

def _mnems(ins):
    return [n.mnemonic for n in ins]

@pytest.mark.parametrize("value, mnems", [
    (5, ["addiu"]),
    (-5, ["addiu"]),
    (-32768, ["addiu"]),
    (0xFFFF, ["ori"]),
    (100000, ["lui", "ori"]),
    (0xFFFFFFFF, ["lui", "ori"]),
    (-100000, ["lui", "ori"]),
])
def test_li_sizes(value, mnems):
    ins, diags = _expand(f"li $t0, {value}\n")
    assert not diags
    assert _mnems(ins) == mnems

def test_li_large_splits_hi_lo():
    ins, _ = _expand("li $t0, 100000\n")
    assert ins[0].operands == [T0, Imm(0x1)]
    assert ins[1].operands == [T0, T0, Imm(0x86A0)]

def test_li_beyond_32_bits_is_overflow():
    _, diags = _expand("li $t0, 0x100000000\n")
    assert [d.kind for d in diags] == ["ImmediateOverflowError"]

def test_la_uses_symbol_halves():
    ins, _ = _expand("la $a0, msg\n")
    a0 = Reg("$a0", 4)
    assert _mnems(ins) == ["lui", "ori"]
    assert ins[0].operands == [a0, Sym("msg", "hi")]
    assert ins[1].operands == [a0, a0, Sym("msg", "lo")]

def test_simple_aliases():
    ins, _ = _expand("move $t0, $t1\nnop\nnot $t0, $t1\nneg $t0, $t1\n")
    assert _mnems(ins) == ["addu", "sll", "nor", "sub"]
    assert ins[0].operands == [T0, T1, ZERO]
    assert ins[1].operands == [ZERO, ZERO, Imm(0)]
    assert ins[3].operands == [T0, ZERO, T1]

@pytest.mark.parametrize("src, slt_ops, branch", [
    ("blt $t0, $t1, L", [AT, T0, T1], "bne"),
    ("bge $t0, $t1, L", [AT, T0, T1], "beq"),
    ("bgt $t0, $t1, L", [AT, T1, T0], "bne"),
    ("ble $t0, $t1, L", [AT, T1, T0], "beq"),
])
def test_compare_and_branch(src, slt_ops, branch):
    ins, _ = _expand(src + "\n")
    assert _mnems(ins) == ["slt", branch]
    assert ins[0].operands == slt_ops
    assert ins[1].operands == [AT, ZERO, Sym("L")]

def test_branch_zero_forms():
    ins, _ = _expand("b L\nbeqz $t0, L\nbnez $t1, 3\n")
    assert _mnems(ins) == ["beq", "beq", "bne"]
    assert ins[0].operands == [ZERO, ZERO, Sym("L")]
    assert ins[2].operands == [T1, ZERO, Imm(3)]

def test_three_operand_div():
    ins, _ = _expand("div $t0, $t1, $t2\ndivu $t0, $t1, $t2\ndiv $t1, $t2\n")
    assert _mnems(ins) == ["div", "mflo", "divu", "mflo", "div"]
    assert ins[0].operands == [T1, T2]
    assert ins[1].operands == [T0]

def test_jalr_single_register():
    ins, _ = _expand("jalr $t0\njalr $t1, $t0\n")
    assert ins[0].operands == [Reg("$ra", 31), T0]
    assert ins[1].operands == [T1, T0]

def test_load_store_with_symbol():
    ins, _ = _expand("lw $t0, val\nsb $t1, val\nlw $t2, 4($sp)\n")
    assert _mnems(ins) == ["lui", "ori", "lw", "lui", "ori", "sb", "lw"]
    assert ins[2].operands == [T0, Mem(AT, 0)]
    assert ins[0].operands == [AT, Sym("val", "hi")]

def test_expansion_keeps_source_position():
    ins, _ = _expand("nop\n  li $t0, 100000\n")
    assert [(i.line, i.col) for i in ins] == [(1, 1), (2, 3), (2, 3)]
