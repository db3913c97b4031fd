import pytest
from src.mips32.isa import spec, forms, is_known, BY_FUNCT, BY_FUNCT2, BY_OPCODE

def test_core_instructions_present():
    assert spec("add").opcode == 0x00 and spec("add").funct == 0x20
    assert spec("addiu").opcode == 0x09
    assert spec("lw").opcode == 0x23
    assert spec("sw").opcode == 0x2B
    assert spec("beq").opcode == 0x04
    assert spec("bne").opcode == 0x05
    assert spec("j").opcode == 0x02
    assert spec("jal").opcode == 0x03
    assert spec("lui").opcode == 0x0F
    assert spec("syscall").funct == 0x0C
    assert spec("mul").opcode == 0x1C and spec("mul").funct == 0x02

def test_immediate_kinds():
    assert spec("addi").imm == "signed"
    assert spec("slti").imm == "signed"
    assert spec("andi").imm == "unsigned"
    assert spec("ori").imm == "unsigned"
    assert spec("lui").imm == "unsigned"

@pytest.mark.parametrize("mnemonic, expected", [
    ("add", ["reg,reg,reg"]),
    ("sll", ["reg,reg,imm"]),
    ("lw", ["reg,mem", "reg,sym"]),
    ("beq", ["reg,reg,target"]),
    ("syscall", ["none"]),
    ("li", ["reg,imm"]),
    ("div", ["reg,reg", "reg,reg,reg"]),
    ("jalr", ["reg,reg", "reg"]),
])
def test_forms(mnemonic, expected):
    assert forms(mnemonic) == expected

def test_unknown():
    assert not is_known("addx")
    with pytest.raises(KeyError):
        spec("li")  # pseudo: no tiene codificación propia
    with pytest.raises(KeyError):
        forms("frob")

def test_reverse_maps():
    assert BY_FUNCT[0x20] == "add"
    assert BY_FUNCT[0x0C] == "syscall"
    assert BY_FUNCT2[0x02] == "mul"
    assert BY_OPCODE[0x23] == "lw"
    assert BY_OPCODE[0x03] == "jal"
