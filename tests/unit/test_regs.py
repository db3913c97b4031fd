import pytest
from src.mips32.regs import normalize_reg, reg_num, reg_name, is_reg, RegisterFile

@pytest.mark.parametrize("token, name, num", [
    ("$t0", "$t0", 8),
    ("$SP", "$sp", 29),
    ("ra", "$ra", 31),
    ("$8", "$t0", 8),
    ("$0", "$zero", 0),
    ("$s8", "$fp", 30),
])
def test_names_and_numbers(token, name, num):
    assert normalize_reg(token) == name
    assert reg_num(token) == num
    assert is_reg(token)

@pytest.mark.parametrize("bad", ["$32", "$t10", "$foo", "x1"])
def test_invalid(bad):
    assert not is_reg(bad)
    with pytest.raises(ValueError):
        normalize_reg(bad)

def test_reg_name_range():
    assert reg_name(2) == "$v0"
    with pytest.raises(ValueError):
        reg_name(32)

def test_zero_register_is_hardwired():
    rf = RegisterFile()
    rf.write(0, 1234)
    rf["$zero"] = 99
    assert rf.read(0) == 0
    assert rf["$zero"] == 0

def test_writes_are_masked_to_32_bits():
    rf = RegisterFile()
    rf.write(8, -1)
    assert rf["$t0"] == 0xFFFFFFFF
    rf["$t1"] = 0x1_0000_0005
    assert rf.read(9) == 5

def test_snapshot_includes_hi_lo():
    rf = RegisterFile()
    rf.hi, rf.lo = 1, 2
    snap = rf.snapshot()
    assert snap["hi"] == 1 and snap["lo"] == 2
    assert len(snap) == 34
