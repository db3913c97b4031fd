from src.mips32.parser import parse
from src.mips32.pseudo import expand
from src.mips32.linker import first_pass
from src.mips32.layout import MemoryLayout

def _link(src, **kw):
    nodes, diags = parse(src)
    assert not diags
    nodes, diags = expand(nodes)
    assert not diags
    return first_pass(nodes, **kw)

def test_labels_and_text_size():
    src = """
    .text
    main:
      li $t0, 100000     # 2 instrucciones
      add $t1, $t0, $t0
    loop:
      beq $t1, $zero, loop
    """
    r = _link(src)
    assert r.symtab["main"] == 0x00400000
    assert r.symtab["loop"] == 0x0040000C
    assert r.text_size == 16
    assert r.text_base == 0x00400000 and r.data_base == 0x10010000

def test_data_layout_with_auto_align():
    src = """
    .data
    a: .byte 1
    b: .word 7
    c: .asciiz "hi"
    d: .half 3
    e: .space 3
    f: .ascii "xy"
    g: .align 2
    h: .word 0
    """
    r = _link(src)
    base = 0x10010000
    assert r.symtab["a"] == base
    assert r.symtab["b"] == base + 4      # .word alineado a 4
    assert r.symtab["c"] == base + 8
    assert r.symtab["d"] == base + 12     # .half alineado a 2
    assert r.symtab["e"] == base + 14
    assert r.symtab["f"] == base + 17
    assert r.symtab["g"] == base + 20
    assert r.symtab["h"] == base + 20
    assert r.data_size == 24

def test_multiple_strings_each_get_nul():
    r = _link('.data\ns: .asciiz "a", "bc"\nt: .byte 0\n')
    assert r.symtab["t"] - r.symtab["s"] == 5

def test_trailing_label_in_data():
    r = _link(".data\n.byte 1, 2, 3\nend:\n.text\nmain: nop\n")
    assert r.symtab["end"] == 0x10010003
    assert r.symtab["main"] == 0x00400000

def test_align_in_text_pads():
    r = _link(".text\nnop\n.align 3\nx: nop\n")
    assert r.symtab["x"] == 0x00400008
    assert r.text_size == 12

def test_default_section_is_text():
    r = _link("start: nop\n")
    assert r.symtab["start"] == 0x00400000

def test_custom_layout():
    layout = MemoryLayout(text_base=0x1000, data_base=0x2000)
    r = _link(".data\nv: .word 1\n.text\nmain: nop\n", layout=layout)
    assert r.symtab == {"v": 0x2000, "main": 0x1000}

def test_globals_recorded():
    r = _link(".globl main\n.globl other\n.text\nmain: nop\n")
    assert r.globals == ["main", "other"]
    assert any("other" in d.message and not d.is_error for d in r.diagnostics)

def test_duplicate_label():
    r = _link(".text\nL: nop\nL: nop   # redefinición\n.data\nL: .word 1\n")
    dups = [d for d in r.diagnostics if d.kind == "DuplicateLabelError"]
    assert len(dups) == 2
    assert dups[0].line == 3
    assert r.symtab["L"] == 0x00400000

def test_section_misuse_errors():
    r = _link(".text\n.word 1\n.data\nadd $t0, $t1, $t2\n")
    assert [d.kind for d in r.diagnostics] == ["SyntaxError", "SyntaxError"]
    assert r.text_size == 0 and r.data_size == 0

def test_align_out_of_range():
    r = _link(".data\n.align 17\n")
    assert [d.kind for d in r.diagnostics] == ["ImmediateOverflowError"]

def test_data_larger_than_segment():
    r = _link(".data\nbuf: .space 200000\nx: .word 1\n.text\nmain: nop\n")
    errs = [d for d in r.diagnostics if d.is_error]
    assert len(errs) == 1              # se reporta una vez por sección
    assert errs[0].kind == "ImmediateOverflowError"
    assert errs[0].line == 2 and ".data" in errs[0].message

def test_text_larger_than_segment():
    layout = MemoryLayout(text_size=8)
    r = _link(".text\nmain: nop\nnop\nnop\nnop\n", layout=layout)
    errs = [d for d in r.diagnostics if d.is_error]
    assert [(d.kind, d.line) for d in errs] == [("ImmediateOverflowError", 4)]
    assert ".text" in errs[0].message

def test_data_exactly_filling_segment_is_fine():
    layout = MemoryLayout(data_size=8)
    r = _link(".data\nv: .word 1, 2\n", layout=layout)
    assert not r.diagnostics
