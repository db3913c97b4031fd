import pytest
from src.mips32.memory import Memory
from src.mips32.mmio import MMIOBus, Keyboard, Display
from src.mips32.layout import DEFAULT_LAYOUT, MemoryLayout
from src.mips32.program import Program
from src.mips32.faults import AlignmentError, SegmentationFault

DATA = DEFAULT_LAYOUT.data_base

def test_word_is_little_endian():
    m = Memory()
    m.store_word(DATA, 0x11223344)
    assert m.read_bytes(DATA, 4) == b"\x44\x33\x22\x11"
    assert m.load(DATA, 1) == 0x44
    assert m.load(DATA + 2, 2) == 0x1122
    assert m.load_word(DATA) == 0x11223344

@pytest.mark.parametrize("raw, width, signed, value", [
    (b"\x80", 1, True, 0xFFFFFF80),
    (b"\x80", 1, False, 0x80),
    (b"\x01\x80", 2, True, 0xFFFF8001),
    (b"\x01\x80", 2, False, 0x8001),
    (b"\x7f", 1, True, 0x7F),
])
def test_sign_extension(raw, width, signed, value):
    m = Memory()
    m.write_bytes(DATA, raw)
    assert m.load(DATA, width, signed=signed) == value

def test_store_truncates_to_width():
    m = Memory()
    m.store(DATA, 1, 0x1FF)
    m.store(DATA + 2, 2, -1)
    assert m.read_bytes(DATA, 4) == b"\xff\x00\xff\xff"

@pytest.mark.parametrize("address, width", [(DATA + 1, 4), (DATA + 2, 4), (DATA + 1, 2)])
def test_misaligned_access(address, width):
    m = Memory()
    with pytest.raises(AlignmentError) as ei:
        m.load(address, width)
    assert ei.value.address == address and ei.value.width == width
    with pytest.raises(AlignmentError):
        m.store(address, width, 0)

@pytest.mark.parametrize("address", [0x0, 0x00300000, 0x20000000, DEFAULT_LAYOUT.stack_top, 0xfffe0000])
def test_unmapped_addresses(address):
    m = Memory()
    with pytest.raises(SegmentationFault) as ei:
        m.load_word(address)
    assert ei.value.address == address

def test_segments_are_usable():
    m = Memory()
    for addr in (DEFAULT_LAYOUT.text_base, DATA, DEFAULT_LAYOUT.heap_base, DEFAULT_LAYOUT.stack_pointer):
        m.store_word(addr, 0xCAFEBABE)
        assert m.load_word(addr) == 0xCAFEBABE
    assert [s.name for s in m.segments] == [".text", ".data", ".heap", ".stack"]

def test_block_access_cannot_straddle_segment_end():
    layout = MemoryLayout(data_size=0x10, heap_base=0x10020000)
    m = Memory(layout)
    with pytest.raises(SegmentationFault):
        m.read_bytes(layout.data_base + 0xE, 4)

def test_read_cstring():
    m = Memory()
    m.write_bytes(DATA, b"hola\x00resto")
    assert m.read_cstring(DATA) == b"hola"
    assert m.read_cstring(DATA + 2) == b"la"
    assert m.read_cstring(DATA + 4) == b""

def test_read_cstring_without_nul_faults():
    layout = MemoryLayout(data_size=0x8, heap_base=0x10020000)
    m = Memory(layout)
    m.write_bytes(layout.data_base, b"abcdefgh")
    with pytest.raises(SegmentationFault):
        m.read_cstring(layout.data_base)

def test_load_program():
    prog = Program(text_base=DEFAULT_LAYOUT.text_base, text=b"\x0c\x00\x00\x00",
                   data_base=DATA, data=b"hi\x00")
    m = Memory()
    m.load_program(prog)
    assert m.load_word(DEFAULT_LAYOUT.text_base) == 0x0C
    assert m.read_cstring(DATA) == b"hi"

def test_load_program_too_big():
    layout = MemoryLayout(data_size=0x4, heap_base=0x10020000)
    prog = Program(text_base=layout.text_base, text=b"", data_base=layout.data_base, data=bytes(8))
    with pytest.raises(SegmentationFault):
        Memory(layout).load_program(prog)

def test_mmio_routing():
    kb, disp = Keyboard(), Display()
    m = Memory(mmio=MMIOBus(kb, disp))
    base = DEFAULT_LAYOUT.mmio_base
    assert m.load_word(base) == 0            # receptor no listo
    kb.feed(b"z")
    assert m.load_word(base) == 1
    assert m.load_word(base + 4) == ord("z")
    assert m.load_word(base + 8) == 1        # transmisor listo
    m.store_word(base + 12, ord("!"))
    assert disp.output == bytearray(b"!")

def test_mmio_unmapped_register():
    m = Memory()
    with pytest.raises(SegmentationFault):
        m.load_word(DEFAULT_LAYOUT.mmio_base + 0x10)
