# src/mips32/encoding.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .ast import SectionDirective, DataDirective, Instruction, Node, Reg, Imm, Sym, Mem, Operand
from .isa import ISpec, spec as isa_spec
from .layout import MemoryLayout, DEFAULT_LAYOUT
from .linker import natural_alignment, ELEMENT_SIZE
from .utils import u32, align_up, is_signed_nbit, is_unsigned_nbit, fits_nbit
from .diagnostics import Diagnostic, error, IMMEDIATE_OVERFLOW, UNRESOLVED_SYMBOL, SYNTAX_ERROR

# ---------------- Resultados de codificación ----------------

@dataclass(frozen=True)
class Encoded:
    word: int     # u32
    pc: int       # dirección de esta instrucción
    line: int
    col: int
    mnemonic: str

@dataclass(frozen=True)
class EncodeResult:
    words: List[Encoded]
    data: bytes = b""
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def text(self) -> bytes:
        """Segmento .text como bytes little-endian."""
        return b"".join(e.word.to_bytes(4, "little") for e in self.words)

# ---------------- Helpers de empaquetado de bits ----------------

def pack_r(opcode: int, rs: int, rt: int, rd: int, shamt: int, funct: int) -> int:
    return u32((opcode & 0x3F) << 26 |
               (rs & 0x1F) << 21 |
               (rt & 0x1F) << 16 |
               (rd & 0x1F) << 11 |
               (shamt & 0x1F) << 6 |
               (funct & 0x3F))

def pack_i(opcode: int, rs: int, rt: int, imm16: int) -> int:
    return u32((opcode & 0x3F) << 26 |
               (rs & 0x1F) << 21 |
               (rt & 0x1F) << 16 |
               (imm16 & 0xFFFF))

def pack_j(opcode: int, index26: int) -> int:
    return u32((opcode & 0x3F) << 26 | (index26 & 0x3FFFFFF))

# Rangos admitidos por los elementos de cada directiva de datos
_DATA_RANGE = {"byte": 8, "half": 16, "word": 32}

# ---------------- Codificador principal ----------------

def encode(
    nodes: List[Node],
    symtab: Dict[str, int],
    *,
    layout: MemoryLayout = DEFAULT_LAYOUT,
    filename: Optional[str] = None,
    auto_align: bool = True,
) -> EncodeResult:
    """
    Pasada 2: produce las palabras de .text y los bytes de .data.

    Recorre el IR igual que first_pass, de modo que las direcciones coinciden
    con las de la tabla de símbolos.
    """
    diags: List[Diagnostic] = []
    words: List[Encoded] = []
    data = bytearray()

    section = ".text"
    pc = layout.text_base    # LC de .text en bytes

    def _err(msg: str, n: Node, kind: str, hint: Optional[str] = None) -> None:
        diags.append(error(msg, kind=kind, line=n.line, col=n.col, file=filename, hint=hint))

    def _lookup(sym: Sym, n: Node) -> Optional[int]:
        addr = symtab.get(sym.name)
        if addr is None:
            _err(f"Símbolo no definido: {sym.name} (usado en la línea {n.line})", n, UNRESOLVED_SYMBOL,
                 hint="¿falta la etiqueta o está mal escrita?")
        return addr

    def _imm16(op: Operand, sp: ISpec, n: Instruction) -> int:
        if isinstance(op, Sym):
            addr = _lookup(op, n)
            if addr is None:
                return 0
            return (addr >> 16) & 0xFFFF if op.part == "hi" else addr & 0xFFFF
        assert isinstance(op, Imm)
        v = op.value
        if sp.imm == "unsigned":
            if not is_unsigned_nbit(v, 16):
                _err(f"{n.mnemonic}: inmediato {v} fuera de rango (0..65535)", n, IMMEDIATE_OVERFLOW)
        elif not is_signed_nbit(v, 16):
            _err(f"{n.mnemonic}: inmediato {v} fuera de rango (-32768..32767)", n, IMMEDIATE_OVERFLOW,
                 hint="usa 'li' en un registro temporal para valores grandes")
        return v & 0xFFFF

    def _branch_offset(op: Operand, cur_pc: int, n: Instruction) -> int:
        if isinstance(op, Imm):
            # Numérico: desplazamiento en palabras ya calculado
            off = op.value
        else:
            assert isinstance(op, Sym)
            addr = _lookup(op, n)
            if addr is None:
                return 0
            delta = addr - (cur_pc + 4)
            if delta % 4:
                _err(f"{n.mnemonic}: destino {op.name} no alineado a palabra", n, IMMEDIATE_OVERFLOW)
            off = delta >> 2
        if not is_signed_nbit(off, 16):
            _err(f"{n.mnemonic}: desplazamiento de salto fuera de rango ({off} palabras)", n, IMMEDIATE_OVERFLOW)
        return off & 0xFFFF

    def _jump_index(op: Operand, cur_pc: int, n: Instruction) -> int:
        if isinstance(op, Imm):
            target = op.value
        else:
            assert isinstance(op, Sym)
            addr = _lookup(op, n)
            if addr is None:
                return 0
            target = addr
        if target % 4 or not is_unsigned_nbit(target, 32):
            _err(f"{n.mnemonic}: destino {target:#x} no es una dirección de palabra válida", n, IMMEDIATE_OVERFLOW)
        elif (target & 0xF0000000) != ((cur_pc + 4) & 0xF0000000):
            _err(f"{n.mnemonic}: destino {target:#x} fuera de la región de 256 MiB del pc", n, IMMEDIATE_OVERFLOW)
        return (target >> 2) & 0x3FFFFFF

    def _instruction(n: Instruction, cur_pc: int) -> Optional[int]:
        try:
            sp = isa_spec(n.mnemonic)
        except KeyError:
            _err(f"Instrucción no válida (¿falta expandir pseudo?): {n.mnemonic}", n, SYNTAX_ERROR)
            return None
        if len(sp.fields) != len(n.operands):
            _err(f"{n.mnemonic}: se esperaban {len(sp.fields)} operandos", n, SYNTAX_ERROR)
            return None
        f = {"rs": 0, "rt": 0, "rd": 0, "shamt": 0, "imm": 0}
        for name, op in zip(sp.fields, n.operands):
            if name in ("rd", "rs", "rt"):
                assert isinstance(op, Reg)
                f[name] = op.num
            elif name == "shamt":
                assert isinstance(op, Imm)
                if not is_unsigned_nbit(op.value, 5):
                    _err(f"{n.mnemonic}: shamt {op.value} fuera de rango (0..31)", n, IMMEDIATE_OVERFLOW)
                f["shamt"] = op.value & 0x1F
            elif name == "imm":
                f["imm"] = _imm16(op, sp, n)
            elif name == "offset":
                f["imm"] = _branch_offset(op, cur_pc, n)
            elif name == "mem":
                assert isinstance(op, Mem)
                f["rs"] = op.base.num
                f["imm"] = _imm16(Imm(op.offset), sp, n)
            elif name == "target":
                return pack_j(sp.opcode, _jump_index(op, cur_pc, n))
        if sp.itype in ("R", "R2"):
            return pack_r(sp.opcode, f["rs"], f["rt"], f["rd"], f["shamt"], sp.funct or 0)
        return pack_i(sp.opcode, f["rs"], f["rt"], f["imm"])

    def _data(d: DataDirective) -> None:
        # relleno de alineación con ceros
        data.extend(bytes(align_up(len(data), natural_alignment(d, auto_align=auto_align)) - len(data)))
        if d.kind in ("ascii", "asciiz"):
            for s in d.args:
                data.extend(s)
                if d.kind == "asciiz":
                    data.append(0)
        elif d.kind == "space":
            data.extend(bytes(max(0, d.args[0])))
        elif d.kind in ELEMENT_SIZE:
            size = ELEMENT_SIZE[d.kind]
            for v in d.args:
                if isinstance(v, Sym):
                    v = _lookup(v, d) or 0
                elif not fits_nbit(v, _DATA_RANGE[d.kind]):
                    _err(f".{d.kind}: valor {v} no cabe en {size * 8} bits", d, IMMEDIATE_OVERFLOW)
                data.extend((v & ((1 << (size * 8)) - 1)).to_bytes(size, "little"))

    # --- recorrido principal ---
    for n in nodes:
        if isinstance(n, SectionDirective):
            section = n.name
            continue
        if isinstance(n, DataDirective):
            if section == ".data":
                _data(n)
            elif n.kind == "align":
                # padding de .text con palabras cero (= nop)
                end = layout.text_base + align_up(pc - layout.text_base, max(4, natural_alignment(n)))
                while pc < end:
                    words.append(Encoded(word=0, pc=pc, line=n.line, col=n.col, mnemonic=".align"))
                    pc += 4
            continue
        if not isinstance(n, Instruction) or section != ".text":
            # etiquetas y .globl ya fueron procesadas; errores de sección ya
            # reportados en first_pass
            continue

        word = _instruction(n, pc)
        words.append(Encoded(word=word if word is not None else 0, pc=pc, line=n.line, col=n.col,
                             mnemonic=n.mnemonic))
        pc += 4

    return EncodeResult(words=words, data=bytes(data), diagnostics=diags)
