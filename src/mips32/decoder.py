'''
decodificación de palabras de 32 bits a campos de instrucción MIPS
'''

from __future__ import annotations
from dataclasses import dataclass

from . import isa
from .faults import IllegalInstructionError
from .regs import reg_name
from .utils import R_FIELDS, split_bits, sign_extend

@dataclass(frozen=True)
class Decoded:
    word: int
    mnemonic: str
    opcode: int
    rs: int
    rt: int
    rd: int
    shamt: int
    funct: int

    @property
    def imm(self) -> int:
        """Inmediato de 16 bits sin extender."""
        return self.word & 0xFFFF

    @property
    def simm(self) -> int:
        """Inmediato de 16 bits con extensión de signo."""
        return sign_extend(self.word & 0xFFFF, 16)

    @property
    def index(self) -> int:
        """Índice de 26 bits de los saltos J."""
        return self.word & 0x3FFFFFF

def decode(word: int) -> Decoded:
    opcode, rs, rt, rd, shamt, funct = split_bits(word, R_FIELDS)
    if opcode == isa.OP_SPECIAL:
        mnemonic = isa.BY_FUNCT.get(funct)
    elif opcode == isa.OP_SPECIAL2:
        mnemonic = isa.BY_FUNCT2.get(funct)
    else:
        mnemonic = isa.BY_OPCODE.get(opcode)
    if mnemonic is None:
        raise IllegalInstructionError(word)
    return Decoded(word, mnemonic, opcode, rs, rt, rd, shamt, funct)

def disassemble(d: Decoded, pc: int = 0) -> str:
    """Texto legible de una instrucción decodificada (para trazas)."""
    sp = isa.spec(d.mnemonic)
    parts = []
    for f in sp.fields:
        if f in ("rd", "rs", "rt"):
            parts.append(reg_name(getattr(d, f)))
        elif f == "shamt":
            parts.append(str(d.shamt))
        elif f == "imm":
            parts.append(str(d.simm if sp.imm == "signed" else d.imm))
        elif f == "offset":
            parts.append(f"{pc + 4 + (d.simm << 2):#010x}")
        elif f == "target":
            parts.append(f"{((pc + 4) & 0xF0000000) | (d.index << 2):#010x}")
        elif f == "mem":
            parts.append(f"{d.simm}({reg_name(d.rs)})")
    if d.word == 0:
        return "nop"
    return f"{d.mnemonic} {', '.join(parts)}".rstrip()
