'''
tabla formal MIPS32 (opcodes, funct, campos y formas de operandos)
'''

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

@dataclass(frozen=True)
class ISpec:
    """Especificación de una instrucción MIPS32 real.

    - itype: 'R' (SPECIAL), 'R2' (SPECIAL2), 'I', 'J'
    - opcode: campo de 6 bits; funct: 6 bits para R/R2
    - fields: orden de los operandos en el fuente, por nombre de campo
      ('rd','rs','rt','shamt','imm','offset','target','mem')
    - imm: interpretación del inmediato de 16 bits ('signed' o 'unsigned')
    """
    itype: str
    opcode: int
    funct: Optional[int] = None
    fields: Tuple[str, ...] = ()
    imm: Optional[str] = None

    @property
    def form(self) -> str:
        return ",".join(FIELD_KIND[f] for f in self.fields) or "none"

# Tipo de operando sintáctico que admite cada campo
FIELD_KIND: Dict[str, str] = {
    "rd": "reg", "rs": "reg", "rt": "reg",
    "shamt": "imm", "imm": "imm",
    "offset": "target", "target": "target",
    "mem": "mem",
}

# Constantes de opcode
OP_SPECIAL  = 0x00
OP_SPECIAL2 = 0x1C
OP_J        = 0x02
OP_JAL      = 0x03

SPEC: Dict[str, ISpec] = {}

def _add(name: str, spec: ISpec) -> None:
    SPEC[name] = spec

# Tipo R (SPECIAL)
for _name, _funct in (("add", 0x20), ("addu", 0x21), ("sub", 0x22), ("subu", 0x23),
                      ("and", 0x24), ("or", 0x25), ("xor", 0x26), ("nor", 0x27),
                      ("slt", 0x2A), ("sltu", 0x2B)):
    _add(_name, ISpec("R", OP_SPECIAL, _funct, ("rd", "rs", "rt")))

# Desplazamientos: shamt inmediato o variable (nótese rt antes que rs)
_add("sll",  ISpec("R", OP_SPECIAL, 0x00, ("rd", "rt", "shamt")))
_add("srl",  ISpec("R", OP_SPECIAL, 0x02, ("rd", "rt", "shamt")))
_add("sra",  ISpec("R", OP_SPECIAL, 0x03, ("rd", "rt", "shamt")))
_add("sllv", ISpec("R", OP_SPECIAL, 0x04, ("rd", "rt", "rs")))
_add("srlv", ISpec("R", OP_SPECIAL, 0x06, ("rd", "rt", "rs")))
_add("srav", ISpec("R", OP_SPECIAL, 0x07, ("rd", "rt", "rs")))

# Saltos por registro y sistema
_add("jr",      ISpec("R", OP_SPECIAL, 0x08, ("rs",)))
_add("jalr",    ISpec("R", OP_SPECIAL, 0x09, ("rd", "rs")))
_add("syscall", ISpec("R", OP_SPECIAL, 0x0C, ()))

# HI/LO, multiplicación y división
_add("mfhi",  ISpec("R", OP_SPECIAL, 0x10, ("rd",)))
_add("mflo",  ISpec("R", OP_SPECIAL, 0x12, ("rd",)))
_add("mult",  ISpec("R", OP_SPECIAL, 0x18, ("rs", "rt")))
_add("multu", ISpec("R", OP_SPECIAL, 0x19, ("rs", "rt")))
_add("div",   ISpec("R", OP_SPECIAL, 0x1A, ("rs", "rt")))
_add("divu",  ISpec("R", OP_SPECIAL, 0x1B, ("rs", "rt")))

# SPECIAL2
_add("mul", ISpec("R2", OP_SPECIAL2, 0x02, ("rd", "rs", "rt")))

# Tipo I (ALU inmediatos)
_add("addi",  ISpec("I", 0x08, fields=("rt", "rs", "imm"), imm="signed"))
_add("addiu", ISpec("I", 0x09, fields=("rt", "rs", "imm"), imm="signed"))
_add("slti",  ISpec("I", 0x0A, fields=("rt", "rs", "imm"), imm="signed"))
_add("sltiu", ISpec("I", 0x0B, fields=("rt", "rs", "imm"), imm="signed"))
_add("andi",  ISpec("I", 0x0C, fields=("rt", "rs", "imm"), imm="unsigned"))
_add("ori",   ISpec("I", 0x0D, fields=("rt", "rs", "imm"), imm="unsigned"))
_add("xori",  ISpec("I", 0x0E, fields=("rt", "rs", "imm"), imm="unsigned"))
_add("lui",   ISpec("I", 0x0F, fields=("rt", "imm"), imm="unsigned"))

# Saltos condicionales
_add("beq",  ISpec("I", 0x04, fields=("rs", "rt", "offset"), imm="signed"))
_add("bne",  ISpec("I", 0x05, fields=("rs", "rt", "offset"), imm="signed"))
_add("blez", ISpec("I", 0x06, fields=("rs", "offset"), imm="signed"))
_add("bgtz", ISpec("I", 0x07, fields=("rs", "offset"), imm="signed"))

# Cargas y almacenes
_add("lb",  ISpec("I", 0x20, fields=("rt", "mem"), imm="signed"))
_add("lh",  ISpec("I", 0x21, fields=("rt", "mem"), imm="signed"))
_add("lw",  ISpec("I", 0x23, fields=("rt", "mem"), imm="signed"))
_add("lbu", ISpec("I", 0x24, fields=("rt", "mem"), imm="signed"))
_add("lhu", ISpec("I", 0x25, fields=("rt", "mem"), imm="signed"))
_add("sb",  ISpec("I", 0x28, fields=("rt", "mem"), imm="signed"))
_add("sh",  ISpec("I", 0x29, fields=("rt", "mem"), imm="signed"))
_add("sw",  ISpec("I", 0x2B, fields=("rt", "mem"), imm="signed"))

# Tipo J
_add("j",   ISpec("J", OP_J,   fields=("target",)))
_add("jal", ISpec("J", OP_JAL, fields=("target",)))

LOADS = {"lb", "lh", "lw", "lbu", "lhu"}
STORES = {"sb", "sh", "sw"}
BRANCHES = {"beq", "bne", "blez", "bgtz"}

# Formas aceptadas en el fuente para pseudoinstrucciones (y formas extra de
# instrucciones reales que también se expanden).
PSEUDO_FORMS: Dict[str, List[str]] = {
    "li":   ["reg,imm"],
    "la":   ["reg,sym"],
    "move": ["reg,reg"],
    "nop":  ["none"],
    "not":  ["reg,reg"],
    "neg":  ["reg,reg"],
    "b":    ["target"],
    "beqz": ["reg,target"],
    "bnez": ["reg,target"],
    "blt":  ["reg,reg,target"],
    "ble":  ["reg,reg,target"],
    "bgt":  ["reg,reg,target"],
    "bge":  ["reg,reg,target"],
    "div":  ["reg,reg,reg"],
    "divu": ["reg,reg,reg"],
    "jalr": ["reg"],
}
for _name in LOADS | STORES:
    PSEUDO_FORMS[_name] = ["reg,sym"]

# Formas de las directivas de datos ('*' = uno o más, separados por comas)
DATA_FORMS: Dict[str, str] = {
    ".align": "imm",
    ".space": "imm",
    ".ascii": "str*",
    ".asciiz": "str*",
    ".byte": "imm*",
    ".half": "imm*",
    ".word": "word*",
}

def spec(mnemonic: str) -> ISpec:
    """Devuelve la especificación de una instrucción real por mnemónico."""
    m = mnemonic.lower()
    if m not in SPEC:
        raise KeyError(f"Instrucción desconocida: {mnemonic}")
    return SPEC[m]

def is_known(mnemonic: str) -> bool:
    m = mnemonic.lower()
    return m in SPEC or m in PSEUDO_FORMS

def forms(mnemonic: str) -> List[str]:
    """Todas las formas de operandos aceptadas por un mnemónico (real o pseudo)."""
    m = mnemonic.lower()
    out: List[str] = []
    if m in SPEC:
        out.append(SPEC[m].form)
    out.extend(PSEUDO_FORMS.get(m, []))
    if not out:
        raise KeyError(f"Instrucción desconocida: {mnemonic}")
    return out

# Índices inversos para el decodificador
BY_FUNCT: Dict[int, str] = {s.funct: n for n, s in SPEC.items() if s.itype == "R"}
BY_FUNCT2: Dict[int, str] = {s.funct: n for n, s in SPEC.items() if s.itype == "R2"}
BY_OPCODE: Dict[int, str] = {s.opcode: n for n, s in SPEC.items() if s.itype in ("I", "J")}
