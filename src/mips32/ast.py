'''
dataclases del IR (directivas, Label, Instruction) y de los operandos
'''

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Union, Optional, Literal

# ---- Nodos a nivel de fuente (IR) ----

@dataclass(frozen=True)
class SectionDirective:
    """Cambio de sección: '.text' o '.data'."""
    name: str
    line: int
    col: int
    section: Optional[str] = None

@dataclass(frozen=True)
class DataDirective:
    """Directiva que emite o reserva bytes (p.ej., '.word 1, 2, 3').

    kind: 'align', 'asciiz', 'ascii', 'word', 'half', 'byte' o 'space'.
    args: enteros, bytes (cadenas ya decodificadas) o Sym (sólo en .word).
    """
    kind: str
    args: List[Union[int, bytes, 'Sym']]
    line: int
    col: int
    section: Optional[str] = None

    @property
    def name(self) -> str:
        return "." + self.kind

@dataclass(frozen=True)
class GlobalDirective:
    """'.globl símbolo' (sólo metadato; no afecta al layout)."""
    symbol: str
    line: int
    col: int
    section: Optional[str] = None

@dataclass(frozen=True)
class Label:
    """Etiqueta en el código fuente (p.ej., 'loop:')."""
    name: str
    line: int
    col: int
    section: Optional[str] = None

@dataclass(frozen=True)
class Instruction:
    """Instrucción con mnemónico y operandos tipados."""
    mnemonic: str
    operands: List['Operand']
    line: int
    col: int
    section: Optional[str] = None

Node = Union[SectionDirective, DataDirective, GlobalDirective, Label, Instruction]

# ---- Operandos ----

@dataclass(frozen=True)
class Reg:
    """Registro con nombre convencional ('$t0') y su índice 0..31."""
    name: str
    num: int

@dataclass(frozen=True)
class Imm:
    """Inmediato numérico (decimal, 0x.., 0b.. o carácter)."""
    value: int

@dataclass(frozen=True)
class Mem:
    """Dirección base+desplazamiento: offset(base)."""
    base: Reg
    offset: int = 0

@dataclass(frozen=True)
class Str:
    """Literal de cadena ya decodificado a bytes (sin comillas)."""
    value: bytes

@dataclass(frozen=True)
class Sym:
    """Símbolo (etiqueta) referenciado; part elige la mitad alta/baja de la dirección."""
    name: str
    part: Optional[Literal["hi", "lo"]] = None

Operand = Union[Reg, Imm, Mem, Str, Sym]

_KIND = {Reg: "reg", Imm: "imm", Mem: "mem", Str: "str", Sym: "sym"}

def operand_kind(op: Operand) -> str:
    """Nombre del tipo sintáctico de un operando ('reg', 'imm', 'mem', 'str', 'sym')."""
    return _KIND[type(op)]
