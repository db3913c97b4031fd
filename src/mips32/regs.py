'''
mapeos nombre↔índice de registros MIPS, validaciones y banco de registros
'''

from __future__ import annotations
from typing import Dict, List

from .utils import u32

# Nombres convencionales en orden de índice 0..31
REG_NAMES: List[str] = [
    "$zero", "$at", "$v0", "$v1", "$a0", "$a1", "$a2", "$a3",
    "$t0", "$t1", "$t2", "$t3", "$t4", "$t5", "$t6", "$t7",
    "$s0", "$s1", "$s2", "$s3", "$s4", "$s5", "$s6", "$s7",
    "$t8", "$t9", "$k0", "$k1", "$gp", "$sp", "$fp", "$ra",
]

NAME_TO_NUM: Dict[str, int] = {name: i for i, name in enumerate(REG_NAMES)}
NAME_TO_NUM["$s8"] = 30   # alias de $fp

ZERO, AT, V0, V1, A0, A1, A2, A3 = range(8)
GP, SP, FP, RA = 28, 29, 30, 31

def is_reg(token: str) -> bool:
    """Indica si el token representa un registro válido (nombre o '$N')."""
    try:
        normalize_reg(token)
        return True
    except ValueError:
        return False

def normalize_reg(token: str) -> str:
    """Devuelve el nombre convencional ('$t0', '$sp', ...) o lanza ValueError."""
    t = token.strip().lower()
    if not t.startswith("$"):
        t = "$" + t
    if t in NAME_TO_NUM:
        return REG_NAMES[NAME_TO_NUM[t]]
    if t[1:].isdigit():
        n = int(t[1:])
        if 0 <= n <= 31:
            return REG_NAMES[n]
    raise ValueError(f"Registro inválido: {token}")

def reg_num(token: str) -> int:
    """Devuelve el índice numérico 0..31 del registro."""
    return NAME_TO_NUM[normalize_reg(token)]

def reg_name(num: int) -> str:
    if not 0 <= num <= 31:
        raise ValueError(f"Índice de registro fuera de rango: {num}")
    return REG_NAMES[num]


class RegisterFile:
    """32 registros de propósito general de 32 bits más HI/LO.

    El registro 0 siempre se lee como cero y las escrituras sobre él se
    descartan. No interpreta signos: eso es responsabilidad de cada instrucción.
    """

    def __init__(self) -> None:
        self._values = [0] * 32
        self.hi = 0
        self.lo = 0

    def read(self, index: int) -> int:
        if index == ZERO:
            return 0
        return self._values[index]

    def write(self, index: int, value: int) -> None:
        if index == ZERO:
            return
        self._values[index] = u32(value)

    def __getitem__(self, name: str) -> int:
        return self.read(reg_num(name))

    def __setitem__(self, name: str, value: int) -> None:
        self.write(reg_num(name), value)

    def snapshot(self) -> Dict[str, int]:
        regs = {name: self.read(i) for i, name in enumerate(REG_NAMES)}
        regs["hi"] = self.hi
        regs["lo"] = self.lo
        return regs
