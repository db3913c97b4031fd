'''
 aritmética de palabras MIPS (u32/s32, extensión de signo, rangos de
 inmediatos, alineación y campos de instrucción)
'''

from __future__ import annotations
from typing import Tuple

WORD_BITS = 32
WORD_MASK = (1 << WORD_BITS) - 1

# Campos de una palabra R-type como (hi, lo) inclusivos:
# opcode, rs, rt, rd, shamt, funct
R_FIELDS = ((31, 26), (25, 21), (20, 16), (15, 11), (10, 6), (5, 0))

def u32(x: int) -> int:
    """Trunca a una palabra sin signo (lo que guarda un registro)."""
    return x & WORD_MASK

def s32(x: int) -> int:
    """Lee la palabra baja de x en complemento a dos."""
    return sign_extend(x, WORD_BITS)

def sign_extend(x: int, bits: int) -> int:
    """Extiende el signo de un campo de 'bits' bits (p.ej. imm16 → int)."""
    if bits <= 0:
        raise ValueError("bits debe ser positivo")
    x &= (1 << bits) - 1
    if x >> (bits - 1):
        x -= 1 << bits
    return x

def _check_width(n: int) -> None:
    if n <= 0:
        raise ValueError("n debe ser positivo")

def is_unsigned_nbit(x: int, n: int) -> bool:
    """¿Cabe x en un campo sin signo de n bits? (ori/andi/xori, shamt)"""
    _check_width(n)
    return x >= 0 and x >> n == 0

def is_signed_nbit(x: int, n: int) -> bool:
    """¿Cabe x en un campo con signo de n bits? (addi, desplazamientos)"""
    _check_width(n)
    half = 1 << (n - 1)
    return -half <= x < half

def fits_nbit(x: int, n: int) -> bool:
    # .byte/.half/.word admiten tanto -1 como 0xff..
    return is_signed_nbit(x, n) or is_unsigned_nbit(x, n)

def align_up(x: int, a: int) -> int:
    """Siguiente múltiplo de a (potencia de dos) mayor o igual que x."""
    if a <= 0:
        raise ValueError("la alineación debe ser positiva")
    return -(-x // a) * a

def to_bin32(x: int) -> str:
    return f"{u32(x):032b}"

def to_hex32(x: int, *, prefix: bool = True) -> str:
    """Palabra en hexadecimal de 8 dígitos; con prefijo 0x por defecto."""
    digits = f"{u32(x):08x}"
    return f"0x{digits}" if prefix else digits

def split_bits(value: int, positions: Tuple[Tuple[int, int], ...]) -> Tuple[int, ...]:
    """Corta ``value`` en los campos (hi, lo) dados, en el mismo orden.

    >>> split_bits(0x012A4020, R_FIELDS)
    (0, 9, 10, 8, 0, 32)
    """
    fields = []
    for hi, lo in positions:
        if not 0 <= lo <= hi:
            raise ValueError(f"rango de bits inválido: [{hi}:{lo}]")
        fields.append((value >> lo) & ((1 << (hi - lo + 1)) - 1))
    return tuple(fields)
