'''
fallos en tiempo de ejecución (MachineFault y subclases)
'''

from __future__ import annotations
from typing import Optional

from .utils import to_hex32


class MachineFault(Exception):
    """Fallo de la máquina simulada.

    ``pc`` es la dirección de la instrucción que falló; la memoria lanza el
    fallo sin pc y la CPU lo completa antes de pasar al estado Faulted.
    """
    kind = "MachineFault"

    def __init__(self, message: str, *, pc: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.pc = pc

    def __str__(self) -> str:
        where = f" en pc {to_hex32(self.pc)}" if self.pc is not None else ""
        return f"{self.kind}{where}: {self.message}"


class AlignmentError(MachineFault):
    kind = "AlignmentError"

    def __init__(self, address: int, width: int, *, pc: Optional[int] = None):
        super().__init__(f"acceso de {width} bytes no alineado a {to_hex32(address)}", pc=pc)
        self.address = address
        self.width = width


class SegmentationFault(MachineFault):
    kind = "SegmentationFault"

    def __init__(self, address: int, *, reason: str = "fuera de todo segmento",
                 pc: Optional[int] = None):
        super().__init__(f"dirección {to_hex32(address)} {reason}", pc=pc)
        self.address = address


class UnknownSyscallError(MachineFault):
    kind = "UnknownSyscallError"

    def __init__(self, code: int, *, pc: Optional[int] = None):
        super().__init__(f"syscall desconocida: $v0 = {code}", pc=pc)
        self.code = code


class DivisionError(MachineFault):
    kind = "DivisionError"

    def __init__(self, mnemonic: str = "div", *, pc: Optional[int] = None):
        super().__init__(f"{mnemonic}: división entre cero", pc=pc)
        self.mnemonic = mnemonic


class IllegalInstructionError(MachineFault):
    kind = "IllegalInstructionError"

    def __init__(self, word: int, *, pc: Optional[int] = None):
        super().__init__(f"palabra {to_hex32(word)} no decodificable", pc=pc)
        self.word = word
