'''
servicio de llamadas al sistema (dispatch sobre $v0) y consola de E/S
'''

from __future__ import annotations
import logging
import sys
from typing import IO, Callable, Dict, Optional, TextIO

from .faults import SegmentationFault, UnknownSyscallError
from .layout import MemoryLayout, DEFAULT_LAYOUT
from .lexer import parse_int
from .memory import Memory
from .mmio import emit_bytes
from .regs import RegisterFile, V0, A0, A1
from .utils import u32, s32, align_up

logger = logging.getLogger(__name__)

# Códigos de $v0
PRINT_INT = 1
PRINT_STR = 4
READ_INT = 5
READ_STR = 8
SBRK = 9
EXIT = 10
PRINT_CHAR = 11
READ_CHAR = 12
EXIT2 = 17


class StreamConsole:
    """Consola sobre stdin/stdout del proceso u otros flujos.

    La entrada se lee como texto; la salida se escribe como bytes (en el
    ``buffer`` de stdout si es un flujo de texto), igual que los emite el programa.
    """

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[IO] = None) -> None:
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout

    def write(self, data: bytes) -> None:
        emit_bytes(self.stdout, data)

    def read_line(self) -> str:
        """Una línea sin el salto final; cadena vacía en fin de fichero."""
        return self.stdin.readline().rstrip("\r\n")

    def read_char(self) -> str:
        return self.stdin.read(1)


class SyscallService:
    """Ejecuta la syscall indicada por $v0 con argumentos en $a0/$a1.

    ``dispatch`` devuelve el código de salida si la syscall termina el
    programa y None en otro caso. Un código desconocido lanza
    UnknownSyscallError.
    """

    def __init__(self, memory: Memory, console: Optional[StreamConsole] = None,
                 layout: MemoryLayout = DEFAULT_LAYOUT) -> None:
        self.memory = memory
        self.console = console if console is not None else StreamConsole()
        self.layout = layout
        self.brk = layout.heap_base
        self._table: Dict[int, Callable[[RegisterFile], Optional[int]]] = {
            PRINT_INT: self._print_int,
            PRINT_STR: self._print_str,
            READ_INT: self._read_int,
            READ_STR: self._read_str,
            SBRK: self._sbrk,
            EXIT: self._exit,
            PRINT_CHAR: self._print_char,
            READ_CHAR: self._read_char,
            EXIT2: self._exit2,
        }

    def dispatch(self, regs: RegisterFile) -> Optional[int]:
        code = regs.read(V0)
        handler = self._table.get(code)
        if handler is None:
            raise UnknownSyscallError(s32(code))
        logger.debug("syscall %d ($a0=%#x, $a1=%#x)", code, regs.read(A0), regs.read(A1))
        return handler(regs)

    # ---- salida ----

    def _print_int(self, regs: RegisterFile) -> None:
        self.console.write(str(s32(regs.read(A0))).encode("ascii"))

    def _print_str(self, regs: RegisterFile) -> None:
        self.console.write(self.memory.read_cstring(regs.read(A0)))

    def _print_char(self, regs: RegisterFile) -> None:
        self.console.write(bytes((regs.read(A0) & 0xFF,)))

    # ---- entrada ----

    def _read_int(self, regs: RegisterFile) -> None:
        line = self.console.read_line().strip()
        try:
            value = parse_int(line)
        except ValueError:
            logger.warning("read_int: entrada no numérica %r; se devuelve 0", line)
            value = 0
        regs.write(V0, u32(value))

    def _read_str(self, regs: RegisterFile) -> None:
        buf, size = regs.read(A0), s32(regs.read(A1))
        if size < 1:
            return
        line = self.console.read_line()
        data = line.encode("utf-8")[:size - 1]
        self.memory.write_bytes(buf, data + b"\x00")

    def _read_char(self, regs: RegisterFile) -> None:
        ch = self.console.read_char()
        regs.write(V0, ord(ch) if ch else u32(-1))

    # ---- heap ----

    def _sbrk(self, regs: RegisterFile) -> None:
        amount = s32(regs.read(A0))
        new = align_up(self.brk + amount, 4)
        if not self.layout.heap_base <= new <= self.layout.heap_end:
            raise SegmentationFault(new, reason="fuera del heap (sbrk)")
        regs.write(V0, self.brk)
        self.brk = new

    # ---- terminación ----

    def _exit(self, regs: RegisterFile) -> int:
        return 0

    def _exit2(self, regs: RegisterFile) -> int:
        return s32(regs.read(A0))
