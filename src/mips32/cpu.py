'''
intérprete MIPS32: ciclo fetch-decode-execute sobre RegisterFile + Memory
'''

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

from .decoder import Decoded, decode, disassemble
from .faults import AlignmentError, DivisionError, IllegalInstructionError, MachineFault, SegmentationFault
from .layout import MemoryLayout, DEFAULT_LAYOUT
from .memory import Memory
from .mmio import MMIOBus
from .program import Program
from .regs import RegisterFile, GP, SP, RA
from .syscalls import StreamConsole, SyscallService
from .utils import u32, s32

logger = logging.getLogger(__name__)

# ---- Estados de la máquina ----

@dataclass(frozen=True)
class Running:
    pass

@dataclass(frozen=True)
class Halted:
    exit_code: int

@dataclass(frozen=True)
class Faulted:
    fault: MachineFault

State = Union[Running, Halted, Faulted]

# ---- Semántica de las operaciones (operandos u32, resultado sin enmascarar) ----

_ALU_R: Dict[str, Callable[[int, int], int]] = {
    "add":  lambda a, b: a + b,
    "addu": lambda a, b: a + b,
    "sub":  lambda a, b: a - b,
    "subu": lambda a, b: a - b,
    "and":  lambda a, b: a & b,
    "or":   lambda a, b: a | b,
    "xor":  lambda a, b: a ^ b,
    "nor":  lambda a, b: ~(a | b),
    "slt":  lambda a, b: int(s32(a) < s32(b)),
    "sltu": lambda a, b: int(a < b),
    "mul":  lambda a, b: s32(a) * s32(b),
}

# (valor de rt, cantidad) -> resultado
_SHIFT: Dict[str, Callable[[int, int], int]] = {
    "sll": lambda v, n: v << n,
    "srl": lambda v, n: v >> n,
    "sra": lambda v, n: s32(v) >> n,
}
_SHIFT_V = {"sllv": "sll", "srlv": "srl", "srav": "sra"}

# (valor de rs, instrucción decodificada) -> resultado
_ALU_I: Dict[str, Callable[[int, Decoded], int]] = {
    "addi":  lambda a, d: a + d.simm,
    "addiu": lambda a, d: a + d.simm,
    "slti":  lambda a, d: int(s32(a) < d.simm),
    "sltiu": lambda a, d: int(a < u32(d.simm)),
    "andi":  lambda a, d: a & d.imm,
    "ori":   lambda a, d: a | d.imm,
    "xori":  lambda a, d: a ^ d.imm,
    "lui":   lambda a, d: d.imm << 16,
}

# mnemónico -> (ancho, con signo)
_LOADS = {"lb": (1, True), "lh": (2, True), "lw": (4, False), "lbu": (1, False), "lhu": (2, False)}
_STORES = {"sb": 1, "sh": 2, "sw": 4}

_BRANCH: Dict[str, Callable[[int, int], bool]] = {
    "beq":  lambda a, b: a == b,
    "bne":  lambda a, b: a != b,
    "blez": lambda a, b: s32(a) <= 0,
    "bgtz": lambda a, b: s32(a) > 0,
}


class CPU:
    """Máquina MIPS32 sin slots de retardo.

    Cada ``step`` ejecuta exactamente una instrucción. Un MachineFault
    lanzado durante la instrucción deja la CPU en ``Faulted`` con el pc de
    esa instrucción; la syscall de salida la deja en ``Halted``.
    """

    def __init__(
        self,
        program: Program,
        *,
        layout: MemoryLayout = DEFAULT_LAYOUT,
        console: Optional[StreamConsole] = None,
        mmio: Optional[MMIOBus] = None,
    ) -> None:
        self.program = program
        self.layout = layout
        self.memory = Memory(layout, mmio)
        self.regs = RegisterFile()
        self.regs.write(SP, layout.stack_pointer)
        self.regs.write(GP, layout.global_pointer)
        self.syscalls = SyscallService(self.memory, console, layout)
        self.pc = program.entry
        self.state: State = Running()
        try:
            self.memory.load_program(program)
        except MachineFault as fault:
            logger.info("no se pudo cargar el programa: %s", fault)
            self.state = Faulted(fault)
        self.steps = 0

    # ---- ciclo ----

    def step(self) -> State:
        if not isinstance(self.state, Running):
            return self.state
        pc = self.pc
        try:
            d = decode(self._fetch(pc))
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("%#010x: %s", pc, disassemble(d, pc))
            self.pc = u32(self._execute(d, pc))
        except MachineFault as fault:
            if fault.pc is None:
                fault.pc = pc
            logger.debug("fallo en %#010x: %s", pc, fault)
            self.state = Faulted(fault)
        self.steps += 1
        self.memory.tick()
        return self.state

    def run(self, max_steps: Optional[int] = None) -> State:
        """Ejecuta hasta Halted/Faulted o hasta agotar max_steps (sigue Running)."""
        executed = 0
        while isinstance(self.state, Running):
            if max_steps is not None and executed >= max_steps:
                logger.info("límite de %d pasos alcanzado en pc %#010x", max_steps, self.pc)
                break
            self.step()
            executed += 1
        return self.state

    def _fetch(self, pc: int) -> int:
        if pc % 4:
            raise AlignmentError(pc, 4)
        if not self.program.text_base <= pc < self.program.text_end:
            raise SegmentationFault(pc, reason="fuera del código emitido")
        return self.memory.load_word(pc)

    # ---- ejecución ----

    def _execute(self, d: Decoded, pc: int) -> int:
        """Aplica la instrucción y devuelve el pc siguiente."""
        r = self.regs
        m = d.mnemonic
        npc = pc + 4
        rs, rt = r.read(d.rs), r.read(d.rt)

        if m in _ALU_R:
            r.write(d.rd, _ALU_R[m](rs, rt))
        elif m in _SHIFT:
            r.write(d.rd, _SHIFT[m](rt, d.shamt))
        elif m in _SHIFT_V:
            r.write(d.rd, _SHIFT[_SHIFT_V[m]](rt, rs & 0x1F))
        elif m in _ALU_I:
            r.write(d.rt, _ALU_I[m](rs, d))
        elif m in _LOADS:
            width, signed = _LOADS[m]
            r.write(d.rt, self.memory.load(u32(rs + d.simm), width, signed=signed))
        elif m in _STORES:
            self.memory.store(u32(rs + d.simm), _STORES[m], rt)
        elif m in _BRANCH:
            if _BRANCH[m](rs, rt):
                npc = npc + (d.simm << 2)
        elif m in ("j", "jal"):
            if m == "jal":
                r.write(RA, npc)
            npc = (npc & 0xF0000000) | (d.index << 2)
        elif m == "jr":
            npc = rs
        elif m == "jalr":
            r.write(d.rd, npc)
            npc = rs
        elif m in ("mult", "multu"):
            p = s32(rs) * s32(rt) if m == "mult" else rs * rt
            r.hi, r.lo = u32(p >> 32), u32(p)
        elif m in ("div", "divu"):
            if rt == 0:
                raise DivisionError(m)
            if m == "div":
                a, b = s32(rs), s32(rt)
                q = abs(a) // abs(b) * (1 if (a < 0) == (b < 0) else -1)  # trunca hacia cero
                r.lo, r.hi = u32(q), u32(a - q * b)
            else:
                r.lo, r.hi = rs // rt, rs % rt
        elif m == "mfhi":
            r.write(d.rd, r.hi)
        elif m == "mflo":
            r.write(d.rd, r.lo)
        elif m == "syscall":
            code = self.syscalls.dispatch(r)
            if code is not None:
                logger.info("programa terminado con código %d tras %d pasos", code, self.steps + 1)
                self.state = Halted(code)
        else:
            raise IllegalInstructionError(d.word)
        return npc

    def line_of(self, pc: Optional[int]) -> Optional[int]:
        """Línea del fuente de la instrucción en pc (si se conoce)."""
        return None if pc is None else self.program.line_of(pc)
