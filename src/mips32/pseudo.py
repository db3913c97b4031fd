from __future__ import annotations
from typing import List, Optional, Tuple
from .ast import Instruction, Node, Reg, Imm, Sym, Mem, Operand
from .diagnostics import Diagnostic, error, IMMEDIATE_OVERFLOW
from .isa import LOADS, STORES
from .utils import u32, is_signed_nbit, is_unsigned_nbit, fits_nbit

def _r(name: str, n: int) -> Reg: return Reg(name=name, num=n)
ZERO=_r("$zero",0); AT=_r("$at",1); RA=_r("$ra",31)

def _copy(ins: Instruction, mnemonic: str, ops: List[Operand]) -> Instruction:
    return Instruction(mnemonic=mnemonic, operands=ops, line=ins.line, col=ins.col, section=ins.section)

def _hi_lo(ins: Instruction, rd: Reg, sym: Sym) -> List[Instruction]:
    return [_copy(ins,"lui",[rd,Sym(sym.name,"hi")]), _copy(ins,"ori",[rd,rd,Sym(sym.name,"lo")])]

def _li_expand(ins: Instruction, diags: List[Diagnostic], filename: Optional[str]) -> List[Instruction]:
    rd, imm = ins.operands
    assert isinstance(rd, Reg) and isinstance(imm, Imm)
    v = imm.value
    if is_signed_nbit(v, 16): return [_copy(ins,"addiu",[rd,ZERO,Imm(v)])]
    if is_unsigned_nbit(v, 16): return [_copy(ins,"ori",[rd,ZERO,Imm(v)])]
    if not fits_nbit(v, 32):
        diags.append(error(f"li: inmediato {v} no cabe en 32 bits", kind=IMMEDIATE_OVERFLOW,
                           line=ins.line, col=ins.col, file=filename))
    w = u32(v)
    return [_copy(ins,"lui",[rd,Imm(w >> 16)]), _copy(ins,"ori",[rd,rd,Imm(w & 0xFFFF)])]

# Comparación + salto: (orden de slt, salto sobre $at)
_CMP_BRANCH = {
    "blt": (False, "bne"),
    "bge": (False, "beq"),
    "bgt": (True,  "bne"),
    "ble": (True,  "beq"),
}

def expand(nodes: List[Node], *, filename: Optional[str] = None) -> Tuple[List[Node], List[Diagnostic]]:
    """Sustituye cada pseudoinstrucción por su secuencia de instrucciones reales.

    Cada instrucción real resultante ocupa exactamente una palabra en .text,
    así que el tamaño de cada expansión se conoce antes de resolver símbolos.
    """
    out: List[Node] = []
    diags: List[Diagnostic] = []
    for n in nodes:
        if not isinstance(n, Instruction): out.append(n); continue
        m = n.mnemonic; ops = n.operands

        if m == "nop": out.append(_copy(n,"sll",[ZERO,ZERO,Imm(0)])); continue
        if m == "move": out.append(_copy(n,"addu",[ops[0],ops[1],ZERO])); continue
        if m == "not": out.append(_copy(n,"nor",[ops[0],ops[1],ZERO])); continue
        if m == "neg": out.append(_copy(n,"sub",[ops[0],ZERO,ops[1]])); continue
        if m == "li": out.extend(_li_expand(n, diags, filename)); continue
        if m == "la": out.extend(_hi_lo(n, ops[0], ops[1])); continue

        if m == "b": out.append(_copy(n,"beq",[ZERO,ZERO,ops[0]])); continue
        if m == "beqz": out.append(_copy(n,"beq",[ops[0],ZERO,ops[1]])); continue
        if m == "bnez": out.append(_copy(n,"bne",[ops[0],ZERO,ops[1]])); continue
        if m in _CMP_BRANCH:
            swap, br = _CMP_BRANCH[m]
            rs, rt, target = ops
            a, b = (rt, rs) if swap else (rs, rt)
            out.append(_copy(n,"slt",[AT,a,b]))
            out.append(_copy(n,br,[AT,ZERO,target])); continue

        if m in ("div","divu") and len(ops)==3:
            out.append(_copy(n,m,[ops[1],ops[2]]))
            out.append(_copy(n,"mflo",[ops[0]])); continue
        if m == "jalr" and len(ops)==1: out.append(_copy(n,"jalr",[RA,ops[0]])); continue

        if (m in LOADS or m in STORES) and isinstance(ops[1], Sym):
            out.extend(_hi_lo(n, AT, ops[1]))
            out.append(_copy(n,m,[ops[0],Mem(base=AT, offset=0)])); continue

        out.append(n)
    return out, diags
