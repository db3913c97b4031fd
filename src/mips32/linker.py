# src/mips32/linker.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from .ast import SectionDirective, DataDirective, GlobalDirective, Label, Instruction, Node
from .diagnostics import Diagnostic, error, warning, SYNTAX_ERROR, DUPLICATE_LABEL, IMMEDIATE_OVERFLOW
from .layout import MemoryLayout, DEFAULT_LAYOUT
from .utils import align_up

# ---------- Resultados de la pasada 1 ----------

@dataclass(frozen=True)
class LinkResult:
    symtab: Dict[str, int]
    text_base: int
    data_base: int
    text_size: int
    data_size: int
    globals: List[str] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

# ---------- Tamaños de datos (compartidos con la pasada 2) ----------

ELEMENT_SIZE = {"byte": 1, "half": 2, "word": 4}
ALIGN_MAX = 16

def natural_alignment(d: DataDirective, *, auto_align: bool = True) -> int:
    """Alineación en bytes que se aplica antes de emitir la directiva."""
    if d.kind == "align":
        return 1 << d.args[0] if 0 <= d.args[0] <= ALIGN_MAX else 1
    if auto_align and d.kind in ("half", "word"):
        return ELEMENT_SIZE[d.kind]
    return 1

def data_size(d: DataDirective) -> int:
    """Bytes que ocupa una directiva de datos (sin contar el relleno de alineación)."""
    if d.kind in ELEMENT_SIZE:
        return ELEMENT_SIZE[d.kind] * len(d.args)
    if d.kind == "ascii":
        return sum(len(s) for s in d.args)
    if d.kind == "asciiz":
        return sum(len(s) + 1 for s in d.args)  # terminador NUL por cadena
    if d.kind == "space":
        return max(0, d.args[0])
    return 0

# ---------- Pasada 1 (símbolos y layout de secciones) ----------

def first_pass(
    nodes: List[Node],
    *,
    layout: MemoryLayout = DEFAULT_LAYOUT,
    filename: Optional[str] = None,
    auto_align: bool = True,  # alinear .word a 4 y .half a 2
) -> LinkResult:
    """
    Recorre el IR ya expandido y asigna direcciones.

    - Cada instrucción ocupa 4 bytes en .text (desde layout.text_base).
    - Las directivas de datos avanzan el cursor de .data (desde layout.data_base).
    - Una etiqueta de .data que precede a una directiva auto-alineada toma
      la dirección ya alineada (igual que en MARS/SPIM).
    - Si no hay directiva de sección inicial se asume .text.
    """
    symtab: Dict[str, int] = {}
    globals_: List[str] = []
    diags: List[Diagnostic] = []

    section = ".text"
    lc_text = 0
    lc_data = 0
    pending: List[Label] = []   # etiquetas de .data aún sin dirección
    overflowed: Set[str] = set()   # secciones ya reportadas

    def bind_pending() -> None:
        for lab in pending:
            symtab[lab.name] = layout.data_base + lc_data
        pending.clear()

    def _err(msg: str, n: Node, kind: str, hint: Optional[str] = None) -> None:
        diags.append(error(msg, kind=kind, line=n.line, col=n.col, file=filename, hint=hint))

    def _check_fits(name: str, used: int, limit: int, n: Node) -> None:
        if used > limit and name not in overflowed:
            overflowed.add(name)
            _err(f"{name} ocupa {used} bytes y su segmento admite {limit}", n, IMMEDIATE_OVERFLOW,
                 hint="reduce los datos o amplía el MemoryLayout")

    for n in nodes:
        if isinstance(n, SectionDirective):
            bind_pending()
            section = n.name
            continue

        if isinstance(n, GlobalDirective):
            if n.symbol not in globals_:
                globals_.append(n.symbol)
            continue

        if isinstance(n, Label):
            if n.name in symtab or any(p.name == n.name for p in pending):
                _err(f"Etiqueta redefinida: {n.name}", n, DUPLICATE_LABEL)
                continue
            if section == ".data":
                pending.append(n)
            else:
                symtab[n.name] = layout.text_base + lc_text
            continue

        if isinstance(n, DataDirective):
            if n.kind == "align" and not 0 <= n.args[0] <= ALIGN_MAX:
                _err(f".align {n.args[0]} fuera de rango", n, IMMEDIATE_OVERFLOW,
                     hint=f"el exponente debe estar en 0..{ALIGN_MAX}")
                continue
            if section == ".text":
                if n.kind != "align":
                    _err(f"{n.name} no permitido en .text", n, SYNTAX_ERROR,
                         hint="declara los datos tras una directiva .data")
                    continue
                # en .text se rellena con palabras cero (nop)
                lc_text = align_up(lc_text, max(4, natural_alignment(n)))
                _check_fits(".text", lc_text, layout.text_size, n)
                continue
            if n.kind == "space" and n.args[0] < 0:
                _err(f".space con tamaño negativo: {n.args[0]}", n, IMMEDIATE_OVERFLOW)
                continue
            lc_data = align_up(lc_data, natural_alignment(n, auto_align=auto_align))
            bind_pending()
            lc_data += data_size(n)
            _check_fits(".data", lc_data, layout.data_size, n)
            continue

        if isinstance(n, Instruction):
            if section != ".text":
                _err(f"Instrucción fuera de la sección .text: {n.mnemonic}", n, SYNTAX_ERROR)
                continue
            lc_text += 4
            _check_fits(".text", lc_text, layout.text_size, n)
            continue

        # Si llega aquí, es un nodo desconocido (no debería)
        diags.append(warning(f"Nodo de IR desconocido en linker: {n!r}", file=filename))

    bind_pending()

    for name in globals_:
        if name not in symtab:
            diags.append(warning(f".globl de un símbolo no definido: {name}", file=filename))

    return LinkResult(
        symtab=symtab,
        text_base=layout.text_base, data_base=layout.data_base,
        text_size=lc_text, data_size=lc_data,
        globals=globals_,
        diagnostics=diags,
    )
