from __future__ import annotations
import logging
from typing import List, Optional, Tuple

from .ast import Node
from .diagnostics import AssemblyError, Diagnostic, has_errors, warning
from .encoding import EncodeResult, encode
from .layout import MemoryLayout, DEFAULT_LAYOUT
from .linker import LinkResult, first_pass
from .parser import parse
from .program import Program
from .pseudo import expand

logger = logging.getLogger(__name__)

ENTRY_SYMBOL = "main"

def assemble_text(
    text: str, *, filename: Optional[str] = None, layout: MemoryLayout = DEFAULT_LAYOUT,
) -> Tuple[List[Node], List[Diagnostic], LinkResult, EncodeResult]:
    """Parsea, expande pseudos, hace PASADA 1 y PASADA 2.
    Devuelve (nodes_expandidos, diagnostics_totales, link_result, enc_result)."""
    nodes, diags_parse = parse(text, filename=filename)
    nodes_e, diags_pseudo = expand(nodes, filename=filename)
    link = first_pass(nodes_e, layout=layout, filename=filename)
    enc = encode(nodes_e, link.symtab, layout=layout, filename=filename)
    diags = list(diags_parse) + list(diags_pseudo) + list(link.diagnostics) + list(enc.diagnostics)
    logger.debug("ensamblado %s: %d nodos, %d símbolos, .text=%d bytes, .data=%d bytes",
                 filename or "<texto>", len(nodes_e), len(link.symtab), link.text_size, link.data_size)
    return nodes_e, diags, link, enc

def assemble_program(
    text: str, *, filename: Optional[str] = None, layout: MemoryLayout = DEFAULT_LAYOUT,
    diagnostics: Optional[List[Diagnostic]] = None,
) -> Tuple[Program, EncodeResult]:
    """Ensambla el fuente completo; devuelve (Program, enc_result).

    Lanza AssemblyError si hubo algún error; las advertencias se añaden a
    ``diagnostics`` si se pasa una lista. enc_result conserva las palabras
    con su línea de origen para los listados.
    """
    _, diags, link, enc = assemble_text(text, filename=filename, layout=layout)

    entry = link.symtab.get(ENTRY_SYMBOL)
    if entry is None:
        entry = layout.text_base
        diags.append(warning(f"No hay etiqueta '{ENTRY_SYMBOL}'; se empieza en {layout.text_base:#010x}",
                             file=filename, hint="define 'main:' en .text"))

    if diagnostics is not None:
        diagnostics.extend(diags)
    if has_errors(diags):
        logger.info("ensamblado abortado: %d diagnósticos", len(diags))
        raise AssemblyError(diags)

    program = Program(
        text_base=link.text_base,
        text=enc.text,
        data_base=link.data_base,
        data=enc.data,
        symbols=dict(link.symtab),
        globals=list(link.globals),
        entry=entry,
        lines={e.pc: e.line for e in enc.words},
    )
    return program, enc

def assemble(
    text: str, *, filename: Optional[str] = None, layout: MemoryLayout = DEFAULT_LAYOUT,
    diagnostics: Optional[List[Diagnostic]] = None,
) -> Program:
    """Como assemble_program, pero sólo devuelve el Program."""
    return assemble_program(text, filename=filename, layout=layout, diagnostics=diagnostics)[0]
