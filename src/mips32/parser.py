# src/mips32/parser.py
from __future__ import annotations
from typing import List, Tuple, Optional

from .lexer import Token, tokenize
from .ast import (
    SectionDirective, DataDirective, GlobalDirective, Label, Instruction, Node,
    Reg, Imm, Mem, Str, Sym, Operand, operand_kind,
)
from .regs import normalize_reg, reg_num
from .diagnostics import error, Diagnostic, SYNTAX_ERROR, MALFORMED_OPERAND
from . import isa

SECTION_DIRS = (".text", ".data")
GLOBAL_DIRS = (".globl", ".global")

# Tipos de operando que acepta cada elemento de una forma
_ACCEPTS = {
    "reg": {"reg"},
    "imm": {"imm"},
    "mem": {"mem"},
    "str": {"str"},
    "sym": {"sym"},
    "target": {"imm", "sym"},
    "word": {"imm", "sym"},
}

class ParseError(ValueError):
    """Error de sintaxis dentro de una sentencia; lleva el token culpable."""

    def __init__(self, message: str, tok: Token):
        super().__init__(message)
        self.tok = tok

def form_matches(form: str, operands: List[Operand]) -> bool:
    """Comprueba aridad y tipo de los operandos contra una forma ('reg,reg,imm', 'imm*', ...)."""
    kinds = [operand_kind(op) for op in operands]
    if form == "none":
        return not kinds
    if form.endswith("*"):
        allowed = _ACCEPTS[form[:-1]]
        return bool(kinds) and all(k in allowed for k in kinds)
    parts = form.split(",")
    if len(parts) != len(kinds):
        return False
    return all(k in _ACCEPTS[p] for p, k in zip(parts, kinds))

def _split_statements(tokens: List[Token]) -> List[List[Token]]:
    out: List[List[Token]] = []
    cur: List[Token] = []
    for tok in tokens:
        if tok.kind == "NEWLINE":
            if cur:
                out.append(cur)
            cur = []
        else:
            cur.append(tok)
    if cur:
        out.append(cur)
    return out

class _Cursor:
    """Recorrido de los tokens de una sentencia."""

    def __init__(self, toks: List[Token]):
        self.toks = toks
        self.i = 0

    def peek(self, k: int = 0) -> Optional[Token]:
        j = self.i + k
        return self.toks[j] if j < len(self.toks) else None

    def next(self) -> Token:
        tok = self.toks[self.i]
        self.i += 1
        return tok

    def at_end(self) -> bool:
        return self.i >= len(self.toks)

    def last(self) -> Token:
        return self.toks[min(self.i, len(self.toks) - 1)]

    def expect(self, kind: str, what: str) -> Token:
        tok = self.peek()
        if tok is None or tok.kind != kind:
            raise ParseError(f"Se esperaba {what}", tok or self.last())
        return self.next()

def _parse_operand(cur: _Cursor) -> Operand:
    """
    Alternativas en orden fijo: registro, desplazamiento imm(reg) / (reg),
    inmediato, cadena, identificador.
    """
    tok = cur.peek()
    if tok is None:
        raise ParseError("Falta un operando", cur.last())
    nxt = cur.peek(1)
    if tok.kind == "REG":
        cur.next()
        name = normalize_reg(tok.value)
        return Reg(name=name, num=reg_num(name))
    if tok.kind == "INT" and nxt is not None and nxt.kind == "LPAREN":
        cur.next()
        return Mem(base=_parse_base(cur), offset=tok.value)
    if tok.kind == "LPAREN":
        return Mem(base=_parse_base(cur), offset=0)
    if tok.kind == "INT":
        cur.next()
        return Imm(tok.value)
    if tok.kind == "STRING":
        cur.next()
        return Str(tok.value)
    if tok.kind == "IDENT":
        cur.next()
        return Sym(tok.value)
    raise ParseError(f"Operando inválido: '{tok.text}'", tok)

def _parse_base(cur: _Cursor) -> Reg:
    cur.expect("LPAREN", "'('")
    tok = cur.expect("REG", "un registro base dentro de '(...)'")
    cur.expect("RPAREN", "')'")
    name = normalize_reg(tok.value)
    return Reg(name=name, num=reg_num(name))

def _parse_operands(cur: _Cursor) -> List[Operand]:
    operands: List[Operand] = []
    if cur.at_end():
        return operands
    operands.append(_parse_operand(cur))
    while not cur.at_end():
        cur.expect("COMMA", "',' entre operandos")
        operands.append(_parse_operand(cur))
    return operands

def _kinds(operands: List[Operand]) -> str:
    return ", ".join(operand_kind(op) for op in operands) or "ninguno"

def parse(text: str, *, filename: Optional[str] = None) -> Tuple[List[Node], List[Diagnostic]]:
    """
    Devuelve (nodes, diagnostics) donde nodes es una lista de:
      - SectionDirective(name)                 '.text' / '.data'
      - DataDirective(kind, args)              '.word 1, 2', '.asciiz "x"', ...
      - GlobalDirective(symbol)                '.globl main'
      - Label(name)                            'loop:'
      - Instruction(mnemonic, operands)

    Reglas:
      - Comentarios: '#' hasta fin de línea.
      - Etiquetas: 'name:' (permite 'name: .asciiz ...' y 'name: instr ...';
        se emite el Label y después el nodo que lo sigue).
      - Los operandos se validan contra las formas de isa.py; un desajuste de
        aridad o tipo es un MalformedOperandError.
    """
    tokens, diags = tokenize(text, filename=filename)
    nodes: List[Node] = []
    section: Optional[str] = None

    def _directive(cur: _Cursor) -> None:
        nonlocal section
        tok = cur.next()
        dname = tok.value
        operands = _parse_operands(cur)
        if dname in SECTION_DIRS:
            if operands:
                diags.append(error(f"{dname} no admite operandos", kind=MALFORMED_OPERAND,
                                   line=tok.line, col=tok.col, file=filename))
                return
            section = dname
            nodes.append(SectionDirective(name=dname, line=tok.line, col=tok.col, section=section))
            return
        if dname in GLOBAL_DIRS:
            if len(operands) != 1 or not isinstance(operands[0], Sym):
                diags.append(error(f"{dname} espera un símbolo (recibido: {_kinds(operands)})",
                                   kind=MALFORMED_OPERAND, line=tok.line, col=tok.col, file=filename))
                return
            nodes.append(GlobalDirective(symbol=operands[0].name, line=tok.line, col=tok.col, section=section))
            return
        form = isa.DATA_FORMS.get(dname)
        if form is None:
            diags.append(error(f"Directiva desconocida: {tok.text}", kind=SYNTAX_ERROR,
                               line=tok.line, col=tok.col, file=filename))
            return
        if not form_matches(form, operands):
            diags.append(error(f"{dname}: operandos ({_kinds(operands)}) no coinciden con la forma '{form}'",
                               kind=MALFORMED_OPERAND, line=tok.line, col=tok.col, file=filename))
            return
        args = []
        for op in operands:
            if isinstance(op, Imm):
                args.append(op.value)
            elif isinstance(op, Str):
                args.append(op.value)
            else:
                args.append(op)
        nodes.append(DataDirective(kind=dname[1:], args=args, line=tok.line, col=tok.col, section=section))

    def _instruction(cur: _Cursor) -> None:
        tok = cur.next()
        mnemonic = tok.text.lower()
        if not isa.is_known(mnemonic):
            diags.append(error(f"Instrucción desconocida: {tok.text}", kind=SYNTAX_ERROR,
                               line=tok.line, col=tok.col, file=filename))
            return
        operands = _parse_operands(cur)
        accepted = isa.forms(mnemonic)
        if not any(form_matches(f, operands) for f in accepted):
            diags.append(error(f"{mnemonic}: operandos ({_kinds(operands)}) no coinciden con "
                               f"ninguna forma: {' | '.join(accepted)}",
                               kind=MALFORMED_OPERAND, line=tok.line, col=tok.col, file=filename))
            return
        nodes.append(Instruction(mnemonic=mnemonic, operands=operands, line=tok.line, col=tok.col, section=section))

    for stmt in _split_statements(tokens):
        cur = _Cursor(stmt)
        try:
            # 1) 'label:' (puede haber varias en la misma línea)
            while cur.peek() is not None and cur.peek().kind == "IDENT" \
                    and cur.peek(1) is not None and cur.peek(1).kind == "COLON":
                tok = cur.next()
                cur.next()
                nodes.append(Label(name=tok.value, line=tok.line, col=tok.col, section=section))
            if cur.at_end():
                continue
            head = cur.peek()
            # 2) directiva
            if head.kind == "DIRECTIVE":
                _directive(cur)
            # 3) instrucción: mnemónico + operandos
            elif head.kind == "IDENT":
                _instruction(cur)
            else:
                raise ParseError(f"Se esperaba etiqueta, directiva o instrucción; encontrado '{head.text}'", head)
        except ParseError as ex:
            diags.append(error(str(ex), kind=SYNTAX_ERROR, line=ex.tok.line, col=ex.tok.col, file=filename))

    return nodes, diags
