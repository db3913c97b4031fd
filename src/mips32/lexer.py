from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from .diagnostics import Diagnostic, error, SYNTAX_ERROR
from .regs import is_reg

@dataclass(frozen=True)
class Token:
    """Lexema clasificado con su posición (línea y columna desde 1)."""
    kind: str
    text: str
    line: int
    col: int
    value: Any = None

TOKEN_RE = re.compile(r"""
    (?P<WS>[ \t\r\f\v]+)
  | (?P<COMMENT>\#.*)
  | (?P<STRING>"(?:[^"\\\n]|\\.)*")
  | (?P<UNTERMINATED>"(?:[^"\\\n]|\\.)*)
  | (?P<CHAR>'(?:[^'\\\n]|\\.)')
  | (?P<REG>\$[A-Za-z0-9]+)
  | (?P<DIRECTIVE>\.[A-Za-z_][A-Za-z0-9_]*)
  | (?P<INT>[+-]?[0-9][A-Za-z0-9_]*)
  | (?P<IDENT>[A-Za-z_][A-Za-z0-9_.]*)
  | (?P<COMMA>,)
  | (?P<COLON>:)
  | (?P<LPAREN>\()
  | (?P<RPAREN>\))
""", re.VERBOSE)

INT_RE = re.compile(r"^[+-]?(0[xX][0-9a-fA-F]+|0[bB][01]+|[0-9]+)$")

_SIMPLE_ESCAPES = {
    "n": 0x0A, "t": 0x09, "r": 0x0D, "0": 0x00,
    "\\": 0x5C, '"': 0x22, "'": 0x27,
}

class LexError(ValueError):
    """Error léxico dentro de una línea; col es relativa a la línea (desde 1)."""

    def __init__(self, message: str, col: int):
        super().__init__(message)
        self.col = col

def parse_int(text: str) -> int:
    """Convierte un literal entero (decimal, 0x.., 0b.., con signo opcional)."""
    m = INT_RE.match(text)
    if not m:
        raise ValueError(f"Inmediato mal formado: '{text}'")
    if m.group(1)[:2].lower() in ("0x", "0b"):
        return int(text, 0)
    # decimal con ceros a la izquierda ('007') no es válido para int(x, 0)
    return int(text, 10)

def unescape(body: str, *, col: int = 1) -> bytes:
    """Decodifica las secuencias de escape de un literal (sin comillas) a bytes."""
    out = bytearray()
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\":
            out += ch.encode("utf-8")
            i += 1
            continue
        nxt = body[i + 1] if i + 1 < len(body) else ""
        if nxt in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[nxt])
            i += 2
        elif nxt == "x" and re.match(r"[0-9a-fA-F]{2}", body[i + 2:i + 4]):
            out.append(int(body[i + 2:i + 4], 16))
            i += 4
        else:
            raise LexError(f"Secuencia de escape desconocida: '\\{nxt}'", col + i)
    return bytes(out)

def tokenize_line(line: str, lineno: int) -> List[Token]:
    """Tokeniza una línea (sin el salto de línea). Lanza LexError."""
    tokens: List[Token] = []
    pos = 0
    while pos < len(line):
        m = TOKEN_RE.match(line, pos)
        if not m:
            raise LexError(f"Carácter no reconocido: '{line[pos]}'", pos + 1)
        kind = m.lastgroup
        text = m.group()
        col = pos + 1
        pos = m.end()
        if kind in ("WS", "COMMENT"):
            continue
        if kind == "UNTERMINATED":
            raise LexError("Cadena sin cerrar", col)
        if kind == "STRING":
            tokens.append(Token("STRING", text, lineno, col, unescape(text[1:-1], col=col + 1)))
        elif kind == "CHAR":
            raw = unescape(text[1:-1], col=col + 1)
            if len(raw) != 1:
                raise LexError(f"Literal de carácter inválido: {text}", col)
            tokens.append(Token("INT", text, lineno, col, raw[0]))
        elif kind == "INT":
            try:
                value = parse_int(text)
            except ValueError as ex:
                raise LexError(str(ex), col)
            tokens.append(Token("INT", text, lineno, col, value))
        elif kind == "REG":
            if not is_reg(text):
                raise LexError(f"Registro inválido: {text}", col)
            tokens.append(Token("REG", text, lineno, col, text.lower()))
        elif kind == "DIRECTIVE":
            tokens.append(Token("DIRECTIVE", text, lineno, col, text.lower()))
        else:
            tokens.append(Token(kind, text, lineno, col, text))
    return tokens

def tokenize(text: str, *, filename: Optional[str] = None) -> Tuple[List[Token], List[Diagnostic]]:
    """
    Devuelve (tokens, diagnostics). Cada línea termina en un token NEWLINE.

    Una línea con error léxico se descarta completa (se reporta un
    SyntaxError con su posición) y el análisis sigue en la línea siguiente.
    """
    tokens: List[Token] = []
    diags: List[Diagnostic] = []
    # sólo \n separa líneas; un \r final lo consume WS
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    for lineno, raw in enumerate(lines, start=1):
        try:
            tokens.extend(tokenize_line(raw, lineno))
        except LexError as ex:
            diags.append(error(str(ex), kind=SYNTAX_ERROR, line=lineno, col=ex.col, file=filename))
        tokens.append(Token("NEWLINE", "\n", lineno, len(raw) + 1))
    return tokens, diags
