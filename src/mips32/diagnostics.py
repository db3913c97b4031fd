'''
diagnósticos de ensamblado: ubicación, tipo de error y AssemblyError
'''

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Optional, Literal

Severity = Literal["error", "advertencia"]

# Tipos de error de ensamblado; aparecen entre corchetes tras ERROR
SYNTAX_ERROR = "SyntaxError"
MALFORMED_OPERAND = "MalformedOperandError"
DUPLICATE_LABEL = "DuplicateLabelError"
UNRESOLVED_SYMBOL = "UnresolvedSymbolError"
IMMEDIATE_OVERFLOW = "ImmediateOverflowError"

ASSEMBLY_ERROR_KINDS = (
    SYNTAX_ERROR,
    MALFORMED_OPERAND,
    DUPLICATE_LABEL,
    UNRESOLVED_SYMBOL,
    IMMEDIATE_OVERFLOW,
)

@dataclass(frozen=True)
class Diagnostic:
    """Un problema encontrado al ensamblar.

    Se imprime como ``archivo:línea:col: ERROR[kind]: mensaje  (pista: ...)``;
    cada parte de la ubicación es opcional. Las advertencias no llevan ``kind``
    y no impiden generar el programa.
    """
    severity: Severity
    message: str
    line: Optional[int] = None
    col: Optional[int] = None
    hint: Optional[str] = None
    file: Optional[str] = None
    kind: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity == "error"

    def location(self) -> str:
        parts = [] if self.file is None else [self.file]
        if self.line is not None:
            parts.append(str(self.line))
            if self.col is not None:
                parts.append(str(self.col))
        return ":".join(parts)

    def __str__(self) -> str:
        label = self.severity.upper()
        if self.kind:
            label = f"{label}[{self.kind}]"
        text = f"{label}: {self.message}"
        if self.hint:
            text = f"{text}  (pista: {self.hint})"
        loc = self.location()
        return f"{loc}: {text}" if loc else text

def error(message: str, *, kind: str, line: int | None = None, col: int | None = None,
          file: str | None = None, hint: str | None = None) -> Diagnostic:
    """Error de ensamblado; ``kind`` es uno de ASSEMBLY_ERROR_KINDS."""
    return Diagnostic("error", message, line=line, col=col, hint=hint, file=file, kind=kind)

def warning(message: str, *, line: int | None = None, col: int | None = None,
            file: str | None = None, hint: str | None = None) -> Diagnostic:
    return Diagnostic("advertencia", message, line=line, col=col, hint=hint, file=file)

def has_errors(diags: Iterable[Diagnostic]) -> bool:
    return any(d.is_error for d in diags)

class AssemblyError(Exception):
    """El ensamblado produjo al menos un error; lleva todos los diagnósticos."""

    def __init__(self, diagnostics: List[Diagnostic]):
        self.diagnostics = list(diagnostics)
        errors = self.errors
        first = str(errors[0]) if errors else "sin detalles"
        super().__init__(f"{len(errors)} error(es) de ensamblado; primero: {first}")

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.is_error]

    @property
    def kinds(self) -> List[str]:
        return [d.kind for d in self.errors if d.kind]
