from __future__ import annotations
from typing import Iterable, List
from .utils import to_hex32, to_bin32
from .encoding import Encoded

def to_hex_lines(words: Iterable[Encoded]) -> List[str]:
    return [to_hex32(w.word) for w in words]

def to_bin_lines(words: Iterable[Encoded]) -> List[str]:
    return [to_bin32(w.word) for w in words]

def to_listing_lines(words: Iterable[Encoded]) -> List[str]:
    """Listado 'dirección: palabra  mnemónico  (línea N)' para depurar el ensamblado."""
    return [f"{to_hex32(w.pc)}: {to_hex32(w.word, prefix=False)}  {w.mnemonic:<8} (línea {w.line})"
            for w in words]

def _write_lines(lines: List[str], path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")

def write_hex(words: Iterable[Encoded], path: str) -> None:
    _write_lines(to_hex_lines(words), path)

def write_bin(words: Iterable[Encoded], path: str) -> None:
    _write_lines(to_bin_lines(words), path)

def write_listing(words: Iterable[Encoded], path: str) -> None:
    _write_lines(to_listing_lines(words), path)
