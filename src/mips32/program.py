'''
imagen plana resultante del ensamblado (Program)
'''

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional

@dataclass(frozen=True)
class Program:
    """Programa ensamblado, listo para cargarse en memoria.

    - text/data: bytes little-endian de cada segmento, a partir de su base
    - symbols: tabla de símbolos final (nombre → dirección)
    - entry: dirección de 'main' o, si no existe, text_base
    - lines: dirección de cada instrucción → línea del fuente
    """
    text_base: int
    text: bytes
    data_base: int
    data: bytes
    symbols: Dict[str, int] = field(default_factory=dict)
    globals: List[str] = field(default_factory=list)
    entry: int = 0
    lines: Dict[int, int] = field(default_factory=dict)

    @property
    def text_end(self) -> int:
        return self.text_base + len(self.text)

    @property
    def instruction_count(self) -> int:
        return len(self.text) // 4

    def word_at(self, address: int) -> int:
        off = address - self.text_base
        if off < 0 or off + 4 > len(self.text):
            raise IndexError(f"dirección fuera de .text: {address:#010x}")
        return int.from_bytes(self.text[off:off + 4], "little")

    def line_of(self, address: int) -> Optional[int]:
        return self.lines.get(address)
