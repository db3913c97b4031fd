'''
mapa de memoria de la máquina simulada (constantes de configuración)
'''

from __future__ import annotations
from dataclasses import dataclass

@dataclass(frozen=True)
class MemoryLayout:
    """Direcciones y tamaños de los segmentos (convención MARS/SPIM).

    Es configuración inmutable: ensamblador, memoria y CPU la reciben
    explícitamente en lugar de leer variables globales.
    """
    text_base: int = 0x00400000
    text_size: int = 0x00100000
    data_base: int = 0x10010000
    data_size: int = 0x00030000
    heap_base: int = 0x10040000
    heap_size: int = 0x00100000
    stack_top: int = 0x7ffff000
    stack_size: int = 0x00100000
    stack_pointer: int = 0x7fffeffc
    global_pointer: int = 0x10008000
    mmio_base: int = 0xffff0000
    mmio_size: int = 0x00010000

    @property
    def text_end(self) -> int:
        return self.text_base + self.text_size

    @property
    def data_end(self) -> int:
        return self.data_base + self.data_size

    @property
    def heap_end(self) -> int:
        return self.heap_base + self.heap_size

    @property
    def stack_base(self) -> int:
        """Dirección más baja del segmento de pila (crece hacia abajo desde stack_top)."""
        return self.stack_top - self.stack_size

    def in_mmio(self, address: int) -> bool:
        return self.mmio_base <= address < self.mmio_base + self.mmio_size

DEFAULT_LAYOUT = MemoryLayout()
