'''
subsistema de memoria: un único buffer con tabla de segmentos + ventana MMIO
'''

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional

from .faults import AlignmentError, SegmentationFault
from .layout import MemoryLayout, DEFAULT_LAYOUT
from .mmio import MMIOBus
from .program import Program
from .utils import u32, sign_extend

logger = logging.getLogger(__name__)

WIDTHS = (1, 2, 4)

@dataclass(frozen=True)
class Segment:
    """Rango [start, start+size) del espacio de direcciones y su desplazamiento en el buffer."""
    name: str
    start: int
    size: int
    offset: int

    @property
    def end(self) -> int:
        return self.start + self.size

    def contains(self, address: int, width: int = 1) -> bool:
        return self.start <= address and address + width <= self.end


class Memory:
    """Memoria little-endian de 32 bits.

    Todos los segmentos viven seguidos en un solo ``bytearray``; la tabla de
    segmentos traduce direcciones a desplazamientos. Las direcciones de la
    ventana MMIO se delegan en el bus de dispositivos.
    """

    def __init__(self, layout: MemoryLayout = DEFAULT_LAYOUT, mmio: Optional[MMIOBus] = None) -> None:
        self.layout = layout
        self.mmio = mmio if mmio is not None else MMIOBus()
        self.segments: List[Segment] = []
        offset = 0
        for name, start, size in ((".text", layout.text_base, layout.text_size),
                                  (".data", layout.data_base, layout.data_size),
                                  (".heap", layout.heap_base, layout.heap_size),
                                  (".stack", layout.stack_base, layout.stack_size)):
            self.segments.append(Segment(name, start, size, offset))
            offset += size
        self._buf = bytearray(offset)

    # ---- traducción ----

    def segment_of(self, address: int) -> Optional[Segment]:
        for seg in self.segments:
            if seg.contains(address):
                return seg
        return None

    def _offset(self, address: int, width: int) -> int:
        seg = self.segment_of(address)
        if seg is None:
            raise SegmentationFault(address)
        if not seg.contains(address, width):
            raise SegmentationFault(address, reason=f"cruza el final de {seg.name}")
        return seg.offset + (address - seg.start)

    @staticmethod
    def _check(address: int, width: int) -> None:
        if width not in WIDTHS:
            raise ValueError(f"ancho de acceso inválido: {width}")
        if address % width:
            raise AlignmentError(address, width)

    # ---- accesos de la CPU ----

    def load(self, address: int, width: int, *, signed: bool = False) -> int:
        address = u32(address)
        self._check(address, width)
        if self.layout.in_mmio(address):
            value = self.mmio.load(address - self.layout.mmio_base, width, address)
        else:
            off = self._offset(address, width)
            value = int.from_bytes(self._buf[off:off + width], "little")
        return u32(sign_extend(value, width * 8)) if signed else value

    def store(self, address: int, width: int, value: int) -> None:
        address = u32(address)
        self._check(address, width)
        value &= (1 << (width * 8)) - 1
        if self.layout.in_mmio(address):
            self.mmio.store(address - self.layout.mmio_base, width, value, address)
            return
        off = self._offset(address, width)
        self._buf[off:off + width] = value.to_bytes(width, "little")

    def load_word(self, address: int) -> int:
        return self.load(address, 4)

    def store_word(self, address: int, value: int) -> None:
        self.store(address, 4, value)

    # ---- bloques (syscalls y carga) ----

    def read_bytes(self, address: int, n: int) -> bytes:
        if n == 0:
            return b""
        off = self._offset(u32(address), n)
        return bytes(self._buf[off:off + n])

    def write_bytes(self, address: int, data: bytes) -> None:
        if not data:
            return
        off = self._offset(u32(address), len(data))
        self._buf[off:off + len(data)] = data

    def read_cstring(self, address: int) -> bytes:
        """Bytes desde address hasta el primer NUL (sin incluirlo)."""
        address = u32(address)
        seg = self.segment_of(address)
        if seg is None:
            raise SegmentationFault(address)
        start = seg.offset + (address - seg.start)
        end = self._buf.find(0, start, seg.offset + seg.size)
        if end < 0:
            raise SegmentationFault(seg.end, reason=f"cadena sin NUL antes del final de {seg.name}")
        return bytes(self._buf[start:end])

    def load_program(self, program: Program) -> None:
        """Copia .text y .data del programa en sus segmentos."""
        for name, base, blob in ((".text", program.text_base, program.text),
                                 (".data", program.data_base, program.data)):
            if blob and not any(s.name == name and s.contains(base, len(blob)) for s in self.segments):
                raise SegmentationFault(base, reason=f"{name} de {len(blob)} bytes no cabe en su segmento")
            self.write_bytes(base, blob)
        logger.debug("programa cargado: .text=%d bytes, .data=%d bytes", len(program.text), len(program.data))

    def tick(self) -> None:
        self.mmio.tick()
