'''
dispositivos de E/S mapeados en memoria: teclado (receptor) y pantalla (transmisor)
'''

from __future__ import annotations
import logging
from collections import deque
from typing import IO, Callable, Deque, Optional

from .faults import SegmentationFault

logger = logging.getLogger(__name__)

# Desplazamientos de los registros respecto de layout.mmio_base
RECEIVER_CONTROL = 0x0
RECEIVER_DATA = 0x4
TRANSMITTER_CONTROL = 0x8
TRANSMITTER_DATA = 0xC

READY = 0x1


def emit_bytes(stream: IO, data: bytes) -> None:
    """Escribe bytes tal cual en stream.

    Si es un flujo de texto con ``buffer`` (sys.stdout) se vacía su capa de
    texto y se escribe en el buffer binario, sin pasar por ningún codec.
    """
    sink = getattr(stream, "buffer", None)
    if sink is None:
        sink = stream
    else:
        stream.flush()
    sink.write(data)
    sink.flush()


class Keyboard:
    """Receptor: control (bit0 = ready) y dato.

    Sólo pasa a ready cuando alguien externo entrega bytes con ``feed`` o
    cuando ``source`` (opcional) devuelve bytes al consultar el control.
    """

    def __init__(self, source: Optional[Callable[[], bytes]] = None) -> None:
        self._queue: Deque[int] = deque()
        self._source = source

    def feed(self, data: bytes) -> None:
        self._queue.extend(data)

    @property
    def ready(self) -> bool:
        return bool(self._queue)

    def read_control(self) -> int:
        if not self._queue and self._source is not None:
            self.feed(self._source() or b"")
        return READY if self._queue else 0

    def read_data(self) -> int:
        if not self._queue:
            return 0
        return self._queue.popleft()


class Display:
    """Transmisor: control (bit0 = ready, inicialmente 1) y dato.

    Escribir el dato retiene el byte y baja ready; tras ``delay`` ticks el
    byte sale por ``output`` (y por ``stream`` si se dio) y ready vuelve a 1.
    """

    def __init__(self, stream: Optional[IO] = None, *, delay: int = 0) -> None:
        if delay < 0:
            raise ValueError("delay debe ser >= 0")
        self.delay = delay
        self.stream = stream
        self.output = bytearray()
        self._latched: Optional[int] = None
        self._countdown = 0

    @property
    def ready(self) -> bool:
        return self._latched is None

    def read_control(self) -> int:
        return READY if self.ready else 0

    def write_data(self, value: int) -> None:
        self._latched = value & 0xFF
        self._countdown = self.delay
        if self._countdown == 0:
            self._flush()

    def tick(self) -> None:
        if self._latched is None:
            return
        self._countdown -= 1
        if self._countdown <= 0:
            self._flush()

    def _flush(self) -> None:
        byte = self._latched
        self._latched = None
        self.output.append(byte)
        if self.stream is not None:
            emit_bytes(self.stream, bytes((byte,)))
        logger.debug("display: byte %#04x transmitido", byte)


class MMIOBus:
    """Enruta los accesos de la ventana MMIO a los registros de cada dispositivo."""

    def __init__(self, keyboard: Optional[Keyboard] = None, display: Optional[Display] = None) -> None:
        self.keyboard = keyboard if keyboard is not None else Keyboard()
        self.display = display if display is not None else Display()

    def _register(self, offset: int, address: int) -> int:
        reg = offset & ~0x3
        if reg not in (RECEIVER_CONTROL, RECEIVER_DATA, TRANSMITTER_CONTROL, TRANSMITTER_DATA):
            raise SegmentationFault(address, reason="no corresponde a ningún registro MMIO")
        return reg

    def load(self, offset: int, width: int, address: int) -> int:
        reg = self._register(offset, address)
        if reg == RECEIVER_CONTROL:
            value = self.keyboard.read_control()
        elif reg == RECEIVER_DATA:
            value = self.keyboard.read_data()
        elif reg == TRANSMITTER_CONTROL:
            value = self.display.read_control()
        else:
            value = 0
        shift = (offset & 0x3) * 8
        return (value >> shift) & ((1 << (width * 8)) - 1)

    def store(self, offset: int, width: int, value: int, address: int) -> None:
        reg = self._register(offset, address)
        if reg == TRANSMITTER_DATA and offset == TRANSMITTER_DATA:
            self.display.write_data(value)
        # los registros de control y del receptor no admiten escritura (no hay interrupciones)

    def tick(self) -> None:
        self.display.tick()
