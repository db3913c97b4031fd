from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional

from .assembler import assemble_program
from .cpu import CPU, Faulted, Halted
from .diagnostics import AssemblyError, Diagnostic
from .mmio import Display, MMIOBus
from .syscalls import StreamConsole
from .utils import to_hex32
from .writers import write_hex, write_bin, write_listing

# Códigos de salida del proceso (además del código del programa simulado)
EXIT_ASSEMBLY_ERROR = 1
EXIT_UNREADABLE = 2
EXIT_FAULT = 3
EXIT_STEP_LIMIT = 4

def _non_negative(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"debe ser >= 0: {value}")
    return value

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="mips32", description="Ensamblador e intérprete MIPS32")
    ap.add_argument("source", help="archivo .asm/.s de entrada")
    ap.add_argument("--max-steps", type=int, default=None, metavar="N",
                    help="detener tras N instrucciones (código de salida 4)")
    ap.add_argument("--hex", metavar="PATH", help="escribir las palabras de .text en hexadecimal")
    ap.add_argument("--bin", metavar="PATH", help="escribir las palabras de .text en binario ASCII")
    ap.add_argument("--listing", metavar="PATH", help="escribir un listado dirección/palabra/línea")
    ap.add_argument("--assemble-only", action="store_true", help="ensamblar sin ejecutar")
    ap.add_argument("--mmio-delay", type=_non_negative, default=0, metavar="TICKS",
                    help="instrucciones que tarda la pantalla MMIO en volver a ready")
    ap.add_argument("-v", "--verbose", action="store_true", help="traza de ejecución (DEBUG)")
    return ap

def _report(diags: List[Diagnostic]) -> None:
    for d in diags:
        print(d, file=sys.stderr)

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        with open(args.source, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError as ex:
        print(f"ERROR: no pude leer {args.source}: {ex}", file=sys.stderr)
        return EXIT_UNREADABLE

    diags: List[Diagnostic] = []
    try:
        program, enc = assemble_program(text, filename=args.source, diagnostics=diags)
    except AssemblyError as ex:
        _report(ex.diagnostics)
        return EXIT_ASSEMBLY_ERROR
    _report(diags)

    if args.hex or args.bin or args.listing:
        try:
            if args.hex:
                write_hex(enc.words, args.hex)
            if args.bin:
                write_bin(enc.words, args.bin)
            if args.listing:
                write_listing(enc.words, args.listing)
        except OSError as ex:
            print(f"ERROR al escribir salidas: {ex}", file=sys.stderr)
            return EXIT_UNREADABLE

    if args.assemble_only:
        print(f"OK: {program.instruction_count} instrucciones, {len(program.data)} bytes de datos")
        return 0

    mmio = MMIOBus(display=Display(sys.stdout, delay=args.mmio_delay))
    cpu = CPU(program, console=StreamConsole(sys.stdin, sys.stdout), mmio=mmio)
    state = cpu.run(max_steps=args.max_steps)
    sys.stdout.flush()

    if isinstance(state, Halted):
        return state.exit_code
    if isinstance(state, Faulted):
        fault = state.fault
        where = f"pc {to_hex32(fault.pc)}" if fault.pc is not None else "pc desconocido"
        line = cpu.line_of(fault.pc)
        if line is not None:
            where += f", línea {line}"
        print(f"{fault.kind} en {where}: {fault.message}", file=sys.stderr)
        return EXIT_FAULT
    print(f"ERROR: límite de {args.max_steps} pasos agotado en pc {to_hex32(cpu.pc)}", file=sys.stderr)
    return EXIT_STEP_LIMIT

if __name__ == "__main__":
    raise SystemExit(main())
