"""
Codificacion de la tupla h1,h2,h3,h4,p1,p2 usada por PORT y por las
respuestas 227 de PASV.
"""

import ipaddress
import logging
from dataclasses import dataclass
from typing import Sequence

from ftpctl.core.errors import FtpError

logger = logging.getLogger(__name__)

COMPONENT_COUNT = 6


@dataclass(frozen=True)
class HostPort:
    """Direccion IPv4 en formato decimal con puntos y puerto de 16 bits."""
    host: str
    port: int

    def as_tuple(self):
        return self.host, self.port

    def __str__(self):
        return f"{self.host}:{self.port}"


def encode(address: str, port: int) -> bytes:
    """Devuelve los 6 bytes sin signo: 4 del host (orden de red) y 2 del puerto."""
    try:
        ip = ipaddress.IPv4Address(address)
    except ValueError as e:
        raise FtpError.protocol(f"Not an IPv4 address: {address!r}") from e
    if not 0 <= port <= 0xFFFF:
        raise FtpError.protocol(f"Port out of range: {port}")
    return ip.packed + bytes((port >> 8, port & 0xFF))


def decode(components: Sequence[int]) -> HostPort:
    if len(components) != COMPONENT_COUNT:
        raise FtpError.protocol(f"Expected {COMPONENT_COUNT} address components, got {len(components)}")
    for value in components:
        if not 0 <= value <= 255:
            raise FtpError.protocol(f"Address component out of range: {value}")
    host = ".".join(str(c) for c in components[:4])
    port = (components[4] << 8) + components[5]
    return HostPort(host, port)


def format_port_argument(address: str, port: int) -> str:
    # bytes iterate as ints in 0..255, never signed
    return ",".join(str(b) for b in encode(address, port))


def port_command(address: str, port: int) -> str:
    return f"PORT {format_port_argument(address, port)}"


def _tuple_region(text: str) -> str:
    start = text.find('(')
    end = text.find(')')
    if start >= 0 and end > start:
        return text[start + 1:end]
    if start < 0 and end < 0:
        # IBM/mainframe: "227 Entering Passive Mode 128,3,122,1,15,87"
        mode = text.upper().rfind("MODE")
        if mode >= 0:
            return text[mode + 4:].strip()
    raise FtpError.protocol(f"Malformed PASV reply: {text}", reply_code=227, reply_text=text)


def parse_pasv_reply(text: str) -> HostPort:
    """
    Extrae host y puerto del texto de una respuesta 227.

    Recorre la region caracter por caracter: acumula digitos y al llegar a ','
    o al final convierte el buffer en el siguiente componente. Cualquier otro
    caracter, un componente vacio o una cantidad distinta de 6 componentes
    es un error de protocolo.
    """
    region = _tuple_region(text)
    parts = []
    buf = []

    for i, ch in enumerate(region):
        if ch.isascii() and ch.isdigit():
            buf.append(ch)
        elif ch != ',':
            raise FtpError.protocol(f"Malformed PASV reply: {text}", reply_code=227, reply_text=text)

        if ch == ',' or i + 1 == len(region):
            try:
                parts.append(int("".join(buf)))
            except ValueError as e:
                raise FtpError.protocol(f"Malformed PASV reply: {text}", reply_code=227, reply_text=text) from e
            buf.clear()
            if len(parts) > COMPONENT_COUNT:
                raise FtpError.protocol(f"Malformed PASV reply: {text}", reply_code=227, reply_text=text)

    if len(parts) != COMPONENT_COUNT:
        raise FtpError.protocol(f"Malformed PASV reply: {text}", reply_code=227, reply_text=text)

    host_port = decode(parts)
    logger.debug("PASV parsed: %s", host_port)
    return host_port
