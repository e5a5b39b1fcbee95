import logging
from dataclasses import dataclass
from typing import BinaryIO, Optional

from ftpctl.core.errors import FtpError

logger = logging.getLogger(__name__)

EOL = "\r\n"

RESPONSE_TYPES = {
    '1': 'preliminary',
    '2': 'success',
    '3': 'intermediate',
    '4': 'transient',
    '5': 'permanent'
}


@dataclass(frozen=True)
class Reply:
    """
    Respuesta del servidor ya parseada: codigo de 3 digitos y texto.

    El texto nunca incluye el prefijo del codigo ni el separador ('-' o ' ').
    Las respuestas multilinea se unen con un espacio simple.
    """
    code: str
    text: str

    def __post_init__(self):
        if len(self.code) != 3 or not self.code.isdigit() or not self.code.isascii():
            raise FtpError.protocol(f"Invalid reply code: {self.code!r}", reply_text=self.text)

    @property
    def category(self) -> str:
        return RESPONSE_TYPES.get(self.code[0], 'unknown')

    @property
    def is_error(self) -> bool:
        return self.code[0] in ('4', '5')

    def __str__(self):
        return f"{self.code} {self.text}"


class ReplyReader:
    """Assembles single or multi-line replies from the control connection."""

    def __init__(self, stream: BinaryIO, encoding: str = "utf-8"):
        self.stream = stream
        self.encoding = encoding

    def _read_line(self) -> Optional[str]:
        try:
            raw = self.stream.readline()
        except OSError as e:
            raise FtpError.io(f"Failed reading reply: {e}") from e
        if not raw:
            return None
        line = raw.decode(self.encoding, errors="replace")
        if line.endswith("\r\n"):
            return line[:-2]
        return line.rstrip("\r\n")

    def read_reply(self, trace: bool = False) -> Reply:
        """
        Lee una respuesta completa segun la regla de RFC 959:
        si el cuarto caracter es '-', se siguen leyendo lineas hasta encontrar
        una que empiece con el mismo codigo seguido de un espacio.
        """
        first = self._read_line()
        if not first:
            raise FtpError.io("Unexpected empty reply")
        if trace:
            logger.debug(f"← RECV: {first}")

        code = first[:3]
        if len(code) != 3 or not code.isdigit():
            raise FtpError.protocol(f"Malformed reply line: {first!r}", reply_text=first)

        if len(first) < 4 or first[3] != '-':
            return Reply(code, first[4:])

        parts = [first[4:]]
        continuation_prefix = code + '-'
        while True:
            line = self._read_line()
            if line is None:
                raise FtpError.io(f"Unexpected end of multi-line reply {code}")
            if trace:
                logger.debug(f"← RECV: {line}")

            if len(line) > 3 and line[:3] == code and line[3] == ' ':
                parts.append(line[4:])
                break
            if line.startswith(continuation_prefix):
                line = line[4:]
            parts.append(line)

        text = " ".join(p.strip() for p in parts if p.strip())
        return Reply(code, text)
