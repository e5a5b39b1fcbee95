from enum import Enum


class ErrorKind(Enum):
    """Categorias de fallo del cliente de control."""
    IO = "io"
    PROTOCOL = "protocol"
    ILLEGAL_STATE = "illegal_state"


class FtpError(Exception):
    """
    Error unico del motor de control FTP, etiquetado por `kind`.

    Campos:
        - kind (ErrorKind): IO (transporte), PROTOCOL (respuesta invalida) o
          ILLEGAL_STATE (uso incorrecto de la API).
        - reply_code (int): codigo de respuesta del servidor, -1 si no aplica.
        - reply_text (str | None): texto de la respuesta del servidor.
    """

    def __init__(self, kind: ErrorKind, message: str, reply_code=None, reply_text: str = None):
        super().__init__(message)
        self.kind = kind
        self.reply_text = reply_text
        try:
            self.reply_code = int(reply_code)
        except (TypeError, ValueError):
            self.reply_code = -1

    @classmethod
    def io(cls, message: str) -> "FtpError":
        return cls(ErrorKind.IO, message)

    @classmethod
    def protocol(cls, message: str, reply_code=None, reply_text: str = None) -> "FtpError":
        return cls(ErrorKind.PROTOCOL, message, reply_code, reply_text)

    @classmethod
    def illegal_state(cls, message: str) -> "FtpError":
        return cls(ErrorKind.ILLEGAL_STATE, message)

    @property
    def is_io(self) -> bool:
        return self.kind is ErrorKind.IO

    @property
    def is_protocol(self) -> bool:
        return self.kind is ErrorKind.PROTOCOL

    @property
    def is_illegal_state(self) -> bool:
        return self.kind is ErrorKind.ILLEGAL_STATE

    def __repr__(self):
        return f"FtpError(kind={self.kind.name}, code={self.reply_code}, msg={str(self)!r})"
