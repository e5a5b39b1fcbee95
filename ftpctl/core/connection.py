import logging
import socket
from enum import Enum
from typing import Optional

from ftpctl.core.errors import FtpError
from ftpctl.core.reply import EOL, Reply, ReplyReader

logger = logging.getLogger(__name__)

CONTROL_PORT = 21
DEFAULT_TIMEOUT_MS = 10000

PASSWORD_COMMAND = "PASS"
QUIT_COMMAND = "QUIT"
PASSWORD_MASK = "********"


def redact_command(command: str) -> str:
    """Oculta el argumento de PASS antes de que el comando llegue a un log."""
    stripped = command.lstrip()
    if stripped[:4].upper() == PASSWORD_COMMAND and (len(stripped) == 4 or stripped[4].isspace()):
        return f"{PASSWORD_COMMAND} {PASSWORD_MASK}"
    return command


def millis_to_seconds(millis: int) -> Optional[float]:
    # 0 significa sin limite, como SO_TIMEOUT
    return millis / 1000.0 if millis else None


class ChannelState(Enum):
    UNCONNECTED = "unconnected"
    CONNECTED = "connected"
    CLOSED = "closed"


class ControlChannel:
    """
    Conexion de control FTP: un socket TCP con su lector y escritor.

    Ciclo de vida: UNCONNECTED -> CONNECTED -> CLOSED. Solo se pasa a
    CONNECTED cuando el banner inicial es un 220; con cualquier otro codigo
    el socket se cierra antes de que connect() devuelva el error.

    No es thread-safe: un canal por sesion, usado por un hilo a la vez.

    Métodos públicos:
        - connect(host, port=21, timeout_ms=10000) -> Reply
        - send_command(command) -> Reply
        - validate_reply(reply, *expected_codes) -> Reply
        - set_timeout(millis) -> None
        - logout() -> None
        - close() -> None
    """

    def __init__(self):
        self.state = ChannelState.UNCONNECTED
        self.debug_responses = False
        self.banner: Optional[Reply] = None
        self._socket: Optional[socket.socket] = None
        self._reader_stream = None
        self._writer_stream = None
        self._reader: Optional[ReplyReader] = None
        self._timeout_ms = DEFAULT_TIMEOUT_MS
        self._peer = None

    @classmethod
    def open(cls, host: str, port: int = CONTROL_PORT, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> "ControlChannel":
        """Crea un canal y lo conecta en un solo paso."""
        channel = cls()
        channel.connect(host, port, timeout_ms)
        return channel

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.state is ChannelState.CONNECTED:
            self.close()
        return False

    # ---------------- lifecycle ----------------
    def connect(self, host: str, port: int = CONTROL_PORT, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> Reply:
        if self.state is not ChannelState.UNCONNECTED:
            raise FtpError.illegal_state(f"Cannot connect a channel in state {self.state.name}")

        # el saludo inicial siempre se traza
        self.debug_responses = True
        logger.info(f"Connecting to {host}:{port} (timeout={timeout_ms}ms)")
        try:
            self._socket = socket.create_connection((host, port), timeout=millis_to_seconds(timeout_ms))
        except OSError as e:
            self.state = ChannelState.CLOSED
            logger.error(f"✗ Failed to connect to {host}:{port} - {e}")
            raise FtpError.io(f"Failed to connect to {host}:{port} - {e}") from e

        self._peer = (host, port)
        try:
            self._apply_timeout(timeout_ms)
            self._reader_stream = self._socket.makefile("rb")
            self._writer_stream = self._socket.makefile("wb")
            self._reader = ReplyReader(self._reader_stream)
            reply = self._reader.read_reply(trace=self.debug_responses)
            self.validate_reply(reply, "220")
        except BaseException:
            logger.error(f"✗ Greeting from {host}:{port} rejected, closing control socket")
            self.debug_responses = False
            self._release_quietly()
            raise

        self.banner = reply
        self.state = ChannelState.CONNECTED
        self.debug_responses = False
        logger.info(f"✓ Connected to {host}:{port}")
        return reply

    def logout(self) -> None:
        """Envia QUIT y libera el canal; un fallo de QUIT se propaga tras el cierre."""
        self._require_connected("logout")
        try:
            reply = self.send_command(QUIT_COMMAND)
            self.validate_reply(reply, "221", "200")
        finally:
            self.close()

    def close(self) -> None:
        """
        Cierra escritor, lector y socket. Se intentan los tres aunque alguno
        falle; si hubo fallos se relanza el ultimo al terminar.
        """
        if self.state is ChannelState.CLOSED:
            return
        if self.state is ChannelState.UNCONNECTED:
            raise FtpError.illegal_state("Cannot close a channel that was never connected")
        self._release()

    def _release_quietly(self) -> None:
        """Libera el canal sin reemplazar el error que se esta propagando."""
        try:
            self._release()
        except FtpError as e:
            logger.error(f"Error releasing control connection: {e}")

    def _release(self) -> None:
        error = None
        for resource in (self._writer_stream, self._reader_stream, self._socket):
            if resource is None:
                continue
            try:
                resource.close()
            except OSError as e:
                logger.exception("Error closing control resource %r", resource)
                error = e

        self._writer_stream = None
        self._reader_stream = None
        self._socket = None
        self._reader = None
        self.state = ChannelState.CLOSED
        if self._peer:
            logger.info(f"✓ Disconnected from {self._peer[0]}:{self._peer[1]}")

        if error is not None:
            raise FtpError.io(f"Failed to release control connection: {error}") from error

    # ---------------- commands ----------------
    def send_command(self, command: str) -> Reply:
        """Escribe el comando terminado en CRLF y devuelve la respuesta sin validar."""
        self._require_connected("send a command")
        logger.debug(f"→ SEND: {redact_command(command)}")
        try:
            self._writer_stream.write((command + EOL).encode("utf-8"))
            self._writer_stream.flush()
        except OSError as e:
            self._release_quietly()
            raise FtpError.io(f"Failed to send command: {e}") from e
        return self.read_reply()

    def read_reply(self) -> Reply:
        """
        Lee una respuesta adicional, p.ej. el 226 que sigue a una transferencia.

        Un fallo de transporte (timeout, cierre del servidor) deja el flujo de
        lectura inservible, asi que el canal se libera y pasa a CLOSED.
        """
        self._require_connected("read a reply")
        try:
            return self._reader.read_reply(trace=self.debug_responses)
        except FtpError as e:
            if e.is_io:
                logger.error(f"✗ Control connection lost: {e}")
                self._release_quietly()
            raise

    @staticmethod
    def validate_reply(reply: Reply, *expected_codes) -> Reply:
        if len(expected_codes) == 1 and isinstance(expected_codes[0], (list, tuple, set, frozenset)):
            expected_codes = tuple(expected_codes[0])
        if reply.code in expected_codes:
            return reply
        raise FtpError.protocol(reply.text, reply_code=reply.code, reply_text=reply.text)

    # ---------------- socket settings ----------------
    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    def set_timeout(self, millis: int) -> None:
        if self._socket is None:
            raise FtpError.illegal_state("Failed to set timeout - no control socket")
        self._apply_timeout(millis)

    def _apply_timeout(self, millis: int) -> None:
        if millis < 0:
            raise ValueError(f"Timeout must be >= 0, got {millis}")
        self._socket.settimeout(millis_to_seconds(millis))
        self._timeout_ms = millis

    def local_address(self) -> str:
        """Direccion local a la que esta ligado el socket de control."""
        self._require_connected("read the local address")
        return self._socket.getsockname()[0]

    def remote_address(self):
        self._require_connected("read the remote address")
        return self._socket.getpeername()[:2]

    def remote_host_name(self) -> str:
        host = self.remote_address()[0]
        try:
            return socket.gethostbyaddr(host)[0]
        except OSError:
            return host

    def _require_connected(self, action: str) -> None:
        if self.state is not ChannelState.CONNECTED:
            raise FtpError.illegal_state(f"Cannot {action}: channel is {self.state.name}")

    def __str__(self):
        peer = f"{self._peer[0]}:{self._peer[1]}" if self._peer else "-"
        return f"ControlChannel(peer={peer}, state={self.state.name})"
