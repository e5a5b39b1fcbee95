import logging
import socket
from enum import Enum
from typing import Optional

from ftpctl.core import address
from ftpctl.core.connection import ControlChannel, millis_to_seconds
from ftpctl.core.errors import FtpError
from ftpctl.core.reply import Reply

logger = logging.getLogger(__name__)


class DataConnectMode(Enum):
    ACTIVE = "active"
    PASSIVE = "passive"

    @property
    def verb(self) -> str:
        """Comando de control que negocia este modo."""
        return "PORT" if self is DataConnectMode.ACTIVE else "PASV"

    @classmethod
    def parse(cls, value: str) -> "DataConnectMode":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown data connect mode: {value!r} (expected 'active' or 'passive')") from None


class DataConnection:
    """
    Maneja la conexion de datos obtenida tras PORT o PASV.

    En modo pasivo el socket ya esta conectado. En modo activo la conexion
    queda pendiente: el socket escucha y el servidor solo se conecta despues
    de que el llamador envie el comando de transferencia, momento en el que
    debe llamar a accept(). Cerrar una conexion pendiente desbloquea un
    accept() en curso.
    """

    def __init__(self, mode: DataConnectMode, sock: socket.socket, timeout_ms: int, pending: bool,
                 command: str = None, reply: Reply = None):
        self.mode = mode
        self.command = command
        self.reply = reply
        self.timeout_ms = timeout_ms
        self._listener: Optional[socket.socket] = sock if pending else None
        self._socket: Optional[socket.socket] = None if pending else sock
        self._closed = False

    @property
    def is_pending(self) -> bool:
        return self._listener is not None

    @property
    def data_socket(self) -> socket.socket:
        if self._closed:
            raise FtpError.illegal_state("Data connection is closed")
        if self._socket is None:
            raise FtpError.illegal_state("Data connection is pending: call accept() first")
        return self._socket

    def local_address(self):
        sock = self._listener if self._listener is not None else self.data_socket
        return sock.getsockname()[:2]

    def accept(self, timeout_ms: Optional[int] = None) -> socket.socket:
        """
        Espera la conexion entrante del servidor (modo activo).

        timeout_ms=None reutiliza el timeout del canal de control. El socket
        de escucha se cierra siempre, haya o no conexion.
        """
        if self._closed:
            raise FtpError.illegal_state("Data connection is closed")
        if self._listener is None:
            raise FtpError.illegal_state(f"Nothing to accept on a {self.mode.name} data connection")

        wait_ms = self.timeout_ms if timeout_ms is None else timeout_ms
        listener = self._listener
        try:
            listener.settimeout(millis_to_seconds(wait_ms))
            conn, peer = listener.accept()
        except OSError as e:
            self._listener = None
            self._closed = True
            raise FtpError.io(f"Failed to accept data connection: {e}") from e
        finally:
            listener.close()

        self._listener = None
        conn.settimeout(millis_to_seconds(self.timeout_ms))
        self._socket = conn
        logger.info(f"[DATA] Accepted connection from {peer[0]}:{peer[1]}")
        return conn

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        error = None
        if self._listener is not None:
            # en Linux close() no despierta un accept() bloqueado en otro hilo
            try:
                self._listener.shutdown(socket.SHUT_RDWR)
            except OSError as e:
                logger.debug("[DATA] Listener shutdown: %s", e)
        for sock in (self._listener, self._socket):
            if sock is None:
                continue
            try:
                sock.close()
            except OSError as e:
                logger.exception("Error closing data socket")
                error = e
        self._listener = None
        self._socket = None
        logger.debug("[DATA] %s data connection closed", self.mode.name)
        if error is not None:
            raise FtpError.io(f"Failed to close data connection: {error}") from error

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __str__(self):
        state = "closed" if self._closed else ("pending" if self.is_pending else "connected")
        return f"DataConnection(mode={self.mode.name}, state={state})"


class DataChannelNegotiator:
    """Obtiene una conexion de datos mediante PORT (activo) o PASV (pasivo)."""

    def open_data_connection(self, mode: DataConnectMode, channel: ControlChannel) -> DataConnection:
        if mode is DataConnectMode.ACTIVE:
            return self._open_active(channel)
        return self._open_passive(channel)

    def _open_active(self, channel: ControlChannel) -> DataConnection:
        local_host = channel.local_address()
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            listener.bind((local_host, 0))
            listener.listen(1)
            port = listener.getsockname()[1]
            logger.info(f"[DATA] Listening on {local_host}:{port} for active transfer")

            command = address.port_command(local_host, port)
            reply = channel.send_command(command)
            channel.validate_reply(reply, "200")
        except OSError as e:
            listener.close()
            raise FtpError.io(f"Failed to open active data listener: {e}") from e
        except BaseException:
            listener.close()
            raise

        return DataConnection(DataConnectMode.ACTIVE, listener, channel.timeout_ms, pending=True,
                              command=command, reply=reply)

    def _open_passive(self, channel: ControlChannel) -> DataConnection:
        reply = channel.send_command(DataConnectMode.PASSIVE.verb)
        channel.validate_reply(reply, "227")
        host_port = address.parse_pasv_reply(reply.text)

        try:
            sock = socket.create_connection(host_port.as_tuple(), timeout=millis_to_seconds(channel.timeout_ms))
        except OSError as e:
            raise FtpError.io(f"Failed to connect data channel to {host_port} - {e}") from e

        logger.info(f"[DATA] Connected to {host_port}")
        return DataConnection(DataConnectMode.PASSIVE, sock, channel.timeout_ms, pending=False,
                              command=DataConnectMode.PASSIVE.verb, reply=reply)


def open_data_connection(mode: DataConnectMode, channel: ControlChannel) -> DataConnection:
    return DataChannelNegotiator().open_data_connection(mode, channel)
