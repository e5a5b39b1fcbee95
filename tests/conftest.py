import socket
import threading

import pytest


class ScriptedFtpServer:
    """
    Servidor FTP de prueba: acepta una sola conexion de control, envia el
    banner y contesta cada linea recibida segun `handlers`.

    handlers: dict verbo -> bytes | callable(server, line) -> bytes | None
    b"" deja al servidor en silencio; None cierra la conexion de control.
    """

    def __init__(self, banner: bytes = b"220 Service ready\r\n", handlers=None):
        self.banner = banner
        self.handlers = handlers or {}
        self.received = []
        self.state = {}
        self.client_closed = threading.Event()
        self._extra_sockets = []

        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(1)
        self.host, self.port = self._sock.getsockname()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _run(self):
        try:
            conn, _ = self._sock.accept()
        except OSError:
            return
        with conn, conn.makefile("rb") as reader:
            if self.banner:
                conn.sendall(self.banner)
            while True:
                try:
                    raw = reader.readline()
                except OSError:
                    break
                if not raw:
                    break
                self.received.append(raw)
                line = raw.decode("utf-8").rstrip("\r\n")
                verb = line.split(" ", 1)[0].upper()
                response = self.handlers.get(verb, b"502 Command not implemented\r\n")
                if callable(response):
                    response = response(self, line)
                if response is None:
                    break
                if response:
                    conn.sendall(response)
        self.client_closed.set()

    def open_passive_listener(self, payload: bytes):
        """Abre un socket de datos que envia `payload` al primer cliente."""
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener.bind(("127.0.0.1", 0))
        listener.listen(1)
        self._extra_sockets.append(listener)

        def serve():
            try:
                conn, _ = listener.accept()
            except OSError:
                return
            with conn:
                conn.sendall(payload)

        threading.Thread(target=serve, daemon=True).start()
        return listener.getsockname()[1]

    def connect_back(self, host: str, port: int, payload: bytes):
        """Modo activo: el servidor se conecta al listener del cliente."""
        sock = socket.create_connection((host, port), timeout=2)
        self._extra_sockets.append(sock)
        sock.sendall(payload)
        sock.close()

    def close(self):
        self._sock.close()
        for sock in self._extra_sockets:
            sock.close()
        self._thread.join(timeout=2)


@pytest.fixture()
def ftp_server():
    servers = []

    def start(banner: bytes = b"220 Service ready\r\n", handlers=None) -> ScriptedFtpServer:
        server = ScriptedFtpServer(banner, handlers)
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.close()
