import logging
from datetime import datetime, timezone
from typing import Optional

from ftpctl.core.connection import ControlChannel, redact_command
from ftpctl.core.data_connection import DataChannelNegotiator, DataConnectMode, DataConnection
from ftpctl.core.errors import FtpError
from ftpctl.core.reply import Reply

logger = logging.getLogger(__name__)


class ClientCommandHandler:
    """
    Ejecuta comandos sobre un ControlChannel y guarda un historial.

    Cada entrada del historial es un dict:
        {"time", "command", "reply", "error"}
    El comando se guarda siempre con PASS enmascarado.
    """

    def __init__(self, channel: ControlChannel, negotiator: Optional[DataChannelNegotiator] = None):
        self.channel = channel
        self.negotiator = negotiator or DataChannelNegotiator()
        self.history = []

    def _record(self, command: str, reply: Optional[Reply], error: Optional[FtpError] = None):
        self.history.append({
            "time": datetime.now(timezone.utc),
            "command": redact_command(command),
            "reply": reply,
            "error": error
        })

    def execute(self, command: str, *expected_codes: str) -> Reply:
        """Envia un comando crudo; si se pasan codigos esperados, valida la respuesta."""
        try:
            reply = self.channel.send_command(command)
        except FtpError as e:
            self._record(command, None, e)
            raise

        if expected_codes:
            try:
                self.channel.validate_reply(reply, *expected_codes)
            except FtpError as e:
                self._record(command, reply, e)
                raise

        self._record(command, reply)
        return reply

    def open_data_connection(self, mode: DataConnectMode) -> DataConnection:
        """Negocia PORT/PASV y registra el comando enviado con su respuesta."""
        verb = mode.verb
        try:
            data = self.negotiator.open_data_connection(mode, self.channel)
        except FtpError as e:
            reply = None
            if e.reply_code != -1 and e.reply_text is not None:
                reply = Reply(str(e.reply_code), e.reply_text)
            self._record(verb, reply, e)
            raise
        self._record(data.command or verb, data.reply)
        logger.debug("Negotiated %s", data)
        return data

    # Helpers for UI
    def get_history(self):
        """Return a copy of the history list."""
        return list(self.history)

    def clear_history(self):
        self.history.clear()
