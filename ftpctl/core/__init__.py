"""
Core FTP control-channel engine.
Includes the control channel, reply reader, data channel negotiator and
the PORT/PASV address codec.
"""

from .errors import ErrorKind, FtpError
from .reply import Reply, ReplyReader
from .address import HostPort
from .connection import ChannelState, ControlChannel, redact_command
from .data_connection import DataChannelNegotiator, DataConnectMode, DataConnection, open_data_connection
from .commands import ClientCommandHandler

__all__ = [
    "ErrorKind",
    "FtpError",
    "Reply",
    "ReplyReader",
    "HostPort",
    "ChannelState",
    "ControlChannel",
    "redact_command",
    "DataChannelNegotiator",
    "DataConnectMode",
    "DataConnection",
    "open_data_connection",
    "ClientCommandHandler"
]
