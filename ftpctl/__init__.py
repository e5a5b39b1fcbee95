"""ftpctl - FTP control-channel client engine."""

__version__ = "0.1.0"

__all__ = ["ControlChannel", "DataConnectMode", "FtpError", "Reply", "ClientConfig"]

def __getattr__(name: str):
	if name == "ClientConfig":
		from .config import ClientConfig
		return ClientConfig
	if name in ("ControlChannel", "DataConnectMode", "FtpError", "Reply"):
		from . import core
		return getattr(core, name)
	raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

def __dir__():
	return __all__
