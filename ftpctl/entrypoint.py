#!/usr/bin/env python3
"""
ftpctl command-line probe.

Opens a control connection, prints the server banner, runs each raw command
given on the command line and, if requested, negotiates a data connection in
the configured mode. Defaults come from the FTPCTL_* environment variables.

    ftpctl --host ftp.example.com "USER anonymous" "PASS guest" --negotiate
"""

import argparse
import logging
import sys

from ftpctl.config import LOG_LEVELS, ClientConfig
from ftpctl.core import ClientCommandHandler, ControlChannel, DataConnectMode, FtpError
from ftpctl.ui.verbs import get_suggestion, is_known

logger = logging.getLogger("ftpctl")

EXIT_OK = 0
EXIT_FTP_ERROR = 1
EXIT_CONFIG_ERROR = 2


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def build_parser(defaults: ClientConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ftpctl", description="FTP control-channel probe")
    parser.add_argument("--host", default=defaults.host, help="Servidor FTP")
    parser.add_argument("--port", type=int, default=defaults.port, help="Puerto de control")
    parser.add_argument("--timeout-ms", type=int, default=defaults.timeout_ms, help="Timeout de socket en milisegundos")
    parser.add_argument("--mode", choices=[m.value for m in DataConnectMode], default=defaults.data_mode.value,
                        help="Modo de conexion de datos")
    parser.add_argument("--log-level", choices=LOG_LEVELS, default=defaults.log_level, type=str.upper)
    parser.add_argument("--negotiate", action="store_true", help="Negociar una conexion de datos al final")
    parser.add_argument("commands", nargs="*", metavar="COMMAND", help="Comandos crudos, p.ej. 'USER anonymous'")
    return parser


def run(config: ClientConfig, commands, negotiate: bool = False, out=None) -> int:
    out = out or sys.stdout
    channel = ControlChannel()
    try:
        banner = channel.connect(config.host, config.port, config.timeout_ms)
    except FtpError as e:
        logger.error(f"Connection failed: {e}")
        print(f"error: {e}", file=out)
        return EXIT_FTP_ERROR

    print(str(banner), file=out)
    handler = ClientCommandHandler(channel)
    try:
        for command in commands:
            verb = command.split(" ", 1)[0]
            if not is_known(verb):
                suggestion = get_suggestion(verb)
                if suggestion:
                    logger.warning(f"Unknown verb {verb!r}, did you mean {suggestion}?")
                else:
                    logger.warning(f"Unknown verb {verb!r}")
            reply = handler.execute(command)
            print(str(reply), file=out)

        if negotiate:
            with handler.open_data_connection(config.data_mode) as data:
                host, port = data.local_address() if data.is_pending else data.data_socket.getpeername()[:2]
                print(f"{config.data_mode.name} data connection {host}:{port}", file=out)

        channel.logout()
    except FtpError as e:
        logger.error(f"FTP error: {e}")
        print(f"error: {e}", file=out)
        try:
            channel.close()
        except FtpError as close_error:
            logger.error(f"Error closing control connection: {close_error}")
        return EXIT_FTP_ERROR

    return EXIT_OK


def main(argv=None) -> int:
    try:
        defaults = ClientConfig.from_env()
    except ValueError as e:
        print(f"configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    args = build_parser(defaults).parse_args(argv)
    try:
        config = ClientConfig(
            host=args.host,
            port=args.port,
            timeout_ms=args.timeout_ms,
            data_mode=DataConnectMode.parse(args.mode),
            log_level=args.log_level
        )
    except ValueError as e:
        print(f"configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    configure_logging(config.log_level)
    return run(config, args.commands, args.negotiate)


if __name__ == '__main__':
    sys.exit(main())
