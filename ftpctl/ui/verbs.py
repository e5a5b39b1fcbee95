"""
Sugerencias de verbo para comandos mal escritos en la consola y el CLI.

La tabla combina los verbos que el propio motor envia (login, QUIT y la
negociacion de datos) con el resto de comandos de RFC 959 que un usuario
puede mandar en crudo. Ante un empate se prefiere el verbo del motor.
"""

from typing import Optional

from ftpctl.core.connection import PASSWORD_COMMAND, QUIT_COMMAND
from ftpctl.core.data_connection import DataConnectMode

MAX_DISTANCE = 3

ENGINE_VERBS = (
    "USER",
    PASSWORD_COMMAND,
    QUIT_COMMAND,
    *(mode.verb for mode in DataConnectMode),
)

# RFC 959 seccion 4.1: control de acceso, parametros y servicio
ACCESS_VERBS = ("ACCT", "CWD", "CDUP", "SMNT", "REIN")
PARAMETER_VERBS = ("TYPE", "STRU", "MODE")
SERVICE_VERBS = (
    "RETR", "STOR", "STOU", "APPE", "ALLO", "REST", "RNFR", "RNTO", "ABOR",
    "DELE", "RMD", "MKD", "PWD", "LIST", "NLST", "SITE", "SYST", "STAT",
    "HELP", "NOOP", "FEAT",
)

KNOWN_VERBS = ENGINE_VERBS + ACCESS_VERBS + PARAMETER_VERBS + SERVICE_VERBS


def distance(a: str, b: str) -> int:
    """Distancia de Levenshtein, fila a fila."""
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb)
            ))
        previous = current
    return previous[-1]


def is_known(verb: str) -> bool:
    return verb.upper() in KNOWN_VERBS


def get_suggestion(verb: str, max_distance: int = MAX_DISTANCE) -> Optional[str]:
    """Verbo conocido mas cercano a `verb`, o None si ninguno esta a `max_distance` o menos."""
    verb = verb.upper()
    best, best_distance = None, max_distance + 1
    # KNOWN_VERBS empieza por ENGINE_VERBS, asi que en un empate gana el primero
    for candidate in KNOWN_VERBS:
        d = distance(verb, candidate)
        if d < best_distance:
            best, best_distance = candidate, d
    return best
