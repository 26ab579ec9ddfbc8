"""
errors.py — Exceptions du décodage TIC.

Les erreurs de trame (DecodeError et dérivées) sont récupérables : le
pipeline les émet comme valeurs et passe à la trame suivante.
TransportEnded est fatale : elle termine le pipeline.
"""


class TeleinfoError(Exception):
    """Base de toutes les erreurs teleinfo2mqtt."""


class DecodeError(TeleinfoError):
    """Trame rejetée ; isolée à cette trame."""


class ChecksumError(DecodeError):
    """Une ligne de la trame a une checksum invalide."""

    def __init__(self, line: str, expected: str | None = None, received: str | None = None):
        self.line = line
        self.expected = expected
        self.received = received
        if expected is None:
            detail = "format de ligne invalide"
        else:
            detail = f"attendu {expected!r}, reçu {received!r}"
        super().__init__(f"checksum KO sur {line!r} ({detail})")


class MissingFieldError(DecodeError):
    """Une étiquette obligatoire est absente de la trame."""

    def __init__(self, label: str):
        self.label = label
        super().__init__(f"étiquette manquante : {label}")


class EncodingError(DecodeError):
    """Un bloc d'octets n'est pas du texte ASCII 7 bits."""

    def __init__(self, chunk: bytes):
        self.chunk = chunk
        super().__init__(f"bloc non ASCII ignoré ({len(chunk)} octets)")


class TransportEnded(TeleinfoError):
    """La liaison série est perdue ou fermée."""
