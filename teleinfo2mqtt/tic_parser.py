"""
tic_parser.py — Validation et décodage des trames TIC historique.

Protocole : le texte d'une trame (entre STX et ETX) est une suite de
groupes séparés par LF, chacun de la forme :

    LABEL SEP VALEUR SEP CHECKSUM [CR]

où SEP est une espace ou une tabulation et CHECKSUM un unique caractère.
Une seule ligne invalide invalide toute la trame.
"""

import logging

from teleinfo2mqtt.errors import ChecksumError
from teleinfo2mqtt.reading import Reading

log = logging.getLogger(__name__)

STX = "\x02"
ETX = "\x03"
SEPARATORS = (" ", "\t")


def checksum(span: str) -> str:
    """
    Calcule la checksum TIC historique d'une portion de ligne.

    Algorithme : somme des codes des caractères de (LABEL SEP VALEUR),
    masque 0x3F, décalé de +0x20.
    """
    total = 0
    for c in span:
        total += ord(c)
    return chr((total & 0x3F) + 0x20)


def content_lines(text: str) -> list[str]:
    """
    Découpe le texte d'une trame en lignes utiles.

    Le CR de fin de groupe et les STX/ETX collés en fin de ligne sont
    retirés ; les lignes vides et celles qui commencent par STX/ETX
    (délimiteurs ayant fui dans le texte) sont ignorées.
    """
    lines = []
    for line in text.split("\n"):
        line = line.rstrip("\r" + STX + ETX)
        if not line.strip() or line[0] in (STX, ETX):
            continue
        lines.append(line)
    return lines


def validate_line(line: str) -> None:
    """Lève ChecksumError si la checksum de `line` est absente ou fausse."""
    sep = max(line.rfind(s) for s in SEPARATORS)
    # Il faut exactement un caractère après le dernier séparateur
    if sep < 0 or sep != len(line) - 2:
        raise ChecksumError(line)

    received = line[sep + 1]
    expected = checksum(line[:sep])
    if expected != received:
        raise ChecksumError(line, expected, received)


def validate_frame(text: str) -> None:
    """Vérifie toutes les lignes ; s'arrête à la première invalide."""
    for line in content_lines(text):
        validate_line(line)


def parse_fields(text: str) -> dict[str, str]:
    """
    Retourne { LABEL: valeur_brute } pour chaque ligne de la trame.

    Seuls les deux premiers mots comptent ; la checksum éventuelle est
    ignorée ici. En cas de doublon, la dernière occurrence l'emporte.
    """
    teleinfo: dict[str, str] = {}
    for line in content_lines(text):
        parts = line.split()
        if len(parts) < 2:
            log.debug("Ligne ignorée (format inattendu) : %r", line)
            continue
        teleinfo[parts[0]] = parts[1]
    return teleinfo


def parse_frame(text: str, check: bool = True) -> Reading:
    """
    Décode une trame complète en Reading.

    Lève ChecksumError si une ligne est corrompue (si `check`),
    MissingFieldError si une étiquette obligatoire manque.
    """
    if check:
        validate_frame(text)
    return Reading.from_labels(parse_fields(text))
