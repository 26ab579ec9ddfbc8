"""
pipeline.py — Chaîne de décodage : blocs d'octets → relevés validés.

    source → FrameAssembler → checksum + étiquettes → Reading | DecodeError

Le pipeline est paresseux : il ne lit le bloc suivant que lorsque le
consommateur demande l'élément suivant. Une trame invalide produit une
DecodeError (une seule par trame) et le décodage continue ; seule la
fin de la source (ou TransportEnded) termine le pipeline.
"""

import logging
from typing import Iterable, Iterator

from teleinfo2mqtt.errors import DecodeError, EncodingError
from teleinfo2mqtt.framing import FrameAssembler, DelimitedFrameAssembler
from teleinfo2mqtt.reading import Reading
from teleinfo2mqtt.tic_parser import parse_frame

log = logging.getLogger(__name__)


def decode_frame(text: str, check: bool = True) -> Reading | DecodeError:
    """Décode un texte de trame ; retourne l'erreur au lieu de la lever."""
    try:
        reading = parse_frame(text, check=check)
    except DecodeError as exc:
        log.warning("Trame rejetée : %s", exc)
        return exc
    log.debug("Trame valide — ADCO=%s PAPP=%s", reading.adco, reading.papp)
    return reading


def decode(
    chunks: Iterable[bytes],
    assembler: FrameAssembler | None = None,
    check: bool = True,
) -> Iterator[Reading | DecodeError]:
    """
    Générateur de relevés à partir d'une source de blocs d'octets.

    Fermer le générateur ferme aussi l'itérateur de la source (ce qui
    libère le port série).
    """
    if assembler is None:
        assembler = DelimitedFrameAssembler()
    if not check:
        log.warning("Validation des checksums TIC désactivée")

    source = iter(chunks)
    try:
        for chunk in source:
            try:
                frames = assembler.feed(chunk)
            except EncodingError as exc:
                log.warning("%s", exc)
                yield exc
                continue

            for text in frames:
                yield decode_frame(text, check=check)
    finally:
        close = getattr(source, "close", None)
        if close is not None:
            close()
