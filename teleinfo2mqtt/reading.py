"""
reading.py — Relevé TIC décodé et sa sérialisation JSON.

Les dix champs restent des chaînes brutes (zéros de tête conservés) ;
la conversion typée n'a lieu qu'à la sérialisation :
  - ADCO, ISOUSC, BASE, IINST, IMAX, PAPP → entier
  - OPTARIF, HHPHC, MOTDETAT               → chaîne brute
  - PTEC                                   → deux premiers caractères ("TH.." → "TH")
"""

import json
from dataclasses import dataclass, fields
from typing import Mapping

from teleinfo2mqtt.errors import MissingFieldError

# ── Étiquettes obligatoires, dans l'ordre d'émission du compteur ──────────────

LABELS = (
    "ADCO",      # Adresse du compteur
    "OPTARIF",   # Option tarifaire
    "ISOUSC",    # Intensité souscrite, en A
    "BASE",      # Index option base, en Wh
    "PTEC",      # Période tarifaire en cours
    "IINST",     # Intensité instantanée, en A
    "IMAX",      # Intensité maximale appelée, en A
    "PAPP",      # Puissance apparente, en VA
    "HHPHC",     # Horaire heures pleines / heures creuses
    "MOTDETAT",  # Mot d'état du compteur
)

NUMERIC_LABELS = frozenset({"ADCO", "ISOUSC", "BASE", "IINST", "IMAX", "PAPP"})


@dataclass(frozen=True)
class Reading:
    """Une trame complète et validée : dix champs, tous présents."""

    adco: str
    optarif: str
    isousc: str
    base: str
    ptec: str
    iinst: str
    imax: str
    papp: str
    hhphc: str
    motdetat: str

    @classmethod
    def from_labels(cls, values: Mapping[str, str]) -> "Reading":
        """
        Construit un relevé depuis un dict { LABEL: valeur }.
        Lève MissingFieldError sur la première étiquette absente ;
        les étiquettes inconnues sont ignorées.
        """
        for label in LABELS:
            if label not in values:
                raise MissingFieldError(label)
        return cls(**{label.lower(): values[label] for label in LABELS})

    def labels(self) -> dict[str, str]:
        """Retourne { LABEL: valeur_brute } dans l'ordre du compteur."""
        return {f.name.upper(): getattr(self, f.name) for f in fields(self)}

    def to_payload(self) -> dict[str, dict]:
        """
        Payload structuré publié sur le bus :
        { LABEL: {"raw": <chaîne>, "value": <valeur typée>} }.
        Un champ numérique non numérique lève ValueError.
        """
        return {
            label: {"raw": raw, "value": _typed_value(label, raw)}
            for label, raw in self.labels().items()
        }

    def to_json(self) -> str:
        return json.dumps(self.to_payload(), separators=(",", ":"))

    def topic(self, prefix: str = "teleinfo") -> str:
        return f"{prefix}/{self.adco}"

    def __str__(self) -> str:
        return self.to_json()


def _typed_value(label: str, raw: str) -> int | str:
    if label in NUMERIC_LABELS:
        return int(raw)
    if label == "PTEC":
        return raw[:2]
    return raw
