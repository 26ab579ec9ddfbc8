"""
publisher.py — Publication d'un relevé TIC sur MQTT.

Un topic par compteur : `{MQTT_PREFIX}/{ADCO}` (teleinfo/<adco> par
défaut), payload = JSON du relevé :

    {"ADCO": {"raw": "012345678901", "value": 12345678901},
     "PTEC": {"raw": "TH..", "value": "TH"}, ...}
"""

import logging

from teleinfo2mqtt.app.mqtt_client import MQTTClient
from teleinfo2mqtt.reading import Reading

log = logging.getLogger(__name__)


def publish_reading(client: MQTTClient, reading: Reading) -> bool:
    """Publie le relevé ; retourne True si le message est parti."""
    try:
        payload = reading.to_json()
    except ValueError as exc:
        # Champ numérique non numérique malgré une checksum valide
        log.error("Relevé ADCO=%s non sérialisable : %s", reading.adco, exc)
        return False
    return client.publish(reading.adco, payload)
