"""
main.py — Teleinfo (TIC historique) vers MQTT.

Lit le flux TIC d'un compteur électronique sur liaison série,
valide et décode chaque trame,
et publie les relevés en JSON sur `teleinfo/<ADCO>`.
"""

import logging

from teleinfo2mqtt import __version__, config
from teleinfo2mqtt.app.mqtt_client import MQTTClient
from teleinfo2mqtt.bridge import run

logger = logging.getLogger('teleinfo2mqtt')


def main():
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    logger.info("=" * 50)
    logger.info("  teleinfo2mqtt — Teleinfo TIC to MQTT")
    logger.info("  version: %s  ", __version__)
    logger.info("=" * 50)
    mqtt = MQTTClient()
    mqtt.connect()
    try:
        run(mqtt)
    finally:
        mqtt.disconnect()


if __name__ == "__main__":
    main()
