"""
bridge.py — Boucle principale du bridge TIC → MQTT.

Responsabilités :
  - Ouverture et supervision du port série (reconnexion automatique)
  - Lecture du flux par blocs, transmis au pipeline de décodage
  - Rate-limiting (PUBLISH_INTERVAL secondes entre deux publications)
  - Orchestration : pipeline → publisher
"""

import logging
import signal
import time
from typing import Callable, Iterator, Optional

import serial

from teleinfo2mqtt import config
from teleinfo2mqtt.app.mqtt_client import MQTTClient
from teleinfo2mqtt.app.publisher import publish_reading
from teleinfo2mqtt.errors import DecodeError, TransportEnded
from teleinfo2mqtt.framing import make_assembler
from teleinfo2mqtt.pipeline import decode
from teleinfo2mqtt.reading import Reading

log = logging.getLogger(__name__)

_RETRY_DELAY = 10   # secondes avant de rouvrir le port série

_PARITY_MAP = {
    "E": serial.PARITY_EVEN,
    "N": serial.PARITY_NONE,
    "O": serial.PARITY_ODD,
}


# ── Source d'octets : port série ───────────────────────────────────────────────

def open_serial() -> serial.Serial:
    return serial.Serial(
        port     = config.SERIAL_PORT,
        baudrate = config.SERIAL_BAUD,
        bytesize = config.SERIAL_BITS,
        parity   = _PARITY_MAP.get(config.SERIAL_PARITY.upper(), serial.PARITY_NONE),
        stopbits = config.SERIAL_STOPS,
        timeout  = config.SERIAL_TIMEOUT,
    )


def read_chunks(ser: serial.Serial,
                running: Callable[[], bool] = lambda: True) -> Iterator[bytes]:
    """
    Produit les octets reçus par blocs non vides.

    Un timeout sans donnée est simplement relancé. Une erreur de lecture
    lève TransportEnded. La séquence se termine quand `running()` devient
    faux ; le port est fermé dans tous les cas.
    """
    try:
        while running():
            try:
                data = ser.read(ser.in_waiting or 1)
            except serial.SerialException as exc:
                raise TransportEnded(f"erreur lecture série : {exc}") from exc
            if not data:
                continue
            yield data
    finally:
        _close_serial(ser)


# ── Boucle principale ──────────────────────────────────────────────────────────

def run(mqtt: MQTTClient) -> None:
    """
    Lit le port série en continu, décode les trames TIC et publie les
    relevés sur MQTT. S'arrête proprement sur SIGTERM ou SIGINT.
    """
    log.info(
        "Bridge démarré — port=%s  framing=%s  broker=%s:%s  prefix=%s  interval=%ss",
        config.SERIAL_PORT, config.TIC_FRAMING, config.MQTT_HOST,
        config.MQTT_PORT, config.MQTT_PREFIX, config.PUBLISH_INTERVAL,
    )

    running = True

    def _stop(sig, _frame):
        nonlocal running
        log.info("Signal %s reçu → arrêt propre", sig)
        running = False

    signal.signal(signal.SIGTERM, _stop)
    signal.signal(signal.SIGINT,  _stop)

    last_pub = 0.0

    while running:

        # ── Connexion / reconnexion série ──────────────────────────────────────
        try:
            ser = open_serial()
            log.info("Port série ouvert : %s", config.SERIAL_PORT)
        except serial.SerialException as exc:
            log.error("Impossible d'ouvrir %s : %s  → retry dans %d s",
                      config.SERIAL_PORT, exc, _RETRY_DELAY)
            time.sleep(_RETRY_DELAY)
            continue

        # Nouvel assembleur à chaque ouverture : resynchro sur la trame suivante
        readings = decode(
            read_chunks(ser, lambda: running),
            assembler = make_assembler(config.TIC_FRAMING),
            check     = config.TIC_CHECKSUM,
        )
        try:
            for item in readings:
                if isinstance(item, DecodeError):
                    continue    # déjà journalisée par le pipeline
                if process_reading(mqtt, item, last_pub):
                    last_pub = time.time()
        except TransportEnded as exc:
            log.error("Liaison série perdue : %s  → retry dans %d s", exc, _RETRY_DELAY)
            if running:
                time.sleep(_RETRY_DELAY)
        finally:
            readings.close()
            _close_serial(ser)

    log.info("Bridge arrêté")


# ── Traitement d'un relevé ─────────────────────────────────────────────────────

def process_reading(mqtt: MQTTClient, reading: Reading, last_pub: float) -> bool:
    """Publie un relevé si l'intervalle est écoulé.
    Retourne True si une publication a eu lieu."""
    now = time.time()
    if now - last_pub < config.PUBLISH_INTERVAL:
        log.debug("Relevé ignoré (rate-limit, %.1f s restantes)",
                  config.PUBLISH_INTERVAL - (now - last_pub))
        return False

    if not publish_reading(mqtt, reading):
        return False
    log.info("Relevé publié — ADCO=%s  PAPP=%s VA  IINST=%s A",
             reading.adco, reading.papp, reading.iinst)
    return True


def _close_serial(ser: Optional[serial.Serial]) -> None:
    if ser is not None and ser.is_open:
        try:
            ser.close()
        except serial.SerialException as exc:
            log.warning("Fermeture du port série : %s", exc)
        else:
            log.info("Port série fermé")
