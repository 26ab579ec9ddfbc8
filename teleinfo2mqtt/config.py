"""
config.py — Paramètres centralisés (chargés depuis .env / variables d'environnement)
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ── Port série ─────────────────────────────────────────────────────────────────
# Compteur en TIC historique : 1200 bauds, 7 bits, sans parité, 1 stop
SERIAL_PORT     = os.getenv("SERIAL_PORT",    "/dev/ttyAMA0")
SERIAL_BAUD     = int(os.getenv("SERIAL_BAUD",    "1200"))
SERIAL_BITS     = int(os.getenv("SERIAL_BITS",    "7"))
SERIAL_PARITY   = os.getenv("SERIAL_PARITY",  "N")   # E=Even, N=None, O=Odd
SERIAL_STOPS    = int(os.getenv("SERIAL_STOPS",   "1"))
SERIAL_TIMEOUT  = float(os.getenv("SERIAL_TIMEOUT", "1"))

# ── Décodage TIC ───────────────────────────────────────────────────────────────
# stx  : trames délimitées par STX (0x02) / ETX (0x03)
# adco : resynchronisation sur l'étiquette ADCO (liaisons qui filtrent STX/ETX)
TIC_FRAMING     = os.getenv("TIC_FRAMING", "stx").strip().lower()
# Désactiver la checksum est une dérogation explicite, à réserver au debug
TIC_CHECKSUM    = _flag("TIC_CHECKSUM", "1")

# ── Broker MQTT ────────────────────────────────────────────────────────────────
MQTT_HOST       = os.getenv("MQTT_HOST",   "localhost")
MQTT_PORT       = int(os.getenv("MQTT_PORT",   "1883"))
MQTT_USER       = os.getenv("MQTT_USER",   "")
MQTT_PASS       = os.getenv("MQTT_PASS",   "")
MQTT_CLIENT     = os.getenv("MQTT_CLIENT", "teleinfo2mqtt")
MQTT_PREFIX     = os.getenv("MQTT_PREFIX", "teleinfo")
MQTT_RETAIN     = _flag("MQTT_RETAIN", "0")
# RBE : ne republie pas un payload identique au précédent sur le même topic
MQTT_RBE        = _flag("MQTT_RBE", "0")

# ── Comportement du bridge ─────────────────────────────────────────────────────
# Intervalle minimum entre deux publications (0 = chaque trame valide)
PUBLISH_INTERVAL = float(os.getenv("PUBLISH_INTERVAL", "0"))

LOG_LEVEL       = os.getenv("LOG_LEVEL", "INFO").strip().upper()
