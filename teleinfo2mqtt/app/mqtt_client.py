"""
mqtt_client.py — Connexion au broker MQTT et publication des relevés.
Compatible paho-mqtt 2.x (API de callbacks VERSION2).

RBE (Report By Exception, optionnel via MQTT_RBE) : un message n'est
publié que si son contenu a changé depuis la dernière publication sur
le même topic.
"""

import logging
import time

import paho.mqtt.client as mqtt

from teleinfo2mqtt.config import (
    MQTT_HOST, MQTT_PORT, MQTT_USER, MQTT_PASS,
    MQTT_CLIENT, MQTT_PREFIX, MQTT_RETAIN, MQTT_RBE,
)

log = logging.getLogger(__name__)

_RETRY_DELAY = 5    # secondes entre deux tentatives de connexion initiale


class MQTTClient:
    """
    Wrapper autour de paho-mqtt avec :
      - retry de connexion initiale si le broker est injoignable au démarrage
      - reconnexion automatique via loop_start (paho gère le reconnect)
      - publication RBE optionnelle
    """

    def __init__(self, prefix: str = MQTT_PREFIX, rbe: bool = MQTT_RBE):
        self._client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id = MQTT_CLIENT,
            protocol  = mqtt.MQTTv5,
        )
        self._prefix = prefix
        self._rbe = rbe
        self._last: dict[str, str] = {}
        self._connected = False

        if MQTT_USER:
            self._client.username_pw_set(MQTT_USER, MQTT_PASS)

        self._client.on_connect    = self._on_connect
        self._client.on_disconnect = self._on_disconnect

    @property
    def connected(self) -> bool:
        return self._connected

    # ── Connexion ──────────────────────────────────────────────────────────────

    def connect(self) -> None:
        """
        Tente de se connecter au broker MQTT.
        Réessaie indéfiniment avec un délai si le broker est injoignable.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                log.info("Connexion MQTT → %s:%s (tentative %d)…",
                         MQTT_HOST, MQTT_PORT, attempt)
                self._client.connect(MQTT_HOST, MQTT_PORT, keepalive=60)
                self._client.loop_start()
                # Attendre la confirmation on_connect (max 10 s)
                for _ in range(20):
                    if self._connected:
                        return
                    time.sleep(0.5)
                log.warning("Pas de réponse du broker après 10 s — on continue quand même")
                return

            except OSError as exc:
                log.error("Connexion MQTT échouée : %s — retry dans %d s", exc, _RETRY_DELAY)
                time.sleep(_RETRY_DELAY)

    def disconnect(self) -> None:
        """Arrêt propre."""
        self._client.loop_stop()
        self._client.disconnect()
        log.info("MQTT déconnecté")

    # ── Publication ────────────────────────────────────────────────────────────

    def publish(self, topic: str, payload: str, retain: bool = MQTT_RETAIN) -> bool:
        """
        Publie `payload` sur `{prefix}/{topic}`.
        Retourne True si le message a bien été envoyé, False si ignoré
        (RBE) ou refusé par paho.
        """
        full_topic = f"{self._prefix}/{topic}"

        if self._rbe and self._last.get(full_topic) == payload:
            return False   # RBE : pas de changement

        result = self._client.publish(full_topic, payload=payload, retain=retain)

        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            log.warning("Échec publication %s (rc=%s)", full_topic, result.rc)
            return False

        self._last[full_topic] = payload
        log.debug("MQTT ↑ %s = %s", full_topic, payload)
        return True

    # ── Callbacks paho (VERSION2) ──────────────────────────────────────────────

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if reason_code == 0:
            self._connected = True
            log.info("MQTT connecté à %s:%s", MQTT_HOST, MQTT_PORT)
        else:
            log.error("MQTT connexion refusée (%s)", reason_code)

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties):
        self._connected = False
        if reason_code == 0:
            log.info("MQTT déconnecté proprement")
        else:
            log.warning("MQTT déconnecté de façon inattendue (%s) — reconnexion auto…",
                        reason_code)
