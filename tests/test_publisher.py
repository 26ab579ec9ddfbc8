"""Tests for the MQTT side: topic layout, JSON payload and report-by-exception."""

import dataclasses
import json
from unittest.mock import MagicMock

import paho.mqtt.client as mqtt
import pytest

from teleinfo2mqtt.app.mqtt_client import MQTTClient
from teleinfo2mqtt.app.publisher import publish_reading
from teleinfo2mqtt.tic_parser import parse_frame


@pytest.fixture()
def reading(frame_text):
    return parse_frame(frame_text)


def _client(rbe: bool = False, rc: int = mqtt.MQTT_ERR_SUCCESS) -> MQTTClient:
    client = MQTTClient(prefix="teleinfo", rbe=rbe)
    client._client = MagicMock()
    client._client.publish.return_value.rc = rc
    return client


def test_publish_reading_topic_and_payload(reading):
    client = _client()
    assert publish_reading(client, reading)

    topic = client._client.publish.call_args.args[0]
    payload = client._client.publish.call_args.kwargs["payload"]
    assert topic == "teleinfo/012345678901"
    assert json.loads(payload)["PTEC"] == {"raw": "TH..", "value": "TH"}


def test_publish_reading_unserializable(reading):
    client = _client()
    broken = dataclasses.replace(reading, base="00280971X")
    assert not publish_reading(client, broken)
    client._client.publish.assert_not_called()


def test_publish_rbe_skips_identical_payload(reading):
    client = _client(rbe=True)
    assert publish_reading(client, reading)
    assert not publish_reading(client, reading)
    assert client._client.publish.call_count == 1

    changed = dataclasses.replace(reading, papp="00400")
    assert publish_reading(client, changed)
    assert client._client.publish.call_count == 2


def test_publish_without_rbe_repeats(reading):
    client = _client(rbe=False)
    publish_reading(client, reading)
    publish_reading(client, reading)
    assert client._client.publish.call_count == 2


def test_publish_failure_not_remembered(reading):
    client = _client(rbe=True, rc=mqtt.MQTT_ERR_NO_CONN)
    assert not publish_reading(client, reading)
    client._client.publish.return_value.rc = mqtt.MQTT_ERR_SUCCESS
    assert publish_reading(client, reading)


def test_on_connect_tracks_state():
    client = MQTTClient()
    client._on_connect(None, None, None, 0, None)
    assert client.connected
    client._on_disconnect(None, None, None, 0, None)
    assert not client.connected
