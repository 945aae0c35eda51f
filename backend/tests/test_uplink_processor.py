from datetime import datetime

import pytest

from rfhealth.services.persistence import PersistenceError
from rfhealth.services.uplink_processor import UplinkProcessor, extract_device_id, score_receptions

from tests.factories import uplink_payload

NOW = datetime(2024, 5, 1, 12, 0, 0)


class RecordingStore:
    """Stands in for EventStore; optionally fails for chosen gateways."""

    def __init__(self, failing_gateways=()):
        self.failing_gateways = set(failing_gateways)
        self.receptions = []

    async def store_reception(self, device_id, gateway_id, timestamp, rssi, snr, rf_score, is_best):
        if gateway_id in self.failing_gateways:
            raise PersistenceError("database is locked", device_id=device_id, gateway_id=gateway_id)
        self.receptions.append({
            "device_id": device_id,
            "gateway_id": gateway_id,
            "timestamp": timestamp,
            "rssi": rssi,
            "snr": snr,
            "rf_score": rf_score,
            "is_best": is_best,
        })
        return len(self.receptions)


def test_extract_device_id():
    assert extract_device_id({"deviceInfo": {"devEui": " abc "}}) == "abc"
    assert extract_device_id({"deviceInfo": {"devEui": ""}}) is None
    assert extract_device_id({"deviceInfo": {}}) is None
    assert extract_device_id({"deviceInfo": "abc"}) is None
    assert extract_device_id([]) is None


def test_every_tied_receiver_is_best():
    rx_info = [
        {"gatewayId": "g1", "rssi": -80, "snr": 5.0},
        {"gatewayId": "g2", "rssi": -75, "snr": 8.0},
        {"gatewayId": "g3", "rssi": -95, "snr": 8.0},
    ]
    scored, dropped, best = score_receptions("dev", rx_info, now=NOW)

    assert dropped == 0
    assert best == "g2"
    assert [r.is_best for r in scored] == [False, True, True]
    assert [r.rf_score for r in scored] == [70, 100, 40]


def test_invalid_receptions_are_dropped():
    rx_info = [
        {"rssi": -80, "snr": 5.0},
        {"gatewayId": "g2", "rssi": "strong", "snr": 5.0},
        {"gatewayId": "g3", "rssi": -85, "snr": float("nan")},
        "garbage",
        {"gatewayId": "g4", "rssi": -85, "snr": 2.0},
    ]
    scored, dropped, best = score_receptions("dev", rx_info, now=NOW)

    assert dropped == 4
    assert [r.gateway_id for r in scored] == ["g4"]
    assert best == "g4"
    assert scored[0].is_best


def test_reception_time_is_parsed_or_falls_back():
    rx_info = [
        {"gatewayId": "g1", "rssi": -80, "snr": 5.0, "time": "2024-04-30T10:15:00.123456789Z"},
        {"gatewayId": "g2", "rssi": -80, "snr": 4.0, "time": "not-a-time"},
        {"gatewayId": "g3", "rssi": -80, "snr": 3.0},
    ]
    scored, _, _ = score_receptions("dev", rx_info, now=NOW)

    assert scored[0].timestamp == datetime(2024, 4, 30, 10, 15, 0, 123456)
    assert scored[1].timestamp == NOW
    assert scored[2].timestamp == NOW


async def test_process_stores_every_valid_reception():
    store = RecordingStore()
    result = await UplinkProcessor(store).process(uplink_payload(dev_eui="dev-1"))

    assert not result.rejected
    assert result.stored == 2
    assert result.best_gateway_id == "gw-near"
    assert [r["gateway_id"] for r in store.receptions] == ["gw-near", "gw-far"]
    assert [r["is_best"] for r in store.receptions] == [True, False]
    assert all(r["device_id"] == "dev-1" for r in store.receptions)


async def test_missing_gateway_is_skipped_and_rest_stored():
    store = RecordingStore()
    payload = uplink_payload(rx_info=[
        {"rssi": -60, "snr": 12.0},
        {"gatewayId": "g2", "rssi": -70, "snr": 6.0},
    ])
    result = await UplinkProcessor(store).process(payload)

    assert result.dropped == 1
    assert result.stored == 1
    assert store.receptions[0]["gateway_id"] == "g2"
    assert store.receptions[0]["is_best"]


@pytest.mark.parametrize("payload, reason", [
    ({"rxInfo": [{"gatewayId": "g1", "rssi": -70, "snr": 6}]}, "missing devEui"),
    ({"deviceInfo": {"devEui": "dev"}, "rxInfo": []}, "missing rxInfo"),
    ({"deviceInfo": {"devEui": "dev"}}, "missing rxInfo"),
    ({"deviceInfo": {"devEui": "dev"}, "rxInfo": [{"gatewayId": "g1"}]}, "no valid receptions"),
])
async def test_unusable_payload_writes_nothing(payload, reason):
    store = RecordingStore()
    result = await UplinkProcessor(store).process(payload)

    assert result.rejected_reason == reason
    assert store.receptions == []


async def test_failed_reception_does_not_stop_the_rest():
    store = RecordingStore(failing_gateways={"g1"})
    payload = uplink_payload(rx_info=[
        {"gatewayId": "g1", "rssi": -70, "snr": 9.0},
        {"gatewayId": "g2", "rssi": -90, "snr": 4.0},
        {"gatewayId": "g3", "rssi": -100, "snr": 1.0},
    ])
    result = await UplinkProcessor(store).process(payload)

    assert result.failed == 1
    assert result.stored == 2
    assert [r["gateway_id"] for r in store.receptions] == ["g2", "g3"]
    # Best flag is decided before storing, so it is not moved to a survivor
    assert not any(r["is_best"] for r in store.receptions)
