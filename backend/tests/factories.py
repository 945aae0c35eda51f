"""Payload builders shared by the tests."""
from datetime import timedelta

from rfhealth.utils.timestamps import utcnow


def minutes_ago(minutes: float):
    return utcnow() - timedelta(minutes=minutes)


def uplink_payload(dev_eui="0011223344556677", rx_info=None):
    if rx_info is None:
        rx_info = [
            {"gatewayId": "gw-near", "rssi": -70, "snr": 9.5},
            {"gatewayId": "gw-far", "rssi": -105, "snr": 1.0},
        ]
    return {"deviceInfo": {"devEui": dev_eui}, "rxInfo": rx_info}
