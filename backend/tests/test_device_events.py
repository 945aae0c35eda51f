from datetime import datetime

import pytest

from rfhealth.services.device_events import DeviceEventProcessor, resolve_event_time
from rfhealth.services.persistence import PersistenceError


class RecordingStore:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    def __getattr__(self, name):
        if not name.startswith("store_"):
            raise AttributeError(name)

        async def record(*args, **kwargs):
            if self.fail:
                raise PersistenceError("disk full", device_id=args[0])
            self.calls.append((name, args, kwargs))
        return record


def device(dev_eui="dev-1", **fields):
    return {"deviceInfo": {"devEui": dev_eui}, **fields}


def test_resolve_event_time():
    assert resolve_event_time({"time": "2024-05-01T12:00:00Z"}, "dev", "join") == datetime(2024, 5, 1, 12)
    assert isinstance(resolve_event_time({"time": "yesterday"}, "dev", "join"), datetime)
    assert isinstance(resolve_event_time({}, "dev", "join"), datetime)


async def test_status_records_margin_and_battery():
    store = RecordingStore()
    ok = await DeviceEventProcessor(store).process_status(device(margin=10, batteryLevel=91.5))

    assert ok
    name, args, _ = store.calls[0]
    assert name == "store_status"
    assert args[0] == "dev-1"
    assert args[2:] == (10, 91.5)


async def test_status_ignores_non_numeric_fields():
    store = RecordingStore()
    await DeviceEventProcessor(store).process_status(device(margin="high", batteryLevel=None))

    assert store.calls[0][1][2:] == (None, None)


async def test_join_and_downlinks():
    store = RecordingStore()
    processor = DeviceEventProcessor(store)

    assert await processor.process_join(device())
    assert await processor.process_ack(device(acknowledged=True))
    assert await processor.process_txack(device(fCntDown=7))

    assert [c[0] for c in store.calls] == ["store_join", "store_downlink", "store_downlink"]
    assert store.calls[1][1][2] == "ack"
    assert store.calls[1][2] == {"acknowledged": True}
    assert store.calls[2][2] == {"fcnt_down": 7}


@pytest.mark.parametrize("level, stored", [
    ("ERROR", True),
    ("warn", True),
    ("INFO", False),
    ("", False),
])
async def test_log_levels(level, stored):
    store = RecordingStore()
    ok = await DeviceEventProcessor(store).process_log(device(level=level, code="UPLINK_FCNT", description="x"))

    assert ok is stored
    assert bool(store.calls) is stored


async def test_log_without_device_is_skipped():
    store = RecordingStore()
    assert not await DeviceEventProcessor(store).process_log({"level": "ERROR"})
    assert store.calls == []


async def test_location_range_checks():
    store = RecordingStore()
    processor = DeviceEventProcessor(store)

    assert await processor.process_location(
        device(location={"latitude": 52.37, "longitude": 4.89, "altitude": 12000})
    )
    # Out-of-range altitude is dropped, the position is kept
    assert store.calls[0][1][2:] == (52.37, 4.89, None)

    assert not await processor.process_location(device(location={"latitude": 95, "longitude": 4.89}))
    assert not await processor.process_location(device(location={"latitude": 52.37, "longitude": -181}))
    assert not await processor.process_location(device())
    assert len(store.calls) == 1


async def test_missing_device_is_rejected():
    store = RecordingStore()
    processor = DeviceEventProcessor(store)

    assert not await processor.process_status({"margin": 3})
    assert not await processor.process_join("not an object")
    assert store.calls == []


async def test_store_failure_returns_false():
    assert not await DeviceEventProcessor(RecordingStore(fail=True)).process_join(device())
