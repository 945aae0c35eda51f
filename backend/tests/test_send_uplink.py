import json

import httpx

from rfhealth.tools.send_uplink import main, sample_payload, send_uplink


def test_sample_payload_has_two_receivers():
    payload = sample_payload()
    assert payload["deviceInfo"]["devEui"]
    assert len(payload["rxInfo"]) == 2
    assert payload["rxInfo"][0]["time"].endswith("Z")


async def test_send_uplink_posts_up_event():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, headers={"X-RateLimit-Remaining": "99"})

    payload = sample_payload()
    response = await send_uplink("http://rfhealth.test/", payload, transport=httpx.MockTransport(handler))

    assert response.status_code == 200
    assert seen["url"] == "http://rfhealth.test/?event=up"
    assert seen["body"] == payload


def test_missing_payload_file(tmp_path, capsys):
    assert main([str(tmp_path / "missing.json")]) == 1
    assert "payload file not found" in capsys.readouterr().err
