"""Tests for the FastAPI service."""

import asyncio
import xml.etree.ElementTree as ET
from pathlib import Path

from fastapi.testclient import TestClient

from b2mml_schedule import __version__
from b2mml_schedule.app import app
from b2mml_schedule.document import find_child
from b2mml_schedule.schedule import ProcessProductionSchedule

FIXTURES = Path(__file__).resolve().parent / "fixtures" / "messages"

client = TestClient(app)


def _fixture(name):
    return (FIXTURES / name).read_bytes()


def test_health():
    """Health endpoint reports status, version and release id."""
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy", "version": __version__, "release_id": "1"}
    assert resp.headers["X-Response-Time"].endswith("s")
    assert resp.headers["X-API-Version"] == __version__


def test_decode_schedule():
    resp = client.post(
        "/schedules/decode",
        content=_fixture("ProcessProductionSchedule.xml"),
        headers={"Content-Type": "application/xml"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["creation_time"] == "2019-04-24T14:10:25.000Z"
    request = data["production_schedules"][0]["production_requests"][0]
    assert request["identifier"] == "my-identifier-1"
    assert request["segment_requirements"][0]["latest_end_time"] == "2019-04-24T15:30:00.000Z"


def test_decode_invalid_message():
    resp = client.post(
        "/schedules/decode",
        content=_fixture("Neg_ProcessProductionSchedule_EndBeforeStart.xml"),
    )
    assert resp.status_code == 422
    assert resp.json() == {
        "error": "Invalid message",
        "detail": "Segment end must not be before start",
    }


def test_decode_malformed_body():
    resp = client.post("/schedules/decode", content=b"not xml")
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Failed to deserialise from XML"


def test_normalise_schedule():
    """Offsets are rewritten as UTC in the normalised document."""
    resp = client.post(
        "/schedules/normalise",
        content=_fixture("ProcessProductionSchedule.xml"),
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/xml")
    assert b"+03:00" not in resp.content
    assert b"2019-04-24T15:30:00.000Z" in resp.content

    root = ET.fromstring(resp.content)
    assert find_child(find_child(root, "ApplicationArea"), "CreationDateTime").text == (
        "2019-04-24T14:10:25.000Z"
    )


def test_serialiser_config_and_cache_metrics():
    config = client.get("/config/serialiser").json()
    assert config["max_nesting_depth"] == 64

    client.post("/schedules/normalise", content=_fixture("ProcessProductionSchedule.xml"))
    stats = client.get("/metrics/cache").json()
    assert stats["entries"] >= 1
    assert set(stats) == {"hits", "misses", "builds", "entries"}


def test_decoding_runs_off_the_event_loop(monkeypatch):
    """Message work is handed to the threadpool, not run on the loop."""
    loops = []
    original = ProcessProductionSchedule.from_xml_bytes

    def from_xml_bytes(body):
        try:
            loops.append(asyncio.get_running_loop())
        except RuntimeError:
            loops.append(None)
        return original(body)

    monkeypatch.setattr(ProcessProductionSchedule, "from_xml_bytes", from_xml_bytes)

    for path in ("/schedules/decode", "/schedules/normalise"):
        resp = client.post(path, content=_fixture("ProcessProductionSchedule_EmptySched.xml"))
        assert resp.status_code == 200
    assert loops == [None, None]


def test_normalise_rejects_deeply_nested_payload():
    nested = b"<x>" * 5000 + b"</x>" * 5000
    body = _fixture("ProcessProductionSchedule_SchedulingParams.xml").replace(
        b"<swe:value>10.6</swe:value>", b"<swe:value>" + nested + b"</swe:value>"
    )
    resp = client.post("/schedules/normalise", content=body)
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Maximum nesting depth exceeded"
