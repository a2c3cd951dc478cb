from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

import app as receipt_app
import config

SCENARIO = (
    "category=Fungal&stage=Flowering&components=%5B%7B%22component_type%22%3A"
    "%22Fungicide%22%2C%22component_name_te%22%3A%22A%22%2C%22dose_te%22%3A"
    "%225ml%2FL%22%2C%22application_method_te%22%3A%22Spray%22%7D%5D"
)

FIXED_NOW = datetime(2026, 10, 19, 14, 30, 0, tzinfo=ZoneInfo("Asia/Kolkata"))


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(receipt_app, "now_local", lambda: FIXED_NOW)
    monkeypatch.setattr(config, "DEFAULT_LAYOUT", "label")
    receipt_app.app.config["TESTING"] = True
    with receipt_app.app.test_client() as c:
        yield c


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_data(as_text=True) == "ok"


def test_label_scenario(client):
    resp = client.get(f"/label?{SCENARIO}")
    assert resp.status_code == 200
    html = resp.get_data(as_text=True)
    assert "<span class=\"label\">Category:</span>Fungal" in html
    assert "<span class=\"label\">Stage:</span>Flowering" in html
    assert html.count('class="treatment-row"') == 1
    for cell in ("Fungicide", "A", "5ml/L", "Spray"):
        assert f">{cell}</td>" in html


def test_index_uses_default_layout(client, monkeypatch):
    assert "size: 80mm 120mm;" in client.get("/").get_data(as_text=True)
    monkeypatch.setattr(config, "DEFAULT_LAYOUT", "roll")
    assert "size: 80mm auto;" in client.get("/").get_data(as_text=True)


def test_bad_default_layout_is_not_found(client, monkeypatch):
    monkeypatch.setattr(config, "DEFAULT_LAYOUT", "poster")
    assert client.get("/").status_code == 404


def test_no_parameters(client):
    html = client.get("/roll").get_data(as_text=True)
    expected_id = f"ADV-{int(FIXED_NOW.timestamp()) * 1000}"
    assert '<div class="title">Advisory</div>' in html
    assert "19/10/2026, 2:30:00 pm" in html
    assert f"ID: {expected_id}" in html
    assert "Recommended Treatment" not in html


def test_invalid_components_render_without_treatment(client):
    html = client.get("/label?components=%7Bbroken").get_data(as_text=True)
    assert "Recommended Treatment" not in html


def test_api_advisory(client):
    resp = client.get(f"/api/advisory?{SCENARIO}&receipt_id=ADV-7")
    data = resp.get_json()
    assert data["receipt_id"] == "ADV-7"
    assert data["category"] == "Fungal"
    assert data["problem_name_en"] == "Advisory"
    assert data["rendered_at"] == "19/10/2026, 2:30:00 pm"
    assert data["components"] == [
        {
            "component_type": "Fungicide",
            "component_name_te": "A",
            "dose_te": "5ml/L",
            "application_method_te": "Spray",
        }
    ]


def test_unknown_route(client):
    assert client.get("/poster").status_code == 404


def test_deeply_nested_components_still_render(client):
    resp = client.get("/label?components=" + "%5B" * 100000)
    assert resp.status_code == 200
    assert "Recommended Treatment" not in resp.get_data(as_text=True)


def test_clock_is_always_ist():
    assert receipt_app.now_local().utcoffset() == timedelta(hours=5, minutes=30)
    assert not hasattr(config, "APP_TZ")
