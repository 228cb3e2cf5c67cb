"""WebPushSender: pywebpush call shape and error mapping."""
import asyncio
import json
from types import SimpleNamespace

import pytest
from pywebpush import WebPushException

from push_service.core.config import Settings
from push_service.core.exceptions import DeliveryFailure, PushConfigError
from push_service.services import push
from push_service.services.push import WebPushSender

SUBSCRIPTION = {
    "endpoint": "https://fcm.googleapis.com/fcm/send/abc",
    "keys": {"p256dh": "p256dh-key", "auth": "auth-secret"},
}


def _settings(**overrides):
    values = {
        "VAPID_PUBLIC_KEY": "public",
        "VAPID_PRIVATE_KEY": "private",
        "VAPID_CLAIMS_EMAIL": "admin@example.com",
        "PUSH_TTL": 60,
        "PUSH_TIMEOUT_SECONDS": 5,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.mark.parametrize("missing", ["VAPID_PUBLIC_KEY", "VAPID_PRIVATE_KEY", "VAPID_CLAIMS_EMAIL"])
def test_missing_vapid_configuration(missing):
    with pytest.raises(PushConfigError):
        WebPushSender(_settings(**{missing: ""}))


def test_send_calls_webpush_with_vapid_details(monkeypatch):
    calls = []

    def fake_webpush(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(status_code=201)

    monkeypatch.setattr(push, "webpush", fake_webpush)
    sender = WebPushSender(_settings())

    asyncio.run(sender.send(SUBSCRIPTION, json.dumps({"title": "t"})))

    assert len(calls) == 1
    kwargs = calls[0]
    assert kwargs["subscription_info"] == SUBSCRIPTION
    assert kwargs["data"] == '{"title": "t"}'
    assert kwargs["vapid_private_key"] == "private"
    assert kwargs["vapid_claims"] == {"sub": "mailto:admin@example.com"}
    assert kwargs["ttl"] == 60
    assert kwargs["timeout"] == 5


def test_mailto_prefix_is_not_doubled():
    sender = WebPushSender(_settings(VAPID_CLAIMS_EMAIL="mailto:admin@example.com"))
    assert sender.claims_subject == "mailto:admin@example.com"


@pytest.mark.parametrize("status", [404, 410, 429, 500])
def test_push_service_rejection_carries_status(monkeypatch, status):
    def fake_webpush(**kwargs):
        raise WebPushException("Push failed", response=SimpleNamespace(status_code=status))

    monkeypatch.setattr(push, "webpush", fake_webpush)
    sender = WebPushSender(_settings())

    with pytest.raises(DeliveryFailure) as info:
        asyncio.run(sender.send(SUBSCRIPTION, "{}"))

    assert info.value.push_status == status
    assert info.value.endpoint == SUBSCRIPTION["endpoint"]


def test_network_error_has_no_status(monkeypatch):
    def fake_webpush(**kwargs):
        raise ConnectionError("connection refused")

    monkeypatch.setattr(push, "webpush", fake_webpush)
    sender = WebPushSender(_settings())

    with pytest.raises(DeliveryFailure) as info:
        asyncio.run(sender.send(SUBSCRIPTION, "{}"))

    assert info.value.push_status is None
    assert "connection refused" in str(info.value)


def test_push_status_does_not_shadow_http_status():
    failure = DeliveryFailure(SUBSCRIPTION["endpoint"], None, "connection refused")
    assert failure.push_status is None
    assert failure.status_code == 500
