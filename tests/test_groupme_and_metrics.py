import pytest
import requests
from botocore.exceptions import ClientError

from api import groupme_client as groupme_module
from api.base import UpstreamError
from api.groupme_client import GroupMeClient
from metrics import CloudWatchMetrics


class DummyResponse:
    def __init__(self, status_code, text=""):
        self.status_code = status_code
        self.text = text


def test_send_message_posts_bot_payload(monkeypatch):
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append((url, json, timeout))
        return DummyResponse(202)

    monkeypatch.setattr(groupme_module.requests, "post", fake_post)

    GroupMeClient("bot-token", timeout=2.0).send_message("hi", image_url="https://i.groupme.com/x.png")

    [(url, payload, timeout)] = calls
    assert url == "https://api.groupme.com/v3/bots/post"
    assert payload == {
        "bot_id": "bot-token",
        "text": "hi",
        "attachments": [{"type": "image", "url": "https://i.groupme.com/x.png"}],
    }
    assert timeout == 2.0


def test_send_message_errors(monkeypatch):
    monkeypatch.setattr(groupme_module.requests, "post", lambda *a, **k: DummyResponse(400, "bad bot"))
    with pytest.raises(UpstreamError) as excinfo:
        GroupMeClient("bot-token").send_message("hi")
    assert excinfo.value.status == 400
    assert excinfo.value.platform == "groupme"

    def raise_connection_error(*args, **kwargs):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(groupme_module.requests, "post", raise_connection_error)
    with pytest.raises(UpstreamError):
        GroupMeClient("bot-token").send_message("hi")


class DummyCloudWatch:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def put_metric_data(self, **kwargs):
        if self.error:
            raise self.error
        self.calls.append(kwargs)


def test_gauge_published_to_namespace():
    client = DummyCloudWatch()

    CloudWatchMetrics("FreshConsole", client=client).gauge("Credit", 42)

    [call] = client.calls
    assert call["Namespace"] == "FreshConsole"
    assert call["MetricData"][0]["MetricName"] == "Credit"
    assert call["MetricData"][0]["Value"] == 42.0


def test_gauge_failure_is_swallowed():
    error = ClientError({"Error": {"Code": "Throttling", "Message": "slow down"}}, "PutMetricData")

    CloudWatchMetrics(client=DummyCloudWatch(error=error)).gauge("Credit", 1)
