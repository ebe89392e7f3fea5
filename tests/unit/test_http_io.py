"""
Unit tests for the HTTP source and webhook notifier (httpx MockTransport).
"""

import json
from datetime import date

import httpx
import pytest

from src.batch.readers import HttpSource
from src.core.errors import FetchError, NotificationError
from src.core.models import TrendSummary
from src.notify.webhook import WebhookNotifier, format_trend_line, format_trend_message

CSV_URL = "https://data.example.test/Downloadable_Wastewater.csv"
HOOK_URL = "https://hooks.example.test/webhook"


def mock_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestHttpSource:
    """Tests for HttpSource"""

    def test_fetch_returns_body_stream(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, content=b"a,b\n1,2\n")

        source = HttpSource(CSV_URL, client=mock_client(handler))
        stream = source.fetch()

        assert stream.read() == b"a,b\n1,2\n"
        assert len(requests) == 1
        assert str(requests[0].url) == CSV_URL

    def test_http_error_status_raises_once(self):
        """Non-2xx responses fail without retrying"""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503)

        with pytest.raises(FetchError):
            HttpSource(CSV_URL, client=mock_client(handler)).fetch()
        assert len(calls) == 1

    def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(FetchError) as exc_info:
            HttpSource(CSV_URL, client=mock_client(handler)).fetch()
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.unit
class TestTrendFormatting:
    """Tests for message formatting"""

    def test_no_data_line(self):
        summary = TrendSummary(location="Yakima", pcr_pathogen_target="RSV")
        assert format_trend_line(summary) == "Yakima / RSV: no data"

    def test_no_prior_data_line(self, make_sample):
        summary = TrendSummary(
            location="Tacoma Central",
            pcr_pathogen_target="SARS-CoV-2",
            latest=make_sample(normalized_pathogen_concentration=1234567.0),
        )
        assert format_trend_line(summary) == (
            "Tacoma Central / SARS-CoV-2: 1,234,567 on 2024-11-01 (no prior data)"
        )

    def test_change_line(self, make_sample):
        summary = TrendSummary(
            location="Tacoma Central",
            pcr_pathogen_target="SARS-CoV-2",
            latest=make_sample(
                sample_collection_date=date(2024, 11, 8),
                normalized_pathogen_concentration=1500.0,
            ),
            previous=make_sample(normalized_pathogen_concentration=1000.0),
        )
        assert format_trend_line(summary) == (
            "Tacoma Central / SARS-CoV-2: 1,500 on 2024-11-08 (+500 since 2024-11-01)"
        )

    def test_message_has_header(self):
        message = format_trend_message([TrendSummary(location="A", pcr_pathogen_target="B")])
        assert message.splitlines() == [
            "Wastewater update (gene copies/person/day)",
            "A / B: no data",
        ]


@pytest.mark.unit
class TestWebhookNotifier:
    """Tests for WebhookNotifier"""

    def test_posts_content(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["method"] = request.method
            captured["url"] = str(request.url)
            captured["payload"] = json.loads(request.content)
            return httpx.Response(204)

        notifier = WebhookNotifier(HOOK_URL, client=mock_client(handler))
        notifier.send([TrendSummary(location="A", pcr_pathogen_target="B")])

        assert captured["method"] == "POST"
        assert captured["url"] == HOOK_URL
        assert captured["payload"] == {
            "content": "Wastewater update (gene copies/person/day)\nA / B: no data"
        }

    def test_nothing_to_send(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        WebhookNotifier(HOOK_URL, client=mock_client(handler)).send([])

    def test_rejected_post_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"message": "bad payload"})

        notifier = WebhookNotifier(HOOK_URL, client=mock_client(handler))
        with pytest.raises(NotificationError):
            notifier.send([TrendSummary(location="A", pcr_pathogen_target="B")])
