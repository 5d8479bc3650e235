"""Tests for the Duckling HTTP extractor."""

import json
import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import pytest
import requests

from chronocontext.extraction.duckling_client import (
    DEFAULT_LOCALES,
    DucklingHTTPExtractor,
    convert_match,
)
from chronocontext.extraction.temporal.contextualizer import TemporalContextualizer
from chronocontext.errors import ExtractorConnectionError
from chronocontext.extraction.temporal.exceptions import (
    ExtractionFailure,
    ExtractorUnavailable,
)
from chronocontext.extraction.temporal.models import (
    Grain,
    RawInstantValue,
    RawIntervalValue,
)


REFERENCE = datetime(2016, 4, 1, 8, 0)
REFERENCE_MILLIS = 1459497600000

INSTANT_ENTRY = {
    "body": "tomorrow at 9am",
    "start": 0,
    "end": 15,
    "dim": "time",
    "latent": False,
    "value": {
        "values": [],
        "value": "2016-04-02T09:00:00.000+00:00",
        "grain": "hour",
        "type": "value",
    },
}

INTERVAL_ENTRY = {
    "body": "from 9 to 11",
    "start": 0,
    "end": 12,
    "dim": "time",
    "latent": False,
    "value": {
        "type": "interval",
        "from": {"value": "2016-04-01T09:00:00.000+00:00", "grain": "hour"},
        "to": {"value": "2016-04-01T12:00:00.000+00:00", "grain": "hour"},
        "values": [],
    },
}

DURATION_ENTRY = {
    "body": "3 days",
    "start": 4,
    "end": 10,
    "dim": "duration",
    "latent": False,
    "value": {"value": 3, "day": 3, "type": "value", "unit": "day"},
}


def _response(payload=None, status_code=200, json_error=None):
    response = Mock()
    response.status_code = status_code
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
    else:
        response.raise_for_status.return_value = None
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def session():
    with patch("chronocontext.extraction.duckling_client.requests.Session") as session_cls:
        session = Mock()
        session_cls.return_value = session
        yield session


@pytest.fixture
def client():
    return DucklingHTTPExtractor("http://duckling:8000/", timeout=3.0)


class TestConversion:
    """Conversion of Duckling JSON entries."""

    def test_instant(self):
        match = convert_match(INSTANT_ENTRY)

        assert match.dimension == "time"
        assert (match.start, match.end) == (0, 15)
        assert match.latent is False
        assert match.value == RawInstantValue("2016-04-02T09:00:00.000+00:00", "hour")
        assert match.body == "tomorrow at 9am"

    def test_interval(self):
        match = convert_match(INTERVAL_ENTRY)

        assert match.value == RawIntervalValue(
            start=RawInstantValue("2016-04-01T09:00:00.000+00:00", "hour"),
            end=RawInstantValue("2016-04-01T12:00:00.000+00:00", "hour"),
        )

    def test_open_interval(self):
        entry = dict(INTERVAL_ENTRY, value={"type": "interval", "to": {"value": "2016-04-01T11:00:00.000+00:00", "grain": "minute"}})

        match = convert_match(entry)

        assert match.value.start is None
        assert match.value.end.grain == "minute"

    def test_duration_has_no_time_value(self):
        match = convert_match(DURATION_ENTRY)

        assert match.dimension == "duration"
        assert match.value is None

    def test_latent_flag(self):
        match = convert_match(dict(INSTANT_ENTRY, latent=True))
        assert match.latent is True

    def test_missing_field(self):
        with pytest.raises(KeyError):
            convert_match({"start": 0, "end": 3})


class TestExtract:
    """HTTP requests against /parse."""

    def test_posts_form(self, client, session):
        session.post.return_value = _response([INSTANT_ENTRY])

        matches = client.extract("tomorrow at 9am", "en", REFERENCE, 2015, 2021)

        assert len(matches) == 1
        url = session.post.call_args.args[0]
        kwargs = session.post.call_args.kwargs
        assert url == "http://duckling:8000/parse"
        assert kwargs["timeout"] == 3.0
        form = kwargs["data"]
        assert form["locale"] == "en_GB"
        assert form["text"] == "tomorrow at 9am"
        assert form["reftime"] == str(REFERENCE_MILLIS)
        assert form["tz"] == "UTC"
        assert json.loads(form["dims"]) == ["time", "duration"]

    def test_aware_reference_sent_as_wall_clock(self, client, session):
        session.post.return_value = _response([])
        aware = REFERENCE.replace(tzinfo=timezone(timedelta(hours=2)))

        client.extract("tomorrow", "en", aware, 2015, 2021)

        assert session.post.call_args.kwargs["data"]["reftime"] == str(REFERENCE_MILLIS)

    def test_locale_overrides(self, session):
        client = DucklingHTTPExtractor(locales={"EN": "en_US", "xx": "xx_XX"})
        session.post.return_value = _response([])

        client.extract("tomorrow", "EN", REFERENCE, 2015, 2021)

        assert session.post.call_args.kwargs["data"]["locale"] == "en_US"
        assert client.is_language_supported("xx")
        assert "xx" in client.supported_languages()

    def test_language_support(self, client):
        assert client.is_language_supported("de")
        assert client.is_language_supported("DE")
        assert not client.is_language_supported("tlh")
        assert client.supported_languages() == sorted(DEFAULT_LOCALES)

    def test_unsupported_language(self, client, session):
        with pytest.raises(ExtractionFailure) as exc_info:
            client.extract("qapla'", "tlh", REFERENCE, 2015, 2021)

        assert exc_info.value.language == "tlh"
        session.post.assert_not_called()


class TestFailures:
    """Errors are reported as ExtractionFailure."""

    def test_http_error(self, client, session):
        session.post.return_value = _response(status_code=500)

        with pytest.raises(ExtractionFailure, match="request failed") as exc_info:
            client.extract("tomorrow", "en", REFERENCE, 2015, 2021)

        assert not isinstance(exc_info.value, ExtractorUnavailable)
        assert exc_info.value.code == "EXTRACTION_ERROR"

    def test_timeout(self, client, session):
        session.post.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(ExtractorUnavailable, match="timed out") as exc_info:
            client.extract("tomorrow", "en", REFERENCE, 2015, 2021)

        assert isinstance(exc_info.value.cause, requests.exceptions.Timeout)
        assert exc_info.value.code == "EXTRACTOR_CONNECTION_ERROR"

    def test_connection_error(self, client, session):
        session.post.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(ExtractorUnavailable, match="Cannot connect") as exc_info:
            client.extract("tomorrow", "en", REFERENCE, 2015, 2021)

        assert isinstance(exc_info.value, ExtractorConnectionError)
        assert exc_info.value.language == "en"

    def test_invalid_json(self, client, session):
        session.post.return_value = _response(json_error=ValueError("Expecting value"))

        with pytest.raises(ExtractionFailure, match="invalid JSON"):
            client.extract("tomorrow", "en", REFERENCE, 2015, 2021)

    def test_unexpected_payload(self, client, session):
        session.post.return_value = _response({"error": "nope"})

        with pytest.raises(ExtractionFailure, match="Unexpected Duckling response"):
            client.extract("tomorrow", "en", REFERENCE, 2015, 2021)

    def test_malformed_entry(self, client, session):
        session.post.return_value = _response([{"start": 0, "end": 3}])

        with pytest.raises(ExtractionFailure, match="Malformed"):
            client.extract("tomorrow", "en", REFERENCE, 2015, 2021)


class TestHealthCheck:
    """Server availability."""

    def test_healthy(self, client, session):
        session.get.return_value = _response("quack!")
        assert client.health_check() is True
        assert session.get.call_args.args[0] == "http://duckling:8000"

    def test_unreachable(self, client, session):
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        assert client.health_check() is False


class TestSessions:
    """One session per thread."""

    def test_session_per_thread(self, client):
        main_session = client.session
        other = {}

        thread = threading.Thread(target=lambda: other.setdefault("session", client.session))
        thread.start()
        thread.join()

        assert client.session is main_session
        assert other["session"] is not main_session


class TestWithContextualizer:
    """End-to-end resolution over mocked HTTP."""

    def test_resolves_instant(self, client, session):
        session.post.return_value = _response([INSTANT_ENTRY])
        contextualizer = TemporalContextualizer(client)

        tokens = contextualizer.resolve("tomorrow at 9am", "en", REFERENCE)

        assert len(tokens) == 1
        assert tokens[0].start.date == datetime(2016, 4, 2, 9)
        assert tokens[0].start.grain is Grain.HOUR

    def test_unreachable_server_surfaces_as_connection_failure(self, client, session):
        session.post.side_effect = requests.exceptions.ConnectionError("refused")
        contextualizer = TemporalContextualizer(client)

        with pytest.raises(ExtractorUnavailable) as exc_info:
            contextualizer.resolve("tomorrow at 9am", "en", REFERENCE)

        assert isinstance(exc_info.value, ExtractionFailure)
        assert exc_info.value.code == "EXTRACTOR_CONNECTION_ERROR"
