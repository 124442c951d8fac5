from unittest.mock import MagicMock, patch

import requests

from fetcher import REQUEST_TIMEOUT_SECONDS, fetch, get_json, head
from models import Err, FetchError, Ok


def _mock_resp(payload=None, headers: dict | None = None, error: Exception | None = None) -> MagicMock:
    """Return a mock requests.Response."""
    mock = MagicMock()
    mock.json.return_value = payload
    mock.headers = headers or {}
    if error is not None:
        mock.raise_for_status.side_effect = error
    return mock


def test_get_returns_decoded_json() -> None:
    with patch("fetcher.requests.get", return_value=_mock_resp({"object": {"id": "https://x"}})) as mock_get:
        result = get_json("https://inbox.example/n/1")

    assert result == Ok({"object": {"id": "https://x"}})
    assert mock_get.call_args.kwargs["timeout"] == REQUEST_TIMEOUT_SECONDS


def test_head_returns_lower_cased_headers() -> None:
    headers = {"Link": '<https://a>; rel="describedby"', "Content-Type": "text/html"}

    with patch("fetcher.requests.head", return_value=_mock_resp(headers=headers)):
        result = head("https://sciety.example/evaluation")

    assert result == Ok({"link": '<https://a>; rel="describedby"', "content-type": "text/html"})


def test_non_success_status_is_fetch_error() -> None:
    response = _mock_resp(error=requests.HTTPError("404 Client Error: Not Found"))

    with patch("fetcher.requests.get", return_value=response):
        result = fetch("GET", "https://inbox.example/missing")

    assert isinstance(result, Err)
    assert result.error == FetchError(message="404 Client Error: Not Found", uri="https://inbox.example/missing")


def test_transport_failure_is_fetch_error() -> None:
    with patch("fetcher.requests.head", side_effect=requests.ConnectionError("Name or service not known")):
        result = fetch("HEAD", "https://nowhere.invalid/")

    assert isinstance(result, Err)
    assert "Name or service not known" in result.error.message


def test_timeout_is_fetch_error() -> None:
    with patch("fetcher.requests.get", side_effect=requests.Timeout("read timed out")):
        result = fetch("GET", "https://slow.example/")

    assert isinstance(result, Err)
    assert isinstance(result.error, FetchError)


def test_invalid_json_body_is_fetch_error() -> None:
    response = _mock_resp()
    response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")

    with patch("fetcher.requests.get", return_value=response):
        result = fetch("GET", "https://html.example/")

    assert isinstance(result, Err)
    assert result.error.message.startswith("Invalid JSON body")
