"""
Tests for the compliance news client. The HTTP session is mocked.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

sys.path.insert(0, str(Path(__file__).parent.parent))

from config_manager import NewsConfig
from news_client import USER_AGENT, NewsClient, NewsFetchError, normalize_article


def make_response(payload=None, status_code=200, json_error=None):
    response = MagicMock()
    response.status_code = status_code
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(response=response)
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def config():
    return NewsConfig(api_key="test-key", page_size=2)


@pytest.fixture
def http():
    return MagicMock(spec=requests.Session)


class TestFetchArticles:
    """Tests for NewsClient.fetch_articles."""

    def test_request_parameters(self, config, http):
        http.get.return_value = make_response({"articles": []})
        NewsClient(config, session=http).fetch_articles()

        args, kwargs = http.get.call_args
        assert args == (config.base_url,)
        assert kwargs["params"]["pageSize"] == 2
        assert kwargs["params"]["sortBy"] == "publishedAt"
        assert kwargs["headers"] == {"X-Api-Key": "test-key", "User-Agent": USER_AGENT}
        assert kwargs["timeout"] == config.timeout_seconds

    def test_articles_normalized_and_capped(self, config, http):
        http.get.return_value = make_response({"articles": [
            {"title": "MiCA applies", "description": "EU rules", "url": "https://n.example.com/1",
             "publishedAt": "2025-10-01T08:00:00Z", "source": {"id": None, "name": "Wire"}},
            {"title": None, "description": None, "url": "https://n.example.com/2", "source": None},
            {"title": "Third", "url": "https://n.example.com/3"},
        ]})
        articles = NewsClient(config, session=http).fetch_articles()

        assert len(articles) == 2
        assert articles[0] == {
            "title": "MiCA applies",
            "description": "EU rules",
            "url": "https://n.example.com/1",
            "publishedAt": "2025-10-01T08:00:00Z",
            "source": "Wire",
        }
        assert articles[1]["title"] == "No title available"
        assert articles[1]["description"] == "No description available"
        assert articles[1]["source"] is None

    def test_missing_api_key(self, http):
        with pytest.raises(NewsFetchError, match="not configured"):
            NewsClient(NewsConfig(api_key=None), session=http).fetch_articles()
        http.get.assert_not_called()

    def test_http_error(self, config, http):
        http.get.return_value = make_response(status_code=503)
        with pytest.raises(NewsFetchError, match="HTTP 503"):
            NewsClient(config, session=http).fetch_articles()

    def test_connection_error(self, config, http):
        http.get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(NewsFetchError, match="request failed"):
            NewsClient(config, session=http).fetch_articles()

    def test_invalid_json(self, config, http):
        http.get.return_value = make_response(json_error=ValueError("Expecting value"))
        with pytest.raises(NewsFetchError, match="invalid JSON"):
            NewsClient(config, session=http).fetch_articles()

    def test_no_articles_list(self, config, http):
        http.get.return_value = make_response({"status": "error"})
        with pytest.raises(NewsFetchError):
            NewsClient(config, session=http).fetch_articles()

    def test_single_request_no_retry(self, config, http):
        http.get.side_effect = requests.Timeout("slow")
        with pytest.raises(NewsFetchError):
            NewsClient(config, session=http).fetch_articles()
        assert http.get.call_count == 1


def test_normalize_source_string():
    assert normalize_article({"source": "Wire"})["source"] is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
