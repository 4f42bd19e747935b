"""
Compliance News Client

Fetches recent crypto-regulation headlines from newsapi.org and normalizes
them to ``{title, description, url, publishedAt, source}``.

A single request is made per call (no retries); any upstream failure,
including a missing API key, raises NewsFetchError for the route layer
to turn into a 500.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from config_manager import NewsConfig

logger = logging.getLogger(__name__)

USER_AGENT = "compliance-tracker/1.0 (+news feed)"


class NewsFetchError(Exception):
    """Raised when the news upstream cannot be queried."""
    pass


class NewsClient:
    """Thin wrapper around the newsapi.org ``everything`` endpoint."""

    def __init__(self, config: NewsConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()

    def fetch_articles(self) -> List[Dict[str, Any]]:
        """
        Fetch and normalize the latest compliance articles.

        Raises:
            NewsFetchError: If the API key is missing or the request fails
        """
        if not self.config.api_key:
            raise NewsFetchError("News API key is not configured")

        params = {
            'q': self.config.query,
            'language': self.config.language,
            'sortBy': self.config.sort_by,
            'pageSize': self.config.page_size,
        }
        headers = {
            'X-Api-Key': self.config.api_key,
            'User-Agent': USER_AGENT,
        }

        try:
            response = self.session.get(
                self.config.base_url,
                params=params,
                headers=headers,
                timeout=self.config.timeout_seconds
            )
            response.raise_for_status()
            payload = response.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error("News API returned HTTP %s", status)
            raise NewsFetchError(f"News API returned HTTP {status}") from e
        except requests.RequestException as e:
            logger.error("News API request failed: %s", e)
            raise NewsFetchError(f"News API request failed: {e}") from e
        except ValueError as e:
            raise NewsFetchError("News API returned invalid JSON") from e

        articles = payload.get('articles')
        if not isinstance(articles, list):
            raise NewsFetchError("News API response has no articles list")

        logger.info("Fetched %d compliance news articles", len(articles))
        return [normalize_article(a) for a in articles[:self.config.page_size]]


def normalize_article(article: Dict[str, Any]) -> Dict[str, Any]:
    source = article.get('source') or {}
    return {
        'title': article.get('title') or 'No title available',
        'description': article.get('description') or 'No description available',
        'url': article.get('url'),
        'publishedAt': article.get('publishedAt'),
        'source': source.get('name') if isinstance(source, dict) else None,
    }
