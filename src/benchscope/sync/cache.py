"""Response cache keyed by filter category."""

import logging
from typing import Dict, Iterator, Optional

from benchscope.results.base import RemoteResponse

logger = logging.getLogger(__name__)


class ResponseCache:
    """Previously fetched results, one entry per filter category.

    Error responses are never stored. Entries stay until purged.
    """

    def __init__(self):
        self._responses: Dict[str, RemoteResponse] = {}

    def get(self, key: str) -> Optional[RemoteResponse]:
        return self._responses.get(key)

    def store(self, key: str, response: Optional[RemoteResponse]) -> bool:
        """Cache a response for ``key``.

        Returns:
            False (and leaves the cache untouched) for missing or error
            responses
        """
        if response is None or response.is_error:
            logger.debug(f"Not caching failed response for '{key}'")
            return False
        self._responses[key] = response
        logger.debug(f"Cached response for '{key}'")
        return True

    def purge(self, key: Optional[str] = None) -> None:
        """Remove one entry, or every entry when no key is given.

        The underlying mapping is cleared in place so existing references
        observe the purge.
        """
        if key:
            self._responses.pop(key, None)
        else:
            self._responses.clear()
        logger.debug(f"Purged response cache ({key or 'all'})")

    def __contains__(self, key: object) -> bool:
        return key in self._responses

    def __len__(self) -> int:
        return len(self._responses)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._responses))
