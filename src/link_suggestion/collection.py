import logging
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from .schema import AcceptedLink, LinkIdentity, LinkItem

logger = logging.getLogger(__name__)

SORT_KEYS = ("title-asc", "title-desc", "category-asc", "date-asc", "date-desc")
DEFAULT_SORT = "date-desc"
ALL_CATEGORIES_FILTER = "All"


class SuggestionInProgressError(RuntimeError):
    """A suggestion request is already running against this collection."""


def _now_ms() -> int:
    return int(time.time() * 1000)


def _title_key(item: LinkItem) -> str:
    return item.title.casefold()


_SORTERS: Dict[str, Callable[[List[LinkItem]], None]] = {
    "title-asc": lambda items: items.sort(key=_title_key),
    "title-desc": lambda items: items.sort(key=_title_key, reverse=True),
    "category-asc": lambda items: items.sort(
        key=lambda item: (item.category.value.casefold(), _title_key(item))
    ),
    "date-asc": lambda items: items.sort(key=lambda item: item.added_timestamp),
    "date-desc": lambda items: items.sort(
        key=lambda item: item.added_timestamp, reverse=True
    ),
}


class LinkCollection:
    """
    In-memory link collection owned by one session.

    URLs are unique within the collection. The accumulation loop never sees
    this object directly, only a copy of `known_links()` taken when a request
    starts.
    """

    def __init__(self, items: Iterable[LinkItem] = ()):
        self._items: List[LinkItem] = []
        self._urls: set[str] = set()
        self._busy = False
        for item in items:
            self.add(item)

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> List[LinkItem]:
        return list(self._items)

    @property
    def busy(self) -> bool:
        return self._busy

    def known_links(self) -> List[LinkIdentity]:
        return [LinkIdentity(url=item.url, title=item.title) for item in self._items]

    def add(self, item: LinkItem) -> bool:
        if item.url in self._urls:
            logger.debug("Skipping duplicate link: %s", item.url)
            return False
        self._items.append(item)
        self._urls.add(item.url)
        return True

    def add_suggestions(
        self, links: Iterable[AcceptedLink], now_ms: Optional[int] = None
    ) -> List[LinkItem]:
        """Append AI suggestions not already present. Returns the items actually added."""
        timestamp = _now_ms() if now_ms is None else now_ms
        added: List[LinkItem] = []
        for index, link in enumerate(links):
            item = LinkItem(
                id=f"ai-{timestamp}-{index}",
                title=link.title,
                description=link.description,
                url=link.url,
                category=link.category,
                source="ai",
                added_timestamp=timestamp + index,
            )
            if self.add(item):
                added.append(item)
        return added

    def view(
        self,
        category: Optional[str] = None,
        sort_by: str = DEFAULT_SORT,
        ids: Optional[set[str]] = None,
    ) -> List[LinkItem]:
        """
        Filtered and sorted copy of the collection.

        `category` of None or "All" keeps every category. `ids`, when given,
        keeps only those link ids (the result of a keyword filter). Unknown
        `sort_by` values fall back to newest first.
        """
        items = list(self._items)
        if ids is not None:
            items = [item for item in items if item.id in ids]
        if category and category != ALL_CATEGORIES_FILTER:
            items = [item for item in items if item.category.value == category]

        _SORTERS.get(sort_by, _SORTERS[DEFAULT_SORT])(items)
        return items

    @contextmanager
    def request_guard(self) -> Iterator[None]:
        """Hold the busy flag for the duration of one suggestion request."""
        if self._busy:
            raise SuggestionInProgressError(
                "A link suggestion request is already in progress"
            )
        self._busy = True
        try:
            yield
        finally:
            self._busy = False
