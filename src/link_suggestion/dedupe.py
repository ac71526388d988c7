from typing import Dict, Iterable, List

from .schema import LinkIdentity


class KnownUrlSet:
    """
    Append-only set of link identities keyed on the exact URL string.

    URLs are not canonicalised: "https://a.dev" and "https://a.dev/" are two
    different links.
    """

    def __init__(self, identities: Iterable[LinkIdentity] = ()):
        self._by_url: Dict[str, LinkIdentity] = {}
        for identity in identities:
            self.add(identity)

    def contains(self, url: str) -> bool:
        return url in self._by_url

    def add(self, identity: LinkIdentity) -> None:
        # First identity seen for a URL is kept
        self._by_url.setdefault(identity.url, identity)

    def snapshot(self) -> List[LinkIdentity]:
        """Copy of the current identities in insertion order."""
        return list(self._by_url.values())

    def __contains__(self, url: object) -> bool:
        return url in self._by_url

    def __len__(self) -> int:
        return len(self._by_url)


def merge_known_links(*groups: Iterable[LinkIdentity]) -> List[LinkIdentity]:
    """
    Combine several sources of known links into one list unique by URL.

    The first occurrence of a URL fixes its position. A later occurrence only
    replaces it when the earlier one has no title and the later one does.
    """
    merged: Dict[str, LinkIdentity] = {}
    for group in groups:
        for link in group:
            current = merged.get(link.url)
            if current is None or (link.title and not current.title):
                merged[link.url] = link
    return list(merged.values())
