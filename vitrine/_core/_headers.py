from __future__ import annotations

from typing import (
    Any,
    Dict,
    Iterator,
    Mapping,
    MutableMapping,
    Optional,
    Tuple,
)

__all__ = (
    "Headers",
    "cache_control",
)


class Headers(MutableMapping[str, str]):
    """
    Ordered, case-insensitive header mapping.

    Lookups ignore case; iteration yields header names in insertion order,
    spelled the way they were first set. Assigning an existing name replaces
    its value.
    """

    def __init__(self, headers: Optional[Mapping[str, str]] = None) -> None:
        self._headers: Dict[str, Tuple[str, str]] = {}
        for key, value in (headers or {}).items():
            self[key] = value

    def __getitem__(self, key: str) -> str:
        return self._headers[key.lower()][1]

    def __setitem__(self, key: str, value: str) -> None:
        existing = self._headers.get(key.lower())
        name = existing[0] if existing is not None else key
        self._headers[key.lower()] = (name, value)

    def __delitem__(self, key: str) -> None:
        del self._headers[key.lower()]

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._headers.values())

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return f"Headers({dict(self._headers.values())!r})"

    def __eq__(self, other_headers: Any) -> bool:
        if isinstance(other_headers, Headers):
            return {k: v for k, (_, v) in self._headers.items()} == {
                k: v for k, (_, v) in other_headers._headers.items()
            }
        if isinstance(other_headers, Mapping):
            return self == Headers(other_headers)
        return NotImplemented


def cache_control(
    *,
    public: bool = False,
    max_age: int | None = None,
    must_revalidate: bool = False,
) -> str:
    """
    Render a Cache-Control header value from the given directives.

    Args:
        public: Marks the response as cacheable by any cache.
            [RFC 9111, Section 5.2.2.9]
        max_age: Number of seconds the response stays fresh.
            [RFC 9111, Section 5.2.2.1]
        must_revalidate: A stale response must be validated before reuse.
            [RFC 9111, Section 5.2.2.2]

    Examples:
        >>> cache_control(public=True, max_age=31536000)
        'public, max-age=31536000'
        >>> cache_control(public=True, must_revalidate=True)
        'public, must-revalidate'
    """
    directives: list[str] = []

    if public:
        directives.append("public")

    if max_age is not None:
        directives.append(f"max-age={max_age}")

    if must_revalidate:
        directives.append("must-revalidate")

    return ", ".join(directives)
