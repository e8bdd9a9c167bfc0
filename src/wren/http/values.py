"""Immutable multi-value string mappings for query strings and form fields.

``Values`` backs both ``Request.query`` and the string half of
``FormData``. Besides plain lookups it can collect bracketed keys into a
single mapping::

    ids[a]=1&ids[b]=2   ->   values.get_map("ids") == {"a": "1", "b": "2"}
"""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qs


class Values(Mapping[str, str]):
    """Immutable field name -> list of values mapping.

    ``__getitem__`` returns the first value for a key.
    ``get_list`` returns all values for a key.
    ``get_map`` groups ``prefix[sub]`` keys by their bracketed part.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, list[str]] | None = None) -> None:
        object.__setattr__(self, "_data", {k: list(v) for k, v in (data or {}).items()})

    @classmethod
    def parse(cls, encoded: str | bytes) -> "Values":
        """Parse an ``application/x-www-form-urlencoded`` string.

        Blank values are kept (``?role=`` yields ``""``, not a missing key).
        """
        if isinstance(encoded, bytes):
            encoded = encoded.decode("latin-1")
        return cls(parse_qs(encoded, keep_blank_values=True))

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"Values({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key* (repeated keys, multi-selects)."""
        return list(self._data.get(key, []))

    def get_map(self, prefix: str) -> dict[str, str]:
        """Collect ``prefix[sub]=value`` pairs into ``{sub: value}``.

        Keys whose bracket is empty (``prefix[]``) or unterminated are
        ignored. When a bracketed key repeats, its first value wins.
        """
        result: dict[str, str] = {}
        for key, values in self._data.items():
            head, bracket, rest = key.partition("[")
            if not bracket or head != prefix:
                continue
            sub, closed, _ = rest.partition("]")
            if closed and sub and values:
                result[sub] = values[0]
        return result
