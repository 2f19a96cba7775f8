"""Building query strings for {json:api} list requests."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote_plus


@dataclass
class Query:
    """Filters, includes and extra GET variables of a list request."""

    filters: dict[str, str] | None = None
    includes: list[str] | None = None
    extras: dict[str, str] | None = None

    def encode(self) -> str:
        """Return the URL-encoded query string, keys sorted.

        A filter key such as ``age__gt`` becomes ``filter[age][gt]``.
        """
        values: dict[str, list[str]] = {}
        if self.filters is not None:
            for key, value in self.filters.items():
                final_key = "filter" + "".join(f"[{part}]" for part in key.split("__"))
                values.setdefault(final_key, []).append(value)
        if self.includes is not None:
            values.setdefault("include", []).append(",".join(self.includes))
        if self.extras is not None:
            for key, value in self.extras.items():
                values.setdefault(key, []).append(value)
        return "&".join(
            f"{quote_plus(key)}={quote_plus(value)}"
            for key in sorted(values)
            for value in values[key]
        )