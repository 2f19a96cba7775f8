"""Looking up the languages the server supports."""

from __future__ import annotations

import functools
import threading
from collections.abc import Callable
from typing import Any, Optional

from txcli.jsonapi.core import Connection, Resource


def _once(func: Callable[[Connection], Any]) -> Callable[[Connection], Any]:
    """Run ``func`` on the first call only; later calls repeat its outcome."""
    lock = threading.Lock()
    state: dict[str, tuple[Any, Optional[BaseException]]] = {}

    @functools.wraps(func)
    def wrapper(api: Connection) -> Any:
        with lock:
            if "outcome" not in state:
                try:
                    state["outcome"] = (func(api), None)
                except Exception as error:
                    state["outcome"] = (None, error)
        result, error = state["outcome"]
        if error is not None:
            raise error
        return result

    def cache_clear() -> None:
        with lock:
            state.clear()

    wrapper.cache_clear = cache_clear  # type: ignore[attr-defined]
    return wrapper


@_once
def get_languages(api: Connection) -> dict[str, Resource]:
    """Return all supported languages keyed by code.

    The first call's outcome, result or error, is remembered for the life of
    the process; ``get_languages.cache_clear()`` forgets it.
    """
    collection = api.list("languages")
    return {language.attributes.get("code", ""): language for language in collection.data}


def get_language(api: Connection, code: str) -> Optional[Resource]:
    """Return the language with ``code``, or ``None``."""
    languages = api.list("languages")
    return next(
        (language for language in languages.data if language.attributes.get("code") == code),
        None,
    )