from __future__ import annotations

from typing import Optional, Protocol

from .errors import OperationCancelled


class CancelToken(Protocol):
    def is_set(self) -> bool: ...


def raise_if_cancelled(cancel: Optional[CancelToken]) -> None:
    """Raise OperationCancelled when ``cancel`` (e.g. a threading.Event) is set."""
    if cancel is not None and cancel.is_set():
        raise OperationCancelled("Operation was cancelled")
