from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Any, Iterable, List, Optional, Tuple

from ..logging import get_logger
from ..domain.models import StagingCandidate
from ..domain.normalize import coerce_price
from .errors import SessionClosedError


LOG = get_logger("catalog-staging")

STATE_OPEN = "open"
STATE_CONFIRMED = "confirmed"
STATE_CANCELLED = "cancelled"


class StagingSession:
    """Editable holding area between extraction and catalog commit.

    Open -> Confirmed (emits the list) or Open -> Cancelled (emits nothing).
    Both end states are terminal; any further edit raises SessionClosedError.
    The session never touches the catalog itself.
    """

    def __init__(self, candidates: Iterable[StagingCandidate], *, source: str = "receipt",
                 supermarket: Optional[str] = None) -> None:
        self.session_id = uuid.uuid4().hex
        self.source = source
        self.supermarket = supermarket
        self.state = STATE_OPEN
        # Own copies so caller-side edits cannot leak in.
        self._items: List[StagingCandidate] = [replace(c) for c in candidates]
        LOG.info(f"Staging session {self.session_id} opened ({source}) with {len(self._items)} candidate(s)")

    def __len__(self) -> int:
        return len(self._items)

    @property
    def candidates(self) -> Tuple[StagingCandidate, ...]:
        return tuple(self._items)

    @property
    def is_open(self) -> bool:
        return self.state == STATE_OPEN

    def _require_open(self) -> None:
        if self.state != STATE_OPEN:
            raise SessionClosedError(f"Staging session {self.session_id} is {self.state}")

    def remove(self, index: int) -> StagingCandidate:
        self._require_open()
        removed = self._items.pop(index)
        LOG.debug(f"Removed candidate {index} ({removed.name!r}) from {self.session_id}")
        return removed

    def update_price(self, index: int, value: Any) -> bool:
        """Replace the price when value parses as a positive finite number.

        Invalid input leaves the candidate untouched and returns False.
        """
        self._require_open()
        item = self._items[index]
        price = coerce_price(value)
        if price is None or price <= 0:
            LOG.debug(f"Ignoring price edit {value!r} for candidate {index}")
            return False
        item.price = price
        return True

    def update_name(self, index: int, value: Optional[str]) -> bool:
        self._require_open()
        item = self._items[index]
        if not isinstance(value, str) or not value.strip():
            return False
        item.name = value.strip()
        return True

    def cancel(self) -> None:
        self._require_open()
        self.state = STATE_CANCELLED
        self._items = []
        LOG.info(f"Staging session {self.session_id} cancelled")

    def confirm(self) -> List[StagingCandidate]:
        self._require_open()
        self.state = STATE_CONFIRMED
        confirmed = [replace(c) for c in self._items]
        LOG.info(f"Staging session {self.session_id} confirmed with {len(confirmed)} candidate(s)")
        return confirmed

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "source": self.source,
            "supermarket": self.supermarket,
            "state": self.state,
            "candidates": [c.to_dict() for c in self._items],
        }
