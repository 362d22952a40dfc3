"""
Allocation session state.

One AllocationState is one planning session: the pot pool, the batches
built from it, which batch claims which pot, and the latest shift summary.
It is owned by the caller and passed into every AllocationService call;
there is no module-level store, so independent sessions never interfere.

Mutations go through AllocationService, which holds `lock` for the whole
check-then-claim sequence. Readers get deep copies.
"""

import threading
from typing import Iterable, Optional

from exceptions import BatchNotFoundError, DuplicatePotError, PotNotFoundError
from models.batch import Batch, ProductRequest, ShiftSummary
from models.pot import Pot


class AllocationState:
    """In-memory allocation state for one shift plan."""

    def __init__(self, pots: Iterable[Pot] = ()):
        self._pots: dict[str, Pot] = {}
        self._batches: dict[str, Batch] = {}
        self._claims: dict[str, str] = {}  # pot_id -> batch_id
        self._next_batch_number = 1

        self.requests: list[ProductRequest] = []
        self.summary = ShiftSummary()
        self.lock = threading.RLock()

        for pot in pots:
            self.register_pot(pot)

    # ===================
    # POT POOL
    # ===================

    def register_pot(self, pot: Pot) -> None:
        """
        Add a pot to the pool.

        Raises:
            DuplicatePotError: If a pot with this id is already registered
        """
        with self.lock:
            if pot.id in self._pots:
                raise DuplicatePotError(pot.id)
            self._pots[pot.id] = pot

    def refresh_pots(self, pots: Iterable[Pot]) -> None:
        """
        Replace pot records by id, adding unknown ones.

        Existing assignments keep the chemistry pinned when they were made.
        """
        with self.lock:
            for pot in pots:
                self._pots[pot.id] = pot

    def pot(self, pot_id: str) -> Pot:
        """
        Get a registered pot.

        Raises:
            PotNotFoundError: If the id is not in the pool
        """
        pot = self._pots.get(pot_id)
        if pot is None:
            raise PotNotFoundError(pot_id)
        return pot

    @property
    def pots(self) -> list[Pot]:
        with self.lock:
            return list(self._pots.values())

    def unassigned_pots(self) -> list[Pot]:
        """Pots not claimed by any batch, in pool order."""
        with self.lock:
            return [p for p in self._pots.values() if p.id not in self._claims]

    def claimed_by(self, pot_id: str) -> Optional[str]:
        """Id of the batch holding this pot, or None."""
        return self._claims.get(pot_id)

    # ===================
    # BATCHES
    # ===================

    def batch(self, batch_id: str) -> Batch:
        """
        Get a copy of a batch.

        Raises:
            BatchNotFoundError: If the id is unknown
        """
        with self.lock:
            return self.require_batch(batch_id).model_copy(deep=True)

    @property
    def batches(self) -> list[Batch]:
        """Copies of all batches in creation order."""
        with self.lock:
            return [b.model_copy(deep=True) for b in self._batches.values()]

    @property
    def batch_count(self) -> int:
        return len(self._batches)

    def snapshot(self) -> dict:
        """Serializable view of the whole session."""
        with self.lock:
            return {
                "batches": [b.model_dump(mode="json") for b in self._batches.values()],
                "unassigned_pot_ids": [p.id for p in self.unassigned_pots()],
                "summary": self.summary.model_dump(mode="json"),
            }

    # ===================
    # ENGINE HOOKS
    # ===================
    # Called by AllocationService while holding `lock`.

    def require_batch(self, batch_id: str) -> Batch:
        batch = self._batches.get(batch_id)
        if batch is None:
            raise BatchNotFoundError(batch_id)
        return batch

    def next_batch_id(self) -> str:
        batch_id = f"T-{self._next_batch_number:03d}"
        self._next_batch_number += 1
        return batch_id

    def store_batch(self, batch: Batch) -> None:
        """Insert or replace a batch and move pot claims to match it."""
        previous = self._batches.get(batch.id)
        if previous is not None:
            for pot_id in previous.pot_ids:
                self._claims.pop(pot_id, None)
        for pot_id in batch.pot_ids:
            self._claims[pot_id] = batch.id
        self._batches[batch.id] = batch

    def drop_batch(self, batch_id: str) -> Batch:
        """Remove a batch, releasing its pots to the unassigned pool."""
        batch = self._batches.pop(batch_id)
        for pot_id in batch.pot_ids:
            self._claims.pop(pot_id, None)
        return batch

    def drop_all_batches(self) -> None:
        self._batches.clear()
        self._claims.clear()
        self._next_batch_number = 1
