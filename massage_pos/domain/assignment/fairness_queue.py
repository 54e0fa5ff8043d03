"""Fairness queue - rotation order of eligible therapists plus the "next" cursor"""

import logging
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


class FairnessQueue:
    def __init__(self, names: Iterable[str] = (), next_index: int = 0):
        self.names: list[str] = list(dict.fromkeys(names))
        self.next_index = next_index if 0 <= next_index < len(self.names) else 0

    def __len__(self) -> int:
        return len(self.names)

    def __contains__(self, name: str) -> bool:
        return name in self.names

    def current(self) -> Optional[str]:
        """Therapist the cursor points at"""
        if not self.names:
            return None
        return self.names[self.next_index]

    def index_of(self, name: str) -> int:
        return self.names.index(name) if name in self.names else -1

    def resync(self, eligible: Iterable[str]) -> None:
        """
        Reconcile membership with the eligible roster.

        Therapists who stay keep their relative order, newcomers go to the back. The
        cursor follows its therapist; if that therapist left, it returns to the front.
        """
        eligible = list(eligible)
        target = self.current()
        staying = [name for name in self.names if name in eligible]
        arriving = [name for name in eligible if name not in self.names]
        self.names = staying + arriving

        if not self.names or target not in self.names:
            self.next_index = 0
        else:
            self.next_index = self.names.index(target)

        if arriving or len(staying) != len(eligible):
            logger.debug(f"🔄 Queue resynced: {self.names} (next={self.next_index})")

    def advance_after_assignment(self, name: str) -> None:
        """Move the assigned therapist to the back and keep the cursor on the same person"""
        assigned_index = self.index_of(name)
        if assigned_index < 0:
            return

        self.names = [n for n in self.names if n != name] + [name]

        if assigned_index == self.next_index:
            # The next therapist slid into this slot; wrap when we were at the end
            if self.next_index >= len(self.names) - 1:
                self.next_index = 0
        elif assigned_index < self.next_index:
            self.next_index = max(0, self.next_index - 1)

    def promote_to_front(self, name: str) -> None:
        self.names = [name] + [n for n in self.names if n != name]
        self.next_index = 0

    def reset_to_roster(self, roster: Iterable[str]) -> None:
        self.names = list(dict.fromkeys(roster))
        self.next_index = 0
