"""Round tracker - numbered fairness cycles"""

import logging
from typing import Iterable

from .models import ServiceEntry

logger = logging.getLogger(__name__)


class RoundTracker:
    def __init__(self, current_round: int = 1):
        self.current_round = current_round
        self.counts: dict[str, int] = {}

    def count(self, name: str) -> int:
        return self.counts.get(name, 0)

    def record_assignment(self, name: str, eligible: Iterable[str]) -> bool:
        """Count one auto assignment; True when every eligible therapist now has one"""
        self.counts[name] = self.count(name) + 1
        eligible = list(eligible)
        return bool(eligible) and all(self.count(n) >= 1 for n in eligible)

    def close_round(self) -> int:
        """Clear the counts and open the next round; returns the closed round number"""
        closed = self.current_round
        self.counts = {}
        self.current_round += 1
        logger.info(f"🏁 Round {closed} complete - round {self.current_round} opened")
        return closed

    def round_for_manual(self, entries: Iterable[ServiceEntry], therapist: str) -> int:
        """Manual entries go one past the therapist's latest round"""
        rounds = [e.round for e in entries if e.therapist == therapist and e.round is not None]
        if not rounds:
            return self.current_round
        return max(rounds) + 1
