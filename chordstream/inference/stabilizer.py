"""Temporal stabilization of frame-by-frame chord matches.

Matches vote into a sliding time window. The displayed chord only changes
when a new chord dominates the window, and a new chord is only confirmed
after it has won enough consecutive ticks:

    NO_CHORD -> TENTATIVE(name) -> STABLE(name)
    STABLE(A) -> TENTATIVE(B) -> STABLE(B)

Without input the window drains and the state decays back to NO_CHORD.
The stabilizer is not thread-safe; votes must arrive in timestamp order.
"""

import logging
from collections import deque
from dataclasses import dataclass, replace
from enum import Enum
from typing import Deque, Dict, Optional

import numpy as np

from ..analysis.chroma import chroma_distance
from .chords import ChordCandidate

logger = logging.getLogger(__name__)


@dataclass
class StabilizerConfig:
    """Configuration for temporal stabilization.

    Attributes:
        window_ms: Age after which votes are evicted (default: 1000)
        dominance_threshold: Vote share a new chord needs to take over (default: 0.6)
        min_stability: Consecutive favourable ticks before a chord is confirmed (default: 5)
        max_stability: Cap of the stability counter (default: 20)
        vote_gate: Minimum candidate confidence to cast a vote (default: 0.3)
    """

    window_ms: float = 1000.0
    dominance_threshold: float = 0.6
    min_stability: int = 5
    max_stability: int = 20
    vote_gate: float = 0.3

    def __post_init__(self):
        if self.window_ms <= 0:
            raise ValueError("window_ms must be positive")
        if not 0 < self.dominance_threshold <= 1:
            raise ValueError("dominance_threshold must be in (0, 1]")
        if not 1 <= self.min_stability <= self.max_stability:
            raise ValueError("Need 1 <= min_stability <= max_stability")


class StabilityPhase(str, Enum):
    NO_CHORD = "no_chord"
    TENTATIVE = "tentative"
    STABLE = "stable"


@dataclass(frozen=True)
class ChordVote:
    name: str
    timestamp: float  # ms
    weight: float


class ChordVoteWindow:
    """Time-bounded multiset of weighted chord votes."""

    def __init__(self, window_ms: float = 1000.0):
        self.window_ms = window_ms
        self._votes: Deque[ChordVote] = deque()

    def __len__(self) -> int:
        return len(self._votes)

    def add(self, name: str, timestamp: float, weight: float) -> None:
        self._votes.append(ChordVote(name, timestamp, weight))

    def evict(self, now: float) -> int:
        """Drop votes at least window_ms old, return how many were dropped."""
        dropped = 0
        while self._votes and now - self._votes[0].timestamp >= self.window_ms:
            self._votes.popleft()
            dropped += 1
        return dropped

    def tally(self) -> Dict[str, float]:
        """Summed vote weight per chord name."""
        totals: Dict[str, float] = {}
        for vote in self._votes:
            totals[vote.name] = totals.get(vote.name, 0.0) + vote.weight
        return totals

    @property
    def total(self) -> float:
        return sum(vote.weight for vote in self._votes)

    def clear(self) -> None:
        self._votes.clear()


@dataclass
class StableChordState:
    """What the stabilizer currently believes."""

    current_chord: Optional[str] = None
    confidence: float = 0.0
    stability_count: int = 0
    last_change_time: Optional[float] = None
    candidate: Optional[ChordCandidate] = None  # Latest match for current_chord


class ChordStabilizer:
    """Vote-window hysteresis over chord candidates."""

    def __init__(self, config: StabilizerConfig = None):
        self.config = config or StabilizerConfig()
        self.window = ChordVoteWindow(self.config.window_ms)
        self.state = StableChordState()
        self._confirmed: Optional[ChordCandidate] = None
        self._latest: Dict[str, ChordCandidate] = {}

    @property
    def phase(self) -> StabilityPhase:
        if self.state.current_chord is None:
            return StabilityPhase.NO_CHORD
        if self.state.stability_count < self.config.min_stability:
            return StabilityPhase.TENTATIVE
        return StabilityPhase.STABLE

    @property
    def confirmed(self) -> Optional[ChordCandidate]:
        """Chord last confirmed for downstream consumers."""
        return self._confirmed

    def update(
        self,
        candidate: Optional[ChordCandidate],
        timestamp: float,
    ) -> Optional[ChordCandidate]:
        """
        Apply one tick.

        Args:
            candidate: Matcher output for this tick (None if nothing matched)
            timestamp: Tick time in milliseconds

        Returns:
            The confirmed chord to report, or None
        """
        self.window.evict(timestamp)

        voted = candidate is not None and candidate.confidence >= self.config.vote_gate
        if voted:
            self.window.add(candidate.name, timestamp, candidate.confidence)
            self._latest[candidate.name] = candidate

        tally = self.window.tally()
        if not tally:
            if self.state.current_chord is not None:
                logger.debug("Vote window empty, %s decays", self.state.current_chord)
            self._clear_state()
            return None

        if voted:
            self._transition(candidate, tally, timestamp)

        return self._confirmed

    def _transition(self, candidate: ChordCandidate, tally: Dict[str, float], timestamp: float):
        state = self.state
        total = sum(tally.values())
        leader = max(tally, key=tally.get)
        dominance = tally[leader] / total if total > 0 else 0.0

        if leader == state.current_chord:
            state.stability_count = min(state.stability_count + 1, self.config.max_stability)
            if candidate.name == leader:
                state.confidence = max(state.confidence, candidate.confidence)
                state.candidate = candidate
        elif dominance >= self.config.dominance_threshold:
            logger.debug(
                "Chord change %s -> %s (dominance %.2f)",
                state.current_chord, leader, dominance,
            )
            leading = self._latest.get(leader, candidate)
            state.current_chord = leader
            state.stability_count = 1
            state.confidence = leading.confidence
            state.last_change_time = timestamp
            state.candidate = leading
        else:
            return

        if state.stability_count >= self.config.min_stability:
            if self._confirmed is None or self._confirmed.name != state.current_chord:
                logger.debug("Confirmed %s", state.current_chord)
            self._confirmed = replace(state.candidate, confidence=state.confidence)

    def _clear_state(self) -> None:
        self.state = StableChordState()
        self._confirmed = None
        self._latest = {}

    def reset(self) -> None:
        """Forget everything (stream start/stop, mode toggle)."""
        self.window.clear()
        self._clear_state()


class ChromaChangeGate:
    """Detect when the chroma has moved away from the last matched one.

    Each tick is compared with the reference chroma recorded by ``accept``
    (the chroma the matcher last ran on). Ticks farther than the threshold
    count up, ticks close to the reference count down; the gate opens once
    enough consecutive ticks have drifted.
    """

    def __init__(self, threshold: float = 0.15, min_consecutive: int = 3):
        self.threshold = threshold
        self.min_consecutive = min_consecutive
        self.consecutive_changes = 0
        self._reference = np.zeros(12)

    def update(self, chroma: np.ndarray) -> bool:
        """Feed one chroma vector, return whether matching should run again."""
        change = chroma_distance(np.asarray(chroma, dtype=np.float64), self._reference)

        if change > self.threshold:
            self.consecutive_changes += 1
        else:
            self.consecutive_changes = max(0, self.consecutive_changes - 1)

        return self.consecutive_changes >= self.min_consecutive

    def accept(self, chroma: np.ndarray) -> None:
        """Record the chroma the matcher just ran on as the new reference."""
        self._reference = np.array(chroma, dtype=np.float64)
        self.clear_changes()

    def clear_changes(self) -> None:
        """Restart counting."""
        self.consecutive_changes = 0

    def reset(self) -> None:
        self.consecutive_changes = 0
        self._reference = np.zeros(12)
