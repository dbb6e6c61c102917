"""Single round-robin fixture generation (circle method)."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Sequence

from lcms.services.errors import FixtureValidationError

SCHEDULED = 'scheduled'


class _Bye:
    """Padding participant for odd-sized lists; never appears in output."""

    def __repr__(self) -> str:
        return 'BYE'


BYE = _Bye()


@dataclass(frozen=True)
class Fixture:
    home: Hashable
    away: Hashable
    round_number: int
    status: str = SCHEDULED


def validate_participants(participant_ids: Sequence[Hashable], minimum: int = 2) -> List[Hashable]:
    """Return the ids as a list, rejecting short lists and duplicates."""
    participants = list(participant_ids)
    if len(participants) < minimum:
        raise FixtureValidationError(
            f"Need at least {minimum} participants, got {len(participants)}"
        )

    try:
        distinct = set(participants)
    except TypeError as exc:
        raise FixtureValidationError(f"Participant ids must be hashable: {exc}") from exc

    if len(distinct) != len(participants):
        seen = set()
        duplicates = [p for p in participants if p in seen or seen.add(p)]
        raise FixtureValidationError(f"Duplicate participants: {duplicates}")
    if any(p is None for p in participants):
        raise FixtureValidationError("Participant ids must not be None")

    return participants


def number_of_rounds(participant_count: int) -> int:
    """Rounds needed for a single round robin: n-1 when even, n when odd."""
    if participant_count < 2:
        return 0
    return participant_count - 1 if participant_count % 2 == 0 else participant_count


def generate_round_robin(participant_ids: Sequence[Hashable], balance: bool = False) -> List[Fixture]:
    """
    Generate a single round-robin schedule.

    The first participant stays fixed while the others rotate one slot per
    round. In each round slot ``i`` meets slot ``n - 1 - i``; the lower slot
    is at home. Pairings against the bye are dropped, so with an odd count
    every participant sits out exactly one round.

    Args:
        participant_ids: Distinct, hashable participant identifiers (at least 2)
        balance: Swap home/away of the fixed participant's match on every
            other round so it does not play every game at home

    Returns:
        n*(n-1)/2 fixtures ordered by round, then by slot
    """
    slots: List[Hashable] = validate_participants(participant_ids)

    if len(slots) % 2 != 0:
        slots = slots + [BYE]

    n = len(slots)
    fixtures: List[Fixture] = []

    for round_index in range(n - 1):
        for i in range(n // 2):
            home = slots[i]
            away = slots[n - 1 - i]
            if home is BYE or away is BYE:
                continue
            if balance and i == 0 and round_index % 2 == 1:
                home, away = away, home
            fixtures.append(Fixture(home=home, away=away, round_number=round_index + 1))

        # Rotate everyone except the fixed first slot
        slots = [slots[0]] + [slots[-1]] + slots[1:-1]

    return fixtures


def rounds(fixtures: Iterable[Fixture]) -> Dict[int, List[Fixture]]:
    """Group fixtures by round number, preserving order within each round."""
    grouped: Dict[int, List[Fixture]] = defaultdict(list)
    for fixture in fixtures:
        grouped[fixture.round_number].append(fixture)
    return dict(sorted(grouped.items()))


__all__ = [
    'BYE',
    'Fixture',
    'generate_round_robin',
    'number_of_rounds',
    'rounds',
    'validate_participants',
]
