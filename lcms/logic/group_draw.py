"""Cup group draws: random dealing or explicit assignment."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Hashable, List, Mapping, Optional, Sequence

from lcms.logic.round_robin import validate_participants
from lcms.services.errors import FixtureValidationError

GROUP_NAME_PREFIX = 'Group'


@dataclass
class GroupDraw:
    name: str
    order: int
    participants: List[Hashable] = field(default_factory=list)


def group_label(index: int) -> str:
    """0 -> 'A', 25 -> 'Z', 26 -> 'AA'."""
    if index < 0:
        raise ValueError("Group index must be non-negative")
    label = ''
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        label = chr(ord('A') + remainder) + label
    return label


def number_of_groups(participant_count: int, group_size: int) -> int:
    if group_size < 1:
        raise FixtureValidationError(f"Group size must be at least 1, got {group_size}")
    return math.ceil(participant_count / group_size)


def draw_groups_random(
    participant_ids: Sequence[Hashable],
    group_size: int,
    rng: Optional[random.Random] = None,
) -> List[GroupDraw]:
    """Shuffle participants and deal them in turn into ceil(M/K) groups."""
    participants = validate_participants(participant_ids, minimum=1)
    group_count = number_of_groups(len(participants), group_size)

    shuffled = list(participants)
    (rng or random.Random()).shuffle(shuffled)

    groups = [
        GroupDraw(name=f"{GROUP_NAME_PREFIX} {group_label(i)}", order=i + 1)
        for i in range(group_count)
    ]
    for position, participant in enumerate(shuffled):
        groups[position % group_count].participants.append(participant)

    return groups


def assign_groups_manual(assignments: Mapping[str, Sequence[Hashable]]) -> List[GroupDraw]:
    """
    Validate a caller-supplied grouping.

    Args:
        assignments: Group name -> participant ids, in display order

    Returns:
        One GroupDraw per name, numbered in the given order
    """
    if not assignments:
        raise FixtureValidationError("At least one group is required")

    owner: dict = {}
    groups: List[GroupDraw] = []
    for order, (name, members) in enumerate(assignments.items(), start=1):
        name = str(name).strip()
        if not name:
            raise FixtureValidationError("Group names must not be empty")
        if any(group.name == name for group in groups):
            raise FixtureValidationError(f"Group {name} is listed twice")
        if isinstance(members, (str, bytes)) or not isinstance(members, Sequence):
            raise FixtureValidationError(f"Group {name} must list its participants")
        members = list(members)
        if not members:
            raise FixtureValidationError(f"Group {name} has no participants")

        for participant in members:
            if isinstance(participant, bool) or not isinstance(participant, (str, int)):
                raise FixtureValidationError(f"Group {name} has an invalid participant id: {participant!r}")
            if participant in owner:
                raise FixtureValidationError(
                    f"Participant {participant} is assigned to both "
                    f"group {owner[participant]} and group {name}"
                )
            owner[participant] = name

        groups.append(GroupDraw(name=name, order=order, participants=members))

    return groups


__all__ = [
    'GroupDraw',
    'group_label',
    'number_of_groups',
    'draw_groups_random',
    'assign_groups_manual',
]
