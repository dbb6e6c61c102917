"""Player payload parsing shared by the admin and manager roster routes."""

from __future__ import annotations

from typing import Any

from lcms.blueprints.common.payload import parse_date

PLAYER_FIELDS = ('name', 'jersey_number', 'position', 'nationality')


def player_fields(data: dict[str, Any]) -> dict[str, Any]:
    fields = {key: data[key] for key in PLAYER_FIELDS if key in data}
    if 'date_of_birth' in data:
        fields['date_of_birth'] = parse_date(data['date_of_birth'], 'date_of_birth')
    return fields
