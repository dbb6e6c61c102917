from lcms.models.models import (
    AuditLog,
    Cup,
    CupGroup,
    CupMatch,
    CupStage,
    CupStatus,
    CupTeam,
    Division,
    DivisionStanding,
    League,
    LeagueStatus,
    Match,
    MatchEvent,
    MatchEventType,
    MatchStatus,
    Player,
    PlayerPosition,
    SportType,
    Team,
    TimestampedBase,
    User,
    UserRole,
)

__all__ = [
    "AuditLog",
    "Cup",
    "CupGroup",
    "CupMatch",
    "CupStage",
    "CupStatus",
    "CupTeam",
    "Division",
    "DivisionStanding",
    "League",
    "LeagueStatus",
    "Match",
    "MatchEvent",
    "MatchEventType",
    "MatchStatus",
    "Player",
    "PlayerPosition",
    "SportType",
    "Team",
    "TimestampedBase",
    "User",
    "UserRole",
]
