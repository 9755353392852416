"""Closed vocabularies shared by the estimators and the state machine."""

from enum import StrEnum


class RugLevel(StrEnum):
    MIN = "MIN"
    LOW = "LOW"
    MED = "MED"
    HIGH = "HIGH"
    EXTREME = "EXTREME"


class TrapSeverity(StrEnum):
    LOW = "LOW"
    MED = "MED"
    HIGH = "HIGH"


class EntryZoneKind(StrEnum):
    EARLY = "EARLY"
    NEUTRAL = "NEUTRAL"
    CHASE = "CHASE"


class ConvergenceStatus(StrEnum):
    NONE = "NONE"
    WEAK = "WEAK"
    MED = "MED"
    STRONG = "STRONG"


class WalletTier(StrEnum):
    S = "S"
    A = "A"
    B = "B"
    C = "C"


class DecisionAction(StrEnum):
    WAIT = "WAIT"
    ARM = "ARM"
    READY = "READY"
    ENTER = "ENTER"
    RUG_WARNING = "RUG_WARNING"
