"""Entry-zone classifier: is the move still early, or are we chasing?

Secondary ranking signal only: the state machine blocks ENTER on CHASE but
never promotes a token because of a good zone.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.signals.overlay import MarketOverlay
from src.signals.types import EntryZoneKind

ZONE_SCORES = {
    EntryZoneKind.EARLY: 82,
    EntryZoneKind.NEUTRAL: 62,
    EntryZoneKind.CHASE: 30,
}
ZONE_REASONS = {
    EntryZoneKind.EARLY: "Early move, better RR",
    EntryZoneKind.NEUTRAL: "Mixed conditions",
    EntryZoneKind.CHASE: "Overextended, chase risk",
}


@dataclass
class EntryZone:
    zone: EntryZoneKind = EntryZoneKind.NEUTRAL
    entry_score: int = ZONE_SCORES[EntryZoneKind.NEUTRAL]
    reason: str = ZONE_REASONS[EntryZoneKind.NEUTRAL]

    @classmethod
    def of(cls, zone: EntryZoneKind) -> EntryZone:
        return cls(zone=zone, entry_score=ZONE_SCORES[zone], reason=ZONE_REASONS[zone])

    def to_dict(self) -> dict:
        return {"zone": self.zone.value, "entry_score": self.entry_score, "reason": self.reason}


def classify_zone(change_1h: float, change_24h: float) -> EntryZoneKind:
    if change_1h >= 25 or (change_1h >= 18 and change_24h >= 80):
        return EntryZoneKind.CHASE
    if change_1h <= 8 and change_24h <= 45:
        return EntryZoneKind.EARLY
    return EntryZoneKind.NEUTRAL


def compute_entry_zone(overlay: MarketOverlay) -> EntryZone:
    # No momentum data at all: no basis for calling it early
    if overlay.price_change_1h is None and overlay.price_change_24h is None:
        return EntryZone.of(EntryZoneKind.NEUTRAL)
    zone = classify_zone(overlay.price_change_1h or 0.0, overlay.price_change_24h or 0.0)
    return EntryZone.of(zone)
