"""Completed stage records and the stage quality score."""

from dataclasses import dataclass, field
from datetime import datetime

from guests.journey.event import FulfillmentEvent
from guests.shared.stage import FulfillmentStage

QUALITY_BASELINE = 50


def stage_quality_score(events) -> float:
    """Baseline of 50 moved by the sum of the stage's event impacts, clamped to [0, 100]."""
    return max(0, min(100, QUALITY_BASELINE + sum(event.impact for event in events)))


@dataclass(frozen=True)
class CompletedStageRecord:
    """A stage the guest has left, with the events observed while in it."""

    stage: FulfillmentStage
    start_time: datetime
    end_time: datetime
    duration_ms: int
    quality_score: float
    events: tuple[FulfillmentEvent, ...] = field(default_factory=tuple)

    @classmethod
    def close(cls, stage: FulfillmentStage, start_time: datetime, end_time: datetime, events) -> "CompletedStageRecord":
        events = tuple(events)
        return cls(
            stage=stage,
            start_time=start_time,
            end_time=end_time,
            duration_ms=max(0, int((end_time - start_time).total_seconds() * 1000)),
            quality_score=stage_quality_score(events),
            events=events,
        )

    def to_dict(self) -> dict:
        return {
            "stage": self.stage.value,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_ms": self.duration_ms,
            "quality_score": self.quality_score,
            "events": [event.to_dict() for event in self.events],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CompletedStageRecord":
        return cls(
            stage=FulfillmentStage(data["stage"]),
            start_time=datetime.fromisoformat(data["start_time"]),
            end_time=datetime.fromisoformat(data["end_time"]),
            duration_ms=data["duration_ms"],
            quality_score=data["quality_score"],
            events=tuple(FulfillmentEvent.from_dict(event) for event in data.get("events", [])),
        )
