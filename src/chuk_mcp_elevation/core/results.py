"""
Per-request result types produced by the query engine.

Plain dataclasses; the tool layer converts them to response models.
"""

from dataclasses import asdict, dataclass, field

from ..constants import StreamEventType


@dataclass(frozen=True)
class Coordinate:
    """A geographic position in the rasters' own reference system."""

    longitude: float
    latitude: float


@dataclass
class ElevationPoint:
    """Elevation at one coordinate. ``elevation`` is None when ``error`` says why."""

    longitude: float
    latitude: float
    elevation: float | None
    error: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.elevation is not None

    def to_dict(self) -> dict:
        data = {
            "longitude": self.longitude,
            "latitude": self.latitude,
            "elevation": self.elevation,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class BatchProgress:
    """Progress of a streamed batch after one chunk."""

    chunk_index: int
    processed_points: int
    total_points: int
    progress: float


@dataclass
class AggregateStats:
    """Summary of a finished query."""

    total_points: int
    valid_points: int
    processing_time_ms: int
    data_source: str


@dataclass
class ChunkEvent:
    progress: BatchProgress
    data: list[ElevationPoint] = field(default_factory=list)
    type: str = StreamEventType.CHUNK

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            **asdict(self.progress),
            "data": [p.to_dict() for p in self.data],
        }


@dataclass
class CompleteEvent:
    metadata: AggregateStats
    type: str = StreamEventType.COMPLETE

    def to_dict(self) -> dict:
        return {"type": self.type, "metadata": asdict(self.metadata)}


@dataclass
class ErrorEvent:
    error: str
    type: str = StreamEventType.ERROR

    def to_dict(self) -> dict:
        return {"type": self.type, "error": self.error}


StreamEvent = ChunkEvent | CompleteEvent | ErrorEvent


def count_valid(points: list[ElevationPoint]) -> int:
    return sum(1 for p in points if p.elevation is not None)
