"""Mirror fork pull requests into the trusted repository so its CI can run."""

from .errors import (
    AmbiguousMirrorError,
    ConflictError,
    MirrorError,
    MirrorNotFoundError,
    TransportError,
    UnsupportedEventError,
    UnsyncedError,
)
from .models import (
    EventKind,
    ForkPREvent,
    MirrorOutcome,
    MirrorPR,
    PipelineResult,
    PipelineStatus,
    SyncState,
    load_event,
)
from .pipeline import MirrorPipeline, run_pipeline

__all__ = [
    "AmbiguousMirrorError",
    "ConflictError",
    "EventKind",
    "ForkPREvent",
    "MirrorError",
    "MirrorNotFoundError",
    "MirrorOutcome",
    "MirrorPR",
    "MirrorPipeline",
    "PipelineResult",
    "PipelineStatus",
    "SyncState",
    "TransportError",
    "UnsupportedEventError",
    "UnsyncedError",
    "load_event",
    "run_pipeline",
]
