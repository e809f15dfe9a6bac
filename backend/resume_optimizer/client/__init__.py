"""Client for following optimization jobs over their event stream."""
from .errors import (
    CancelledTrackingError,
    ProtocolError,
    RetriesExhaustedError,
    ServerReportedError,
    TrackingError,
    TrackingTimeoutError,
    TransportError,
)
from .tracker import RetryPolicy, StreamingJobTracker, TrackerState, track
from .transport import HttpxTransport, Transport, build_job_url

__all__ = [
    "CancelledTrackingError",
    "HttpxTransport",
    "ProtocolError",
    "RetriesExhaustedError",
    "RetryPolicy",
    "ServerReportedError",
    "StreamingJobTracker",
    "TrackerState",
    "TrackingError",
    "TrackingTimeoutError",
    "Transport",
    "TransportError",
    "build_job_url",
    "track",
]
