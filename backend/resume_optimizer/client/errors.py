class TrackingError(Exception):
    """Base class for every way a tracked job can fail to complete."""


class ProtocolError(TrackingError):
    """A frame on an open stream could not be understood. Never retried."""


class TransportError(TrackingError):
    """The channel itself failed. Recoverable within the retry budget."""


class RetriesExhaustedError(TrackingError):
    pass


class TrackingTimeoutError(TrackingError, TimeoutError):
    pass


class ServerReportedError(TrackingError):
    """The server ended the job with ``step == "error"``; the message is verbatim."""


class CancelledTrackingError(TrackingError):
    pass
