# file: dashboard_backend/errors.py


class UpstreamUnavailable(Exception):
    """A single provider call failed (network, auth, timeout or malformed response)."""

    def __init__(self, provider: str, operation: str, reason: str):
        self.provider = provider
        self.operation = operation
        self.reason = reason
        super().__init__(f"{provider}.{operation}: {reason}")


class AggregationFailed(Exception):
    """Merging or computing a snapshot failed for a reason other than upstream availability."""
