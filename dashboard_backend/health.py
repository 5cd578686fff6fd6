# file: dashboard_backend/health.py

import logging
from typing import Dict, List

from dashboard_backend.errors import UpstreamUnavailable
from dashboard_backend.models import ProviderStatus
from dashboard_backend.utils import utc_now


class ProviderHealth:
    """Failure count and last error per provider for errors that were absorbed into fallback data."""

    def __init__(self) -> None:
        self._status: Dict[str, ProviderStatus] = {}

    def record(self, error: UpstreamUnavailable) -> None:
        current = self._status.get(error.provider) or ProviderStatus(provider=error.provider)
        self._status[error.provider] = ProviderStatus(
            provider=error.provider,
            failures=current.failures + 1,
            last_error=str(error),
            last_failure_at=utc_now(),
        )
        logging.warning(f"Upstream call failed, using fallback: {error}")

    def status(self, provider: str) -> ProviderStatus:
        return self._status.get(provider) or ProviderStatus(provider=provider)

    def report(self) -> List[ProviderStatus]:
        return [self._status[name] for name in sorted(self._status)]
