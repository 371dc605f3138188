"""Error taxonomy for the harvester.

Per-item failures degrade to listing-only records, page failures degrade
to channel fallback, and only a run that produced nothing is fatal.
"""

__all__ = [
    "ChannelError",
    "ExhaustedRetries",
    "FetchError",
    "HarvestError",
    "NoRecordsError",
]


class HarvestError(Exception):
    """Base class for all harvester errors."""


class FetchError(HarvestError):
    """Remote endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"HTTP {status_code} for {url}")
        self.status_code = status_code
        self.url = url


class ExhaustedRetries(HarvestError):
    """Every allowed attempt of a retryable call failed."""

    def __init__(self, last_error: BaseException, attempts: int) -> None:
        super().__init__(f"gave up after {attempts} attempt(s): {last_error}")
        self.last_error = last_error
        self.attempts = attempts


class ChannelError(HarvestError):
    """A channel could not produce a page or detail record.

    Raised at the retry boundary so transport errors never escape a
    channel uncaught. ``cause`` is the ExhaustedRetries or fatal error.
    """

    def __init__(self, channel: str, message: str, cause: BaseException | None = None) -> None:
        super().__init__(f"[{channel}] {message}")
        self.channel = channel
        self.cause = cause


class NoRecordsError(HarvestError):
    """The run produced zero records after every channel and fallback.

    ``upstream_failed`` separates "upstream errored and no fallback
    succeeded" from an honest empty result.
    """

    def __init__(self, upstream_failed: bool) -> None:
        if upstream_failed:
            message = "No records produced: upstream errored and no fallback succeeded"
        else:
            message = "No records found: the search returned no results"
        super().__init__(message)
        self.upstream_failed = upstream_failed
