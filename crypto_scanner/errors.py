"""Exception hierarchy for Crypto Scanner."""


class ScannerError(Exception):
    """Base class for scanner errors."""

    pass


class DataSourceError(ScannerError):
    """Market data could not be fetched (network, auth, rate limit, bad payload).

    Transient: the scheduler logs it and tries again on the next tick.
    """

    pass


class PersistenceError(ScannerError):
    """Baseline or alert state could not be read from or written to the store."""

    pass


class AuthorizationError(ScannerError):
    """An admin-only operation was requested by someone other than the admin."""

    pass
