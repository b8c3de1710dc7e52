# src/propconf/domain/errors.py
from __future__ import annotations


class PropconfError(Exception):
    """Base class for every error raised by the listing core."""


class ValidationError(PropconfError):
    """
    A step gate or field rule was not met.

    Recovered locally: blocks the step advance / field update and never
    reaches the network.
    """


class UploadError(PropconfError):
    """Remote storage rejected a file. Aborts the rest of the submit."""


class ParseError(PropconfError):
    """A structured config column could not be parsed as JSON."""


class PersistenceError(PropconfError):
    """Record write rejected, or the persisted row did not round-trip."""


class SecondaryEffectError(PropconfError):
    """A best-effort side effect failed (developer sync, storage cleanup)."""
