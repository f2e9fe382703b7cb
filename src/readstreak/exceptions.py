"""Errors raised by the streak engine and its stores."""


class ReadstreakError(Exception):
    """Base class for readstreak errors."""


class ValidationError(ReadstreakError, ValueError):
    """Input rejected before anything was persisted."""


class NotFoundError(ReadstreakError, LookupError):
    """A record expected to exist could not be located."""
