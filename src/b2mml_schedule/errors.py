"""Exception types raised by the serialiser.

Two failure families exist:

* :class:`InvalidMessageError` - the message (or a value inside it) is
  malformed or semantically invalid. Raised while decoding XML and while
  encoding a tree that cannot be represented. Messages start with a stable
  prefix so callers can match on the failure cause, and the lower-level
  cause is chained (``raise ... from exc``).
* Construction-argument errors - the API was used incorrectly, e.g.
  :class:`IllegalDateTimeError` for a timestamp that is not in UTC. These
  derive from the built-in ``ValueError`` / ``TypeError`` and are not
  expected to be caught in normal operation.

Example:
    >>> from b2mml_schedule.errors import InvalidMessageError
    >>> try:
    ...     raise InvalidMessageError("Failed to parse datatype")
    ... except InvalidMessageError as exc:
    ...     str(exc)
    'Failed to parse datatype'
"""


class InvalidMessageError(Exception):
    """A message could not be read or written because its content is invalid."""


class IllegalDateTimeError(ValueError):
    """A timestamp was supplied with a time zone other than UTC."""
