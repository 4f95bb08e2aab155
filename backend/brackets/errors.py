"""
Errors raised while building or updating a bracket.

Nothing here is retried or rolled back; rows committed before a failure stay
in storage and a rerun in update mode converges on them.
"""


class BracketError(Exception):
    """Base class for bracket creation failures"""

    pass


class ValidationError(BracketError):
    """Caller input is missing or inconsistent"""

    pass


class PersistenceError(BracketError):
    """Storage did not report success for a required insert or update"""

    pass


class InternalError(BracketError):
    """The builder reached a state it should never reach"""

    pass
