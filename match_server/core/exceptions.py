"""Custom exceptions raised by the match coordinator layers."""


class MatchError(Exception):
    """Top-level exception. Every error that may be reported back to a client derives from it."""


# --- REQUEST / PROTOCOL ---
class InvalidRequestError(MatchError):
    """Request payload is structurally fine JSON, but its content cannot be used."""


class NotAuthenticatedError(MatchError):
    """Connection tried to act before sending an 'auth' message."""


# --- MATCH LIFECYCLE ---
class MatchNotFoundError(MatchError):
    """No match registered under the requested ID."""


class DuplicateMatchError(MatchError):
    """A match with the requested ID already exists."""


class MatchStateError(MatchError):
    """Requested operation is not allowed in the match's current status."""


class MatchFullError(MatchStateError):
    """Both seats are already taken by other players."""


class NotSeatedError(MatchError):
    """User is not one of the two players of the match."""


class NotYourTurnError(MatchError):
    """User is seated, but the other color is to move."""


# --- PERSISTENCE ---
class RepositoryError(MatchError):
    """Store could not complete a read or write."""


# --- TRANSPORT ---
class ConnectionClosedError(Exception):
    """Attempted to push a message over a transport that is no longer open."""
