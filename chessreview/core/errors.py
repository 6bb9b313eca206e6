class ReviewError(Exception):
    pass


class EngineUnavailable(ReviewError):
    """No configured engine source completed the handshake."""


class EngineTimeout(ReviewError):
    """The engine did not answer a search in time."""


class ProtocolParseAnomaly(ReviewError):
    """A streamed engine record carried nothing usable. Never fatal."""


class InvalidInputFormat(ReviewError, ValueError):
    pass


class IllegalMoveAttempt(ReviewError, ValueError):
    pass


class SearchPreempted(ReviewError):
    """A newer request stopped this search before it produced a score."""
