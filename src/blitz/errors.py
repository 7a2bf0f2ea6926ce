"""Exception taxonomy for the board engine."""


class EngineError(Exception):
    pass


class InvalidIntent(EngineError, ValueError):
    """Caller supplied a move the board cannot accept. The board is left untouched."""


class InvalidSwap(InvalidIntent):
    pass


class InvalidActivation(InvalidIntent):
    pass


class EngineBusy(EngineError):
    """Input arrived while a turn was still resolving."""


class NoLegalMove(EngineError):
    """No adjacent swap produces a match; recovered by shuffling."""


class InitializationFailure(EngineError, RuntimeError):
    """A playable board with at least one legal move could not be built."""
