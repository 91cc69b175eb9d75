"""Error kinds raised by the draw engine."""


class DrawError(Exception):
    """Base class for draw engine errors."""

    pass


class NotFoundError(DrawError):
    """Tournament, match or player does not exist."""

    pass


class PreconditionFailedError(DrawError):
    """Operation is not allowed in the current tournament state."""

    pass


class InvalidInputError(DrawError):
    """Malformed input (e.g. a qualification rules payload)."""

    pass
