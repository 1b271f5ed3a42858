"""Exceptions raised while reading sidebar indexes."""


class MalformedIndex(ValueError):
    """Raised when raw sidebar data does not have the expected shape."""

    def __init__(self, message: str, category: str | None = None, position: int | None = None) -> None:
        """Initialise the error.

        Args:
            message: Human readable description of the problem.
            category: Category in which the problem was found, if known.
            position: Zero-based position of the offending entry, if known.
        """
        super().__init__(message)
        self.category = category
        self.position = position
