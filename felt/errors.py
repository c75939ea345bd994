"""Exception types raised by the engine."""


class InvalidInputError(ValueError):
    """Malformed notation, wrong card counts or duplicate cards."""


class DeckExhaustedError(ValueError):
    """More unseen cards were requested than remain in the deck."""

    def __init__(self, needed: int, available: int):
        super().__init__(
            f"Need {needed} unseen cards, only {available} remaining"
        )
        self.needed = needed
        self.available = available
