"""Exceptions raised by the profile pipeline."""


class ProfileError(Exception):
    """Base class for profile pipeline errors."""


class InsufficientPointsError(ProfileError):
    """Fewer than three usable points survived cleaning."""

    def __init__(self, count: int):
        super().__init__(f"Profile needs at least 3 points, got {count}")
        self.count = count


class NotAProjectFileError(ProfileError):
    """A JSON document is not a saved profile."""
