"""Exception hierarchy for liftlog."""


class LiftlogError(Exception):
    """Base class for all liftlog errors."""


class ValidationError(LiftlogError, ValueError):
    """Input rejected at the boundary before it reaches the store."""


class PersistenceError(LiftlogError):
    """The durable backing store could not be written."""


class SnapshotError(LiftlogError):
    """A backup document is malformed or from an unsupported version."""


class InvalidTransitionError(LiftlogError):
    """A session operation was attempted from a state that does not allow it."""


class WorkoutInProgressError(InvalidTransitionError):
    """A workout was started while another one is still active."""


class SetNotFoundError(LiftlogError, KeyError):
    """The current workout has no set with the requested id."""

    def __str__(self) -> str:
        return f"No set with id {self.args[0]!r} in the current workout"


class SyncTransportError(LiftlogError):
    """The remote sync collaborator failed or could not be reached."""
