"""Exceptions raised by the gauge engine."""


class GaugeError(Exception):
    """Base class for every error the engine raises on purpose."""


class PresetError(GaugeError, ValueError):
    """A preset could not be validated at the boundary."""


class FrameEncodeError(GaugeError):
    """A rendered frame could not be turned into PNG bytes."""

    def __init__(self, index: int, reason: str = "no image data"):
        self.index = index
        self.reason = reason
        super().__init__(f"state {index}: {reason}")


class ExportCancelled(GaugeError):
    """A batch export was stopped before every state was rendered."""

    def __init__(self, completed: int, total: int):
        self.completed = completed
        self.total = total
        super().__init__(f"export cancelled after {completed}/{total} states")
