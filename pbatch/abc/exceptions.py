"""abstract module for exceptions"""


class PbatchException(Exception):
    """Base class for pbatch related exceptions."""

    def __init__(self, message: str, *args) -> None:
        self.message = message
        super().__init__(message, *args)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PbatchException):
            return self.args == other.args
        return NotImplemented

    __hash__ = Exception.__hash__
