"""Exception types raised by the alignment-string codec.

Every error derives from :class:`AlignmentError`, itself a
:class:`ValueError`, so callers that only care about "bad alignment data"
can catch a single type.
"""

from __future__ import annotations


class AlignmentError(ValueError):
    """Base class for all codec errors."""


class GrammarError(AlignmentError):
    """An alignment string does not follow its format's grammar.

    Parameters
    ----------
    text : str
        The offending alignment string.
    reason : str
        Human-readable description of the violation.
    op_index : int or None, optional
        0-based index of the operator at which validation failed, or
        ``None`` when the failure is at a string boundary.
    """

    def __init__(self, text: str, reason: str, op_index: int | None = None) -> None:
        self.text = text
        self.reason = reason
        self.op_index = op_index
        if op_index is None:
            msg = f'target string = {text!r}, {reason}'
        else:
            msg = f'target string = {text!r}, op_index = {op_index}: {reason}'
        super().__init__(msg)


class UnsupportedOperatorError(AlignmentError):
    """A grammatically valid operator that this format cannot represent."""

    def __init__(self, text: str, operator: str, op_index: int | None = None) -> None:
        self.text = text
        self.operator = operator
        self.op_index = op_index
        where = '' if op_index is None else f' at op_index {op_index}'
        super().__init__(
            f'unsupported operator {operator!r}{where} in alignment string {text!r}'
        )


class UnimplementedFormatError(AlignmentError):
    """No parser or serializer exists for the requested format."""

    def __init__(self, fmt: object, direction: str) -> None:
        self.format = fmt
        self.direction = direction
        super().__init__(f'{direction} is not implemented for format {fmt}')


class FormatMismatchError(AlignmentError):
    """A parser was handed the wrong or an already-populated canonical."""


class InvalidOperationError(AlignmentError):
    """An alignment operation with a bad operator or a non-positive length."""


class BlockError(AlignmentError):
    """An aligned-block array that cannot be converted back to operations."""
