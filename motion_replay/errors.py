"""Error types raised while replaying a motion through a model.

Precondition errors are caller mistakes (mismatched tables, bad labels).
Internal consistency errors mean the model itself is wired inconsistently.
"""

from __future__ import annotations


class PreconditionError(ValueError):
    pass


class RowCountMismatchError(PreconditionError):
    pass


class MissingColumnsError(PreconditionError):
    pass


class UnknownLabelError(PreconditionError):
    pass


class DiscreteVariableLabelError(PreconditionError):
    pass


class InternalConsistencyError(RuntimeError):
    pass


class ControlOrderError(InternalConsistencyError):
    pass


class ComponentNotFoundError(KeyError):
    def __str__(self) -> str:
        # KeyError repr()s its message; keep it readable.
        return str(self.args[0]) if self.args else ''
