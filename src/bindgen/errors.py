"""Exceptions raised by the binding compiler and its plan runtime."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.bindgen.callsite_validator import ValidationError


class BindgenError(Exception):
    """Base class for all binding compiler errors."""

    pass


class MalformedCallSiteError(BindgenError, ValueError):
    """Raised when call sites violate the compiler's input contract.

    This is a caller/programmer error detected before any plan is built.
    """

    def __init__(self, errors: list[ValidationError]) -> None:
        self.errors = list(errors)
        lines = [f"{e.path}: {e.message}" for e in self.errors]
        super().__init__(
            f"{len(self.errors)} malformed call site problem(s):\n  " + "\n  ".join(lines)
        )


class UnresolvedDispatchError(BindgenError, RuntimeError):
    """Raised when a generated entry point finds no matching call site.

    Always fatal: the dispatch tables are out of sync with the compiled
    call sites. Never recovered and never degraded to a slower path.
    """

    def __init__(self, method_prefix: str, file_path: str, line: int) -> None:
        self.method_prefix = method_prefix
        self.file_path = file_path
        self.line = line
        super().__init__(
            f"No generated {method_prefix} dispatch matched ({file_path}:{line}). "
            "Ensure the expression is an inline lambda for compile-time optimization."
        )
