"""Compilation context for binding generation.

Accumulates synthesized methods, entry points and diagnostics while one
call kind is compiled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from src.bindgen.ir import CallKind, SourceLocation
from src.bindgen.plan import (
    Diagnostic,
    DiagnosticSeverity,
    DispatchStrategy,
    EntryPoint,
    GeneratedUnit,
    SynthesizedMethod,
)

logger = logging.getLogger(__name__)

# Diagnostic codes
NO_OBSERVABLE_PROPERTIES = "BIND002"
NO_BEFORE_CHANGE_SUPPORT = "BIND004"
DUPLICATE_METHOD_NAME = "BIND007"

_LOG_LEVELS = {
    DiagnosticSeverity.INFO: logging.INFO,
    DiagnosticSeverity.WARNING: logging.WARNING,
    DiagnosticSeverity.ERROR: logging.ERROR,
}


@dataclass
class CompilationContext:
    """Accumulation context for all artifacts of one call kind.

    Used by the pipeline synthesizer, binding composer and compiler driver
    to register what they produce.
    """

    kind: CallKind
    strategy: DispatchStrategy = DispatchStrategy.EXACT_TEXT
    methods: dict[str, SynthesizedMethod] = field(default_factory=dict)
    entry_points: list[EntryPoint] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def add_method(self, method: SynthesizedMethod) -> bool:
        """Add a synthesized method, deduplicate by name.

        The first method registered under a name wins; a later duplicate is
        reported and dropped.

        Returns:
            True if the method was added
        """
        existing = self.methods.setdefault(method.name, method)
        if existing is method:
            return True
        self.add_diagnostic(
            DUPLICATE_METHOD_NAME,
            f"Generated name {method.name} already used by the call site at "
            f"{existing.call_site.location.file_path}:{existing.call_site.location.line}",
            method.call_site.location,
        )
        return False

    def add_entry_point(self, entry_point: EntryPoint) -> None:
        self.entry_points.append(entry_point)

    def add_diagnostic(
        self,
        code: str,
        message: str,
        location: SourceLocation | None = None,
        severity: DiagnosticSeverity = DiagnosticSeverity.WARNING,
    ) -> Diagnostic:
        """Record a diagnostic once and log it."""
        diagnostic = Diagnostic(code=code, severity=severity, message=message, location=location)
        if diagnostic not in self.diagnostics:
            self.diagnostics.append(diagnostic)
            where = f" ({location.file_path}:{location.line})" if location else ""
            logger.log(_LOG_LEVELS[severity], f"{code}: {message}{where}")
        return diagnostic

    def to_unit(self) -> GeneratedUnit:
        """Freeze everything accumulated into a generated unit."""
        return GeneratedUnit(
            kind=self.kind,
            strategy=self.strategy,
            entry_points=tuple(self.entry_points),
            methods=dict(self.methods),
            diagnostics=tuple(self.diagnostics),
        )
