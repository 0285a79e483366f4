"""Call-site validator - checks the compiler's input contract.

Ensures every call site is shaped the way its call kind requires before any
plan is built. This catches extraction bugs where a call site carries the
wrong number of paths, argument texts or flags for its kind.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from src.bindgen.ir import CallKind, CallSite


@dataclass
class ValidationError:
    """A single validation error."""

    path: str  # Where in the input the error occurred
    message: str  # What's wrong


@dataclass
class ValidationResult:
    """Result of validating call sites."""

    errors: list[ValidationError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, path: str, message: str) -> None:
        self.errors.append(ValidationError(path=path, message=message))


class CallSiteValidator:
    """Validates one call site for internal consistency."""

    def __init__(self, call_site: CallSite, path: str = "call_site"):
        self.call_site = call_site
        self.path = path
        self.result = ValidationResult()

    def validate(self) -> ValidationResult:
        """Run all validations and return result."""
        cs = self.call_site

        if not cs.property_paths:
            self.result.add_error(f"{self.path}.property_paths", "At least one property path is required")
            return self.result

        if cs.expression_texts and len(cs.expression_texts) != len(cs.property_paths):
            self.result.add_error(
                f"{self.path}.expression_texts",
                f"Expected {len(cs.property_paths)} expression text(s), got {len(cs.expression_texts)}",
            )

        if cs.kind.is_binding:
            self._validate_binding()
        else:
            self._validate_observation()

        return self.result

    def _validate_observation(self) -> None:
        cs = self.call_site
        flags = cs.flags

        if flags.has_conversion:
            self.result.add_error(f"{self.path}.flags", f"{cs.kind.value} does not take a converter")
        if flags.has_scheduler:
            self.result.add_error(f"{self.path}.flags", f"{cs.kind.value} does not take a scheduler")
        if cs.target_type is not None:
            self.result.add_error(f"{self.path}.target_type", f"{cs.kind.value} has no target")

        if cs.kind == CallKind.WHEN_CHANGING and not flags.is_before_change:
            self.result.add_error(f"{self.path}.flags", "when_changing observes before-change notifications")
        if cs.kind != CallKind.WHEN_CHANGING and flags.is_before_change:
            self.result.add_error(
                f"{self.path}.flags", f"{cs.kind.value} observes after-change notifications only"
            )

        if cs.kind == CallKind.WHEN_ANY and not flags.has_selector:
            self.result.add_error(f"{self.path}.flags", "when_any requires a selector")

        if cs.kind == CallKind.WHEN_ANY_OBSERVABLE:
            for i, path in enumerate(cs.property_paths):
                if len(path) != 1:
                    self.result.add_error(
                        f"{self.path}.property_paths[{i}]",
                        f"Stream properties must be single-segment paths, got '{path.dotted}'",
                    )
            if len(cs.inner_types) != len(cs.property_paths):
                self.result.add_error(
                    f"{self.path}.inner_types",
                    f"Expected {len(cs.property_paths)} inner type(s), got {len(cs.inner_types)}",
                )
        elif cs.inner_types:
            self.result.add_error(f"{self.path}.inner_types", f"{cs.kind.value} observes no streams")

    def _validate_binding(self) -> None:
        cs = self.call_site
        flags = cs.flags

        if len(cs.property_paths) != 2:
            self.result.add_error(
                f"{self.path}.property_paths",
                f"{cs.kind.value} needs a source and a target path, got {len(cs.property_paths)} path(s)",
            )
        if not cs.target_type:
            self.result.add_error(f"{self.path}.target_type", f"{cs.kind.value} requires a target type")
        if flags.has_selector:
            self.result.add_error(
                f"{self.path}.flags", f"{cs.kind.value} takes a converter, not a selector"
            )
        if flags.is_before_change:
            self.result.add_error(
                f"{self.path}.flags", f"{cs.kind.value} observes after-change notifications only"
            )
        if cs.inner_types:
            self.result.add_error(f"{self.path}.inner_types", f"{cs.kind.value} observes no streams")


def validate_call_sites(call_sites: Iterable[CallSite]) -> ValidationResult:
    """Validate every call site and collect all errors into one result."""
    result = ValidationResult()
    for i, call_site in enumerate(call_sites):
        sub = CallSiteValidator(call_site, path=f"call_sites[{i}]").validate()
        result.errors.extend(sub.errors)
    return result
