"""BindingCompiler: compiles resolved call sites into generated units.

Uses building blocks:
- CallSiteValidator for the input contract
- CompilationContext for state accumulation
- Compiler package for grouping, synthesis, composition and dispatch
- ParameterCollector visitor for each plan's runtime parameters

Compilation Flow:
    CallSites + CapabilityTable -> BindingCompiler -> {CallKind: GeneratedUnit}

For each call kind with at least one call site:
1. Group call sites by type signature (group_by_signature)
2. For each member, compute its stable method name
3. Build the member's plan via the call kind's registered composer operation
4. Collect the plan's runtime parameters (ParameterCollector)
5. Register the synthesized method (first name wins)
6. Emit the group's entry point with ordered dispatch cases
7. Freeze the context into a GeneratedUnit
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from src.bindgen.callsite_validator import ValidationResult, validate_call_sites
from src.bindgen.compiler import (
    BindingComposer,
    CompilationContext,
    DispatchEmitter,
    PipelineSynthesizer,
    generate_method_name,
    group_by_signature,
)
from src.bindgen.config import GeneratorSettings
from src.bindgen.errors import MalformedCallSiteError
from src.bindgen.ir import CallKind, CallSite, CapabilityTable
from src.bindgen.plan import GeneratedUnit, SynthesizedMethod
from src.bindgen.registries import get_call_kind_spec
from src.bindgen.visitors import collect_parameters

logger = logging.getLogger(__name__)


class BindingCompiler:
    """Compiles call sites into dispatch tables and synthesized plans.

    Example:
        compiler = BindingCompiler(capabilities)
        units = compiler.compile(call_sites)
        unit = units[CallKind.WHEN_CHANGED]
    """

    def __init__(
        self,
        capabilities: CapabilityTable,
        settings: GeneratorSettings | None = None,
    ) -> None:
        """Initialize compiler.

        Args:
            capabilities: Notification capability of every known type
            settings: Generator settings; defaults to exact-text dispatch
        """
        self.capabilities = capabilities
        self.settings = settings or GeneratorSettings()

    def compile(self, call_sites: Iterable[CallSite]) -> dict[CallKind, GeneratedUnit]:
        """Compile every call kind present in the input.

        Args:
            call_sites: Resolved call sites of any kinds

        Returns:
            Generated unit per call kind, in call kind declaration order.
            Kinds without call sites are omitted.

        Raises:
            MalformedCallSiteError: If any call site is malformed
        """
        call_sites = list(call_sites)
        self._validate(call_sites)

        by_kind: dict[CallKind, list[CallSite]] = {}
        for call_site in call_sites:
            by_kind.setdefault(call_site.kind, []).append(call_site)

        units: dict[CallKind, GeneratedUnit] = {}
        for kind in CallKind:
            if kind in by_kind:
                units[kind] = self._compile_kind(kind, by_kind[kind])
        return units

    def compile_kind(self, kind: CallKind, call_sites: Iterable[CallSite]) -> GeneratedUnit | None:
        """Compile the call sites of one kind.

        Args:
            kind: Call kind to compile
            call_sites: Call sites; all must be of ``kind``

        Returns:
            Generated unit, or None if there are no call sites

        Raises:
            MalformedCallSiteError: If any call site is malformed or of
                another kind
        """
        call_sites = list(call_sites)
        if not call_sites:
            return None
        self._validate(call_sites)
        wrong = [i for i, cs in enumerate(call_sites) if cs.kind != kind]
        if wrong:
            result = ValidationResult()
            for i in wrong:
                result.add_error(
                    f"call_sites[{i}].kind",
                    f"Expected {kind.value}, got {call_sites[i].kind.value}",
                )
            raise MalformedCallSiteError(result.errors)
        return self._compile_kind(kind, call_sites)

    def _validate(self, call_sites: list[CallSite]) -> None:
        result = validate_call_sites(call_sites)
        if not result.is_valid:
            for error in result.errors:
                logger.error(f"Malformed call site at {error.path}: {error.message}")
            raise MalformedCallSiteError(result.errors)

    def _compile_kind(self, kind: CallKind, call_sites: list[CallSite]) -> GeneratedUnit:
        spec = get_call_kind_spec(kind)
        ctx = CompilationContext(kind=kind, strategy=self.settings.dispatch_strategy)
        composer = BindingComposer(PipelineSynthesizer(self.capabilities, ctx))
        emitter = DispatchEmitter(self.settings.dispatch_strategy)

        logger.info(f"Compiling {len(call_sites)} {kind.value} call site(s)")

        groups = group_by_signature(call_sites)
        for group in groups:
            method_names: dict[CallSite, str] = {}
            extra_parameters: tuple[str, ...] = ()
            for member in group.members:
                name = generate_method_name(
                    spec.method_prefix,
                    member.owner_type,
                    member.location.file_path,
                    member.location.line,
                    member.discriminator,
                )
                plan = spec.build(composer, member)
                parameters = collect_parameters(plan)
                if member is group.representative:
                    extra_parameters = parameters
                method = SynthesizedMethod(
                    name=name, call_site=member, plan=plan, parameters=parameters
                )
                ctx.add_method(method)
                method_names.setdefault(member, name)
                logger.debug(
                    f"Synthesized {name} for {member.owner_type} "
                    f"({member.location.file_path}:{member.location.line})"
                )
            ctx.add_entry_point(
                emitter.emit(group, spec.method_prefix, method_names, extra_parameters)
            )

        unit = ctx.to_unit()
        logger.info(
            f"Compiled {kind.value}: {len(unit.entry_points)} entry point(s), "
            f"{len(unit.methods)} method(s), {len(unit.diagnostics)} diagnostic(s)"
        )
        return unit


def compile_call_sites(
    call_sites: Iterable[CallSite],
    capabilities: CapabilityTable,
    settings: GeneratorSettings | None = None,
) -> dict[CallKind, GeneratedUnit]:
    """Convenience function to compile call sites.

    Args:
        call_sites: Resolved call sites of any kinds
        capabilities: Notification capability of every known type
        settings: Generator settings

    Returns:
        Generated unit per call kind present in the input
    """
    return BindingCompiler(capabilities, settings).compile(call_sites)
