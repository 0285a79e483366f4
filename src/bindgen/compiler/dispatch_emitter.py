"""Dispatch table emission.

Each signature group becomes one entry point whose ordered cases recognize
the call site that invoked it and route to that call site's synthesized
method.
"""

from __future__ import annotations

from collections.abc import Mapping

from src.bindgen.compiler.grouping import TypeSignatureGroup
from src.bindgen.errors import BindgenError
from src.bindgen.ir import CallSite
from src.bindgen.naming import compute_path_suffix, normalize_lambda_text
from src.bindgen.plan import (
    DispatchCase,
    DispatchRule,
    DispatchStrategy,
    EntryPoint,
    EntryPointSignature,
    ExactTextRule,
    PositionalRule,
)


class DispatchEmitter:
    """Emits entry points for signature groups under one dispatch strategy.

    Usage:
        emitter = DispatchEmitter(DispatchStrategy.POSITIONAL)
        entry_point = emitter.emit(group, "when_changed", method_names, parameters)
    """

    def __init__(self, strategy: DispatchStrategy = DispatchStrategy.EXACT_TEXT) -> None:
        self.strategy = strategy

    def emit(
        self,
        group: TypeSignatureGroup,
        prefix: str,
        method_names: Mapping[CallSite, str],
        extra_parameters: tuple[str, ...] = (),
    ) -> EntryPoint:
        """Emit the entry point for one group.

        Args:
            group: Signature group; its representative defines the signature
            prefix: Method prefix of the call kind
            method_names: Synthesized method name of each member
            extra_parameters: Runtime parameters the group's methods accept

        Returns:
            Entry point with one case per member, in member order

        Raises:
            BindgenError: If a member has no synthesized method
        """
        cases = []
        for member in group.members:
            name = method_names.get(member)
            if name is None:
                raise BindgenError(
                    f"No synthesized method for call site at "
                    f"{member.location.file_path}:{member.location.line}"
                )
            cases.append(DispatchCase(rule=self.rule_for(member), method_name=name))

        representative = group.representative
        return EntryPoint(
            name=prefix,
            kind=representative.kind,
            signature=EntryPointSignature(
                owner_type=representative.owner_type,
                parameter_types=representative.leaf_types,
                result_type=representative.result_type,
                extra_parameters=extra_parameters,
                target_type=representative.target_type,
            ),
            cases=tuple(cases),
        )

    def rule_for(self, call_site: CallSite) -> DispatchRule:
        """Build the rule that recognizes a call site under this strategy."""
        match self.strategy:
            case DispatchStrategy.EXACT_TEXT:
                return ExactTextRule(
                    expression_texts=tuple(
                        normalize_lambda_text(t) for t in call_site.expression_texts
                    )
                )
            case DispatchStrategy.POSITIONAL:
                return PositionalRule(
                    line=call_site.location.line,
                    path_suffix=compute_path_suffix(call_site.location.file_path),
                )
        raise BindgenError(f"Unknown dispatch strategy: {self.strategy}")
