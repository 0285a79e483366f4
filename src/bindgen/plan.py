"""Synthesized plans and generated units.

A ``PipelinePlan`` is the declarative shape of one observation pipeline: a
source stage followed by operator stages. A ``BindingPlan`` wires a source
and a target pipeline together. Both are plain data; the runtime
materializer turns them into live observables.

Like the call-site IR, every model here is frozen and serializable, and stage
polymorphism uses pydantic discriminated unions on ``type``.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from src.bindgen.ir import CallKind, CallSite, ObservationMode, PropertyPath, PropertyPathSegment, SourceLocation
from src.bindgen.naming import normalize_lambda_text, path_matches_suffix

# =============================================================================
# Enums
# =============================================================================


class BindingMode(str, Enum):
    """Binding shape produced by the composer."""

    ONE_WAY = "one_way"
    TWO_WAY = "two_way"
    TAGGED = "tagged"


class BindingOrigin(str, Enum):
    """Side of a tagged binding a change came from."""

    SOURCE = "source"
    TARGET = "target"


class DispatchStrategy(str, Enum):
    """How generated entry points recognize their call site.

    Chosen once per compilation target, never per call.
    """

    EXACT_TEXT = "exact_text"
    POSITIONAL = "positional"


class DiagnosticSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


# =============================================================================
# Source stages
# =============================================================================


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class WatchStage(_Frozen):
    """Subscribe to one property's notifications on the root object."""

    type: Literal["watch"] = "watch"
    segment: PropertyPathSegment
    mode: ObservationMode = ObservationMode.AFTER_CHANGE
    suppress_duplicates: bool = False


class ConstantReturnStage(_Frozen):
    """Read a property path once at subscription time and complete.

    Used when the owning type raises no notifications.
    """

    type: Literal["constant_return"] = "constant_return"
    segments: tuple[PropertyPathSegment, ...] = Field(min_length=1)


class CombineLatestStage(_Frozen):
    """Emit an aggregate of every input's latest value once all have produced one."""

    type: Literal["combine_latest"] = "combine_latest"
    inputs: tuple[PipelinePlan, ...] = Field(min_length=2)
    aggregate: Literal["tuple", "selector"] = "tuple"


class MergeStage(_Frozen):
    """Forward every value from every input in arrival order."""

    type: Literal["merge"] = "merge"
    inputs: tuple[PipelinePlan, ...] = Field(min_length=2)


# =============================================================================
# Operator stages
# =============================================================================


class ChainHop(_Frozen):
    """One step of a deep chain.

    ``observable`` is False when the hop's declaring type raises no
    notifications; the value is then read once per parent emission.
    """

    segment: PropertyPathSegment
    observable: bool = True


class ChainSwitchStage(_Frozen):
    """Re-subscribe to each hop whenever its parent value changes."""

    type: Literal["chain_switch"] = "chain_switch"
    hops: tuple[ChainHop, ...] = Field(min_length=1)
    mode: ObservationMode = ObservationMode.AFTER_CHANGE


class SelectStage(_Frozen):
    """Apply the runtime function passed as ``parameter``."""

    type: Literal["select"] = "select"
    parameter: str


class WrapObservedChangeStage(_Frozen):
    type: Literal["wrap_observed_change"] = "wrap_observed_change"
    property_name: str | None = None


class SwitchLatestInnerStage(_Frozen):
    """Flatten a stream of streams, following only the latest inner stream."""

    type: Literal["switch_latest_inner"] = "switch_latest_inner"


class DistinctFilterStage(_Frozen):
    type: Literal["distinct_filter"] = "distinct_filter"


class SkipStage(_Frozen):
    type: Literal["skip"] = "skip"
    count: int = Field(default=1, ge=0)


class TagStage(_Frozen):
    type: Literal["tag"] = "tag"
    origin: BindingOrigin


class ObserveOnStage(_Frozen):
    """Deliver notifications through the scheduler passed as ``parameter``."""

    type: Literal["observe_on"] = "observe_on"
    parameter: str = "scheduler"


Stage = Annotated[
    Union[
        WatchStage,
        ConstantReturnStage,
        CombineLatestStage,
        MergeStage,
        ChainSwitchStage,
        SelectStage,
        WrapObservedChangeStage,
        SwitchLatestInnerStage,
        DistinctFilterStage,
        SkipStage,
        TagStage,
        ObserveOnStage,
    ],
    Field(discriminator="type"),
]

# =============================================================================
# Plans
# =============================================================================


class PipelinePlan(_Frozen):
    """Ordered stages of one observation pipeline; the first is a source stage."""

    type: Literal["pipeline"] = "pipeline"
    stages: tuple[Stage, ...] = Field(min_length=1)

    @property
    def source(self) -> Stage:
        return self.stages[0]

    @property
    def degraded(self) -> bool:
        """True if any part of the pipeline reads a value instead of watching it."""
        for stage in self.stages:
            if isinstance(stage, ConstantReturnStage):
                return True
            if isinstance(stage, (CombineLatestStage, MergeStage)):
                if any(p.degraded for p in stage.inputs):
                    return True
            if isinstance(stage, ChainSwitchStage):
                if not all(h.observable for h in stage.hops):
                    return True
        return False

    def then(self, *stages: Stage) -> PipelinePlan:
        """Return a new plan with ``stages`` appended."""
        return PipelinePlan(stages=self.stages + tuple(stages))


class BindingPlan(_Frozen):
    """Source and target pipelines plus the stages that connect them.

    ``forward`` runs on the source pipeline before each write to
    ``target_path``; ``backward`` runs on the target pipeline before each
    write to ``source_path``. One-way plans leave the target side empty.
    """

    type: Literal["binding"] = "binding"
    mode: BindingMode
    source: PipelinePlan
    forward: tuple[Stage, ...] = ()
    target_path: PropertyPath
    target: PipelinePlan | None = None
    backward: tuple[Stage, ...] = ()
    source_path: PropertyPath | None = None
    source_tag: TagStage | None = None
    target_tag: TagStage | None = None

    @property
    def tag_and_merge(self) -> bool:
        return self.source_tag is not None and self.target_tag is not None

    @property
    def degraded(self) -> bool:
        return self.source.degraded or (self.target is not None and self.target.degraded)


Plan = Annotated[Union[PipelinePlan, BindingPlan], Field(discriminator="type")]

CombineLatestStage.model_rebuild()
MergeStage.model_rebuild()


# =============================================================================
# Dispatch
# =============================================================================


class ExactTextRule(_Frozen):
    """Match when every captured argument text equals the recorded text."""

    type: Literal["exact_text"] = "exact_text"
    expression_texts: tuple[str, ...]

    def matches(self, expression_texts: tuple[str, ...] | None, file_path: str, line: int) -> bool:
        if expression_texts is None or len(expression_texts) != len(self.expression_texts):
            return False
        return all(
            normalize_lambda_text(actual) == normalize_lambda_text(expected)
            for actual, expected in zip(expression_texts, self.expression_texts)
        )


class PositionalRule(_Frozen):
    """Match on caller line and the trailing two segments of the caller path."""

    type: Literal["positional"] = "positional"
    line: int
    path_suffix: str

    def matches(self, expression_texts: tuple[str, ...] | None, file_path: str, line: int) -> bool:
        return line == self.line and path_matches_suffix(file_path, self.path_suffix)


DispatchRule = Annotated[Union[ExactTextRule, PositionalRule], Field(discriminator="type")]


class DispatchCase(_Frozen):
    rule: DispatchRule
    method_name: str


class EntryPointSignature(_Frozen):
    """Parameter shape shared by every call site in a group."""

    owner_type: str
    parameter_types: tuple[str, ...]
    result_type: str
    extra_parameters: tuple[str, ...] = ()
    target_type: str | None = None


class EntryPoint(_Frozen):
    """One generated public method: a signature and its ordered dispatch cases."""

    name: str
    kind: CallKind
    signature: EntryPointSignature
    cases: tuple[DispatchCase, ...] = Field(min_length=1)


# =============================================================================
# Generated output
# =============================================================================


class SynthesizedMethod(_Frozen):
    """Private per-call-site method body, keyed by its stable name."""

    name: str
    call_site: CallSite
    plan: Plan
    parameters: tuple[str, ...] = ()


class Diagnostic(_Frozen):
    code: str
    severity: DiagnosticSeverity = DiagnosticSeverity.WARNING
    message: str
    location: SourceLocation | None = None


class GeneratedUnit(_Frozen):
    """Everything synthesized for one call kind."""

    kind: CallKind
    strategy: DispatchStrategy
    entry_points: tuple[EntryPoint, ...]
    methods: dict[str, SynthesizedMethod]
    diagnostics: tuple[Diagnostic, ...] = ()
