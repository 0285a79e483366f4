"""Base visitor class for pipeline plan traversal."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from src.bindgen.plan import (
        CombineLatestStage,
        MergeStage,
        PipelinePlan,
        Stage,
    )

T = TypeVar("T")


class PlanVisitor(ABC, Generic[T]):
    """Abstract visitor for pipeline plans.

    A plan is folded left to right: each stage is visited with the result of
    the stage before it (``None`` for the source stage). The base class
    handles traversal into the nested plans of CombineLatest and Merge
    stages.

    Type parameter T is the return type of visit methods.

    Usage:
        class StageCounter(PlanVisitor[int]):
            def visit_default(self, stage, upstream):
                return (upstream or 0) + 1

            def combine_latest(self, stage, children):
                return sum(children) + 1

            def combine_merge(self, stage, children):
                return sum(children) + 1
    """

    def visit_plan(self, plan: PipelinePlan) -> T:
        """Visit every stage of a plan in order and return the final result."""
        upstream: T | None = None
        for stage in plan.stages:
            upstream = self.visit(stage, upstream)
        return upstream

    def visit_stages(self, stages: tuple[Stage, ...], upstream: T) -> T:
        """Visit trailing operator stages on top of an existing result."""
        for stage in stages:
            upstream = self.visit(stage, upstream)
        return upstream

    def visit(self, stage: Stage, upstream: T | None) -> T:
        """Dispatch to the appropriate visit method.

        Looks for visit_{ClassName} method, falls back to visit_default.
        """
        method_name = f"visit_{type(stage).__name__}"
        visitor = getattr(self, method_name, self.visit_default)
        return visitor(stage, upstream)

    @abstractmethod
    def visit_default(self, stage: Stage, upstream: T | None) -> T:
        """Default handler for stage types without specific visit methods."""
        ...

    # Composite stages - traverse nested plans and combine results

    def visit_CombineLatestStage(self, stage: CombineLatestStage, upstream: T | None) -> T:
        """Visit CombineLatestStage: visit every input plan, then combine."""
        children = [self.visit_plan(p) for p in stage.inputs]
        return self.combine_latest(stage, children)

    def visit_MergeStage(self, stage: MergeStage, upstream: T | None) -> T:
        """Visit MergeStage: visit every input plan, then combine."""
        children = [self.visit_plan(p) for p in stage.inputs]
        return self.combine_merge(stage, children)

    @abstractmethod
    def combine_latest(self, original: CombineLatestStage, children: list[T]) -> T:
        """Combine results from CombineLatestStage inputs."""
        ...

    @abstractmethod
    def combine_merge(self, original: MergeStage, children: list[T]) -> T:
        """Combine results from MergeStage inputs."""
        ...
