"""Binding pipeline compiler.

Compiles resolved observe/bind call sites into statically dispatched
reactive pipelines for a change-notification data-binding library.

The compilation pipeline:
  1. CallSites + CapabilityTable → BindingCompiler → GeneratedUnit per call kind
  2. GeneratedUnit holds entry points (dispatch tables) and one synthesized
     plan per call site, keyed by a stable generated name
  3. runtime.GeneratedBindings plays a unit against live objects: it routes
     each call to its plan and materializes the plan into observables
"""

from .binding_compiler import BindingCompiler, compile_call_sites
from .config import GeneratorSettings, configure_logging
from .errors import BindgenError, MalformedCallSiteError, UnresolvedDispatchError
from .ir import (
    CallKind,
    CallSite,
    CallSiteFlags,
    CapabilityTable,
    PropertyPath,
    PropertyPathSegment,
    SourceLocation,
    TypeCapability,
)
from .plan import BindingPlan, DispatchStrategy, GeneratedUnit, PipelinePlan

__all__ = [
    "BindingCompiler",
    "compile_call_sites",
    "GeneratorSettings",
    "configure_logging",
    "BindgenError",
    "MalformedCallSiteError",
    "UnresolvedDispatchError",
    "CallKind",
    "CallSite",
    "CallSiteFlags",
    "CapabilityTable",
    "PropertyPath",
    "PropertyPathSegment",
    "SourceLocation",
    "TypeCapability",
    "BindingPlan",
    "DispatchStrategy",
    "GeneratedUnit",
    "PipelinePlan",
]
