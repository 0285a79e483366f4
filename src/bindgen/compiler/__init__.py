"""Compiler package for binding generation.

Phases, run once per call kind:
1. grouping             - Partition call sites by type signature
2. pipeline_synthesizer - Build observation pipelines from property paths
3. binding_composer     - Build binding/observed-change/stream plans on top
4. dispatch_emitter     - Emit one entry point per group with ordered cases

Names come from hasher; all phases accumulate artifacts into
CompilationContext.
"""

from src.bindgen.compiler.binding_composer import BindingComposer
from src.bindgen.compiler.context import CompilationContext
from src.bindgen.compiler.dispatch_emitter import DispatchEmitter
from src.bindgen.compiler.grouping import (
    SignatureKey,
    TypeSignatureGroup,
    group_by_signature,
    signature_key,
)
from src.bindgen.compiler.hasher import (
    compute_stable_suffix,
    generate_method_name,
    stable_string_hash,
)
from src.bindgen.compiler.pipeline_synthesizer import PipelineSynthesizer

__all__ = [
    "BindingComposer",
    "CompilationContext",
    "DispatchEmitter",
    "PipelineSynthesizer",
    "SignatureKey",
    "TypeSignatureGroup",
    "compute_stable_suffix",
    "generate_method_name",
    "group_by_signature",
    "signature_key",
    "stable_string_hash",
]
