"""
chartc compiler: Spec Tree, Resolution & Merge Engine, Data Transform Graph, Assembler.

Modules
- split, component, names: Component Split, Named Component, Name Scope.
- tree: the index-addressed Spec Tree.
- resolve: post-order component resolution and merge promotion.
- dataflow, data: per-view transform pipelines and the compile's datasets.
- marks, assemble: output emission.
- compiler: ``compile_spec``.
"""

from .compiler import compile_spec

__all__ = ["compile_spec"]
