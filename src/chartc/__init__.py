"""
chartc: compile hierarchical chart specs into runtime rendering specs.

Examples
--------
>>> import chartc
>>> out = chartc.compile_spec({"mark": "geoshape", "data": {"url": "world.json"}})
>>> out["projections"][0]["fit"]
{'signal': "data('source_0')"}
"""

from chartc.compile import compile_spec
from chartc.config import CompileSettings

__all__ = ["compile_spec", "CompileSettings"]
