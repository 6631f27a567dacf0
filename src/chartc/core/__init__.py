"""
Core package aggregator for chartc contracts (grammar, schema, constants, errors, hashing).

## Contracts (single source of truth)
- Grammar: node kinds, channels, property families, resolve modes, `var_name`.
- Schema: pydantic models of the normalized input spec.
- Constants: family property sets and compile defaults.
- Errors: SpecError for input violations, CompileError family for fatal compile conditions.
- Hashing: canonical JSON fingerprints used for transform-node deduplication.

## Notes
- Zero-IO policy: stdlib + pydantic (+ polars for inline frames) only.
- chartc.compile depends on this package; never the other way round.

## Examples
```python
from chartc.core.schema import parse_spec
top = parse_spec({"mark": "geoshape", "data": {"url": "world.json"}})
top.view.has_projection  # True
```
"""
