"""
Benchmark suite for transit_reader decoding performance.

Compares Transit decoding against the raw parse of the same bytes by:
- Python standard library json
- orjson (C-optimized)
- ujson (ultra-fast JSON)
- msgpack

The difference is the cost of the Transit layer: cache resolution, tag
dispatch and map-as-array rebuilding. Measures speed and memory usage.
"""
