"""indicate — query a Rust package's dependency tree as a graph.

Packages from ``cargo metadata`` are the backbone; repository info from
GitHub, RustSec advisories and cargo-geiger unsafe-usage statistics hang off
them as lazily resolved edges.
"""

__version__ = "0.1.0"
