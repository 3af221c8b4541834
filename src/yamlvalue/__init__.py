"""
yamlvalue: YAML documents as order-preserving canonical values.

A document whose root is a mapping or a sequence is decoded into a small,
closed value model (None, bool, number, str, OrderedMap, list) that keeps
mapping keys in document order. Canonical values can be rendered back as
compact single-line text for display.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - The consumer of the canonical values
    - File selection, terminals, or other I/O setup
    - Re-encoding to YAML syntax

PyYAML is used as a black-box parser only.
"""

from yamlvalue.values import OrderedMap, ValueKind, value_kind
from yamlvalue.decoder import (
    Decoder,
    DecodeLimits,
    DecodeError,
    SourceReadError,
    DocumentTooLargeError,
    YAMLSyntaxError,
    RootShapeError,
    NormalizationError,
    parse,
    parse_string,
    parse_file,
    normalize_node,
    canonicalize,
)
from yamlvalue.stringify import stringify, quote

__version__ = "0.1.0"
