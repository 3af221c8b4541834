"""
YAML Decoder (Raw Input -> Canonical Value Model).

Buffers a YAML document, decides whether its root is a mapping or a
sequence, and rewrites the whole tree into canonical values.

Pipeline:
    1. Decoder.load()      read the source once into a byte buffer
    2. Decoder.is_list()   compose the buffer once into PyYAML's node graph,
                           classify the root node, cache both
    3. parse()             walk the node graph depth-first, producing
                           OrderedMap / list / scalars

Key order comes from the composed MappingNode, whose pairs are kept in
document order. Native dict iteration is never the source of key order.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, List, Optional, Set, Union

import yaml
from yaml.constructor import SafeConstructor
from yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

from yamlvalue.values import OrderedMap, value_kind

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 50 * 1024 * 1024  # 50 MB
DEFAULT_MAX_DEPTH = 100

NULL_TAG = "tag:yaml.org,2002:null"
MAP_TAG = "tag:yaml.org,2002:map"
SEQ_TAG = "tag:yaml.org,2002:seq"
TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"

SCALAR_TAGS = {
    NULL_TAG,
    "tag:yaml.org,2002:bool",
    "tag:yaml.org,2002:int",
    "tag:yaml.org,2002:float",
    "tag:yaml.org,2002:str",
}

Source = Union[bytes, bytearray, str, IO[bytes], IO[str]]
CanonicalRoot = Union[OrderedMap, List[Any]]


class DecodeError(Exception):
    """Base class for every decoding failure."""
    pass


class SourceReadError(DecodeError):
    """Raised when the input source cannot be read."""
    pass


class DocumentTooLargeError(DecodeError):
    """Raised when the buffered document exceeds DecodeLimits.max_bytes."""
    pass


class YAMLSyntaxError(DecodeError):
    """Raised when the YAML parser rejects the document."""
    pass


class RootShapeError(DecodeError):
    """Raised when the document root is neither a mapping nor a sequence."""
    pass


class NormalizationError(DecodeError):
    """Raised when a value cannot be expressed in the canonical model."""
    pass


@dataclass(frozen=True)
class DecodeLimits:
    """
    Resource limits applied while decoding.

    Properties:
        max_bytes: Largest accepted document, in bytes
        max_depth: Deepest accepted container nesting (root is depth 0)
    """

    max_bytes: int = DEFAULT_MAX_BYTES
    max_depth: int = DEFAULT_MAX_DEPTH


class _CanonicalLoader(yaml.SafeLoader):
    """Safe loader whose plain scalars never resolve to timestamps."""
    pass


# yaml_implicit_resolvers is a class-level dict; copy it so SafeLoader is untouched.
_CanonicalLoader.yaml_implicit_resolvers = copy.deepcopy(yaml.SafeLoader.yaml_implicit_resolvers)
for _first, _resolvers in list(_CanonicalLoader.yaml_implicit_resolvers.items()):
    _CanonicalLoader.yaml_implicit_resolvers[_first] = [
        r for r in _resolvers if r[0] != TIMESTAMP_TAG
    ]


class Decoder:
    """
    Buffers one YAML document and classifies its root.

    The root node and the classification are computed lazily on the first
    is_list() call and cached. Later calls return the cached answer without
    composing again.

    Not safe to share between threads without external locking.
    """

    def __init__(self, source: Optional[Source] = None, limits: Optional[DecodeLimits] = None):
        self.limits = limits or DecodeLimits()
        self.raw = b""
        self._is_list: Optional[bool] = None
        self._root: Optional[Node] = None
        if source is not None:
            self.load(source)

    def load(self, source: Source) -> None:
        """
        Read the whole source into the internal buffer. Does not parse.

        Args:
            source: bytes, str, or any object with a read() method

        Raises:
            SourceReadError: If reading the source fails
            DocumentTooLargeError: If the document exceeds limits.max_bytes
        """
        if isinstance(source, (bytes, bytearray)):
            data = bytes(source)
        elif isinstance(source, str):
            data = source.encode("utf-8")
        else:
            try:
                data = source.read(self.limits.max_bytes + 1)
            except OSError as e:
                raise SourceReadError(f"Failed to read YAML source: {e}") from e
            if isinstance(data, str):
                data = data.encode("utf-8")

        if len(data) > self.limits.max_bytes:
            raise DocumentTooLargeError(
                f"YAML document exceeds {self.limits.max_bytes} bytes"
            )

        self.raw = data
        self._is_list = None
        self._root = None
        logger.debug(f"Buffered YAML document ({len(data)} bytes)")

    def is_list(self) -> bool:
        """
        Report whether the document root is a sequence.

        An empty document is treated as an empty sequence; a root that is an
        explicit null is treated as an empty mapping.

        Returns:
            True for a sequence root, False for a mapping root

        Raises:
            YAMLSyntaxError: If the document is not valid YAML
            RootShapeError: If the root is a non-null scalar
        """
        if self._is_list is not None:
            return self._is_list

        node = self._compose_root()
        if isinstance(node, SequenceNode):
            is_list = True
        elif isinstance(node, MappingNode):
            is_list = False
        elif node is None:
            is_list = True
        elif node.tag == NULL_TAG:
            node = None
            is_list = False
        else:
            raise RootShapeError(
                f"Document root must be a mapping or a sequence, got scalar {node.value!r}"
            )

        self._root = node
        self._is_list = is_list
        logger.debug(f"Classified YAML root as {'list' if is_list else 'dict'}")
        return is_list

    @property
    def root_node(self) -> Optional[Node]:
        """Composed root node; None until classified or for an empty document."""
        return self._root

    def _compose_root(self) -> Optional[Node]:
        loader = _CanonicalLoader(self.raw)
        try:
            return loader.get_single_node()
        except yaml.YAMLError as e:
            raise YAMLSyntaxError(f"Invalid YAML document: {e}") from e
        except RecursionError as e:
            raise NormalizationError("Document nested too deeply to compose") from e
        finally:
            loader.dispose()


class _NodeNormalizer:
    """Depth-first rewrite of composed nodes or Python structures into canonical values."""

    def __init__(self, limits: DecodeLimits):
        self.limits = limits
        self.constructor = SafeConstructor()
        self._active: Set[int] = set()

    def normalize(self, node: Node, depth: int = 0) -> Any:
        if isinstance(node, ScalarNode):
            return self._scalar(node)

        if depth >= self.limits.max_depth:
            raise NormalizationError(
                f"Nesting deeper than {self.limits.max_depth} levels{_where(node)}"
            )
        # Aliases share node objects; a node already on the stack is a cycle
        if id(node) in self._active:
            raise NormalizationError(f"Recursive alias{_where(node)}")

        self._active.add(id(node))
        try:
            if isinstance(node, MappingNode):
                return self._mapping(node, depth)
            if isinstance(node, SequenceNode):
                return self._sequence(node, depth)
        finally:
            self._active.discard(id(node))
        raise NormalizationError(f"Unsupported node {type(node).__name__}")

    def _mapping(self, node: MappingNode, depth: int) -> OrderedMap:
        if node.tag != MAP_TAG:
            raise NormalizationError(f"Unsupported mapping tag {node.tag}{_where(node)}")
        try:
            self.constructor.flatten_mapping(node)
        except yaml.YAMLError as e:
            raise NormalizationError(f"Invalid merge key: {e}") from e

        result = OrderedMap()
        for key_node, value_node in node.value:
            result.set(self._key(key_node), self.normalize(value_node, depth + 1))
        return result

    def _sequence(self, node: SequenceNode, depth: int) -> List[Any]:
        if node.tag != SEQ_TAG:
            raise NormalizationError(f"Unsupported sequence tag {node.tag}{_where(node)}")
        return [self.normalize(item, depth + 1) for item in node.value]

    def _key(self, node: Node) -> str:
        if not isinstance(node, ScalarNode):
            raise NormalizationError(f"Mapping keys must be scalars{_where(node)}")
        if node.tag not in SCALAR_TAGS:
            raise NormalizationError(f"Unsupported key tag {node.tag}{_where(node)}")
        # Non-string keys (1, true, ~) keep their source text
        return node.value

    def _scalar(self, node: ScalarNode) -> Any:
        if node.tag not in SCALAR_TAGS:
            raise NormalizationError(f"Unsupported scalar tag {node.tag}{_where(node)}")
        try:
            return self.constructor.construct_object(node, deep=True)
        except yaml.YAMLError as e:
            raise NormalizationError(f"Invalid scalar {node.value!r}: {e}") from e

    def canonicalize(self, value: Any, depth: int = 0) -> Any:
        if isinstance(value, (dict, OrderedMap, list, tuple)):
            if depth >= self.limits.max_depth:
                raise NormalizationError(f"Nesting deeper than {self.limits.max_depth} levels")
            if id(value) in self._active:
                raise NormalizationError("Recursive structure")
            self._active.add(id(value))
            try:
                if isinstance(value, (dict, OrderedMap)):
                    result = OrderedMap()
                    for key, item in value.items():
                        if not isinstance(key, str):
                            raise NormalizationError(f"Mapping keys must be strings, got {key!r}")
                        result.set(key, self.canonicalize(item, depth + 1))
                    return result
                return [self.canonicalize(item, depth + 1) for item in value]
            finally:
                self._active.discard(id(value))

        if value_kind(value) is None:
            raise NormalizationError(f"Unsupported value type: {type(value).__name__}")
        return value


def _where(node: Node) -> str:
    mark = node.start_mark
    if mark is None:
        return ""
    return f" at line {mark.line + 1}, column {mark.column + 1}"


def normalize_node(node: Node, limits: Optional[DecodeLimits] = None) -> Any:
    """
    Rewrite a composed YAML node (and everything below it) into canonical values.

    Mappings become OrderedMap in document order, sequences become lists,
    scalars become None/bool/int/float/str. The result shares nothing with
    the node graph; aliased nodes are expanded into independent copies.

    Args:
        node: Composed PyYAML node
        limits: Optional decode limits (depth is enforced here)

    Returns:
        Canonical value

    Raises:
        NormalizationError: On the first child that cannot be normalized
    """
    try:
        return _NodeNormalizer(limits or DecodeLimits()).normalize(node)
    except RecursionError as e:
        raise NormalizationError("Document nested too deeply to normalize") from e


def canonicalize(value: Any, limits: Optional[DecodeLimits] = None) -> Any:
    """
    Rewrite an already-decoded Python structure into canonical values.

    dicts become OrderedMap in their iteration order, lists and tuples become
    lists, canonical scalars are returned unchanged.

    Raises:
        NormalizationError: For non-string keys or values outside the model
    """
    try:
        return _NodeNormalizer(limits or DecodeLimits()).canonicalize(value)
    except RecursionError as e:
        raise NormalizationError("Structure nested too deeply to normalize") from e


def parse(decoder: Decoder) -> CanonicalRoot:
    """
    Decode a buffered document into a canonical OrderedMap or list.

    Args:
        decoder: Decoder holding the buffered document

    Returns:
        OrderedMap for a mapping (or null) root, list for a sequence (or
        empty) root

    Raises:
        DecodeError: Any subclass, propagated unchanged; no partial result
    """
    is_list = decoder.is_list()
    if decoder.root_node is None:
        return [] if is_list else OrderedMap()
    return normalize_node(decoder.root_node, decoder.limits)


def parse_string(content: Union[str, bytes], limits: Optional[DecodeLimits] = None) -> CanonicalRoot:
    """Decode YAML text (or bytes) into canonical values."""
    return parse(Decoder(content, limits=limits))


def parse_file(filepath: Union[str, Path], limits: Optional[DecodeLimits] = None) -> CanonicalRoot:
    """
    Decode a YAML file into canonical values.

    Raises:
        SourceReadError: If the file cannot be opened or read
        DecodeError: For any decoding failure
    """
    try:
        with open(filepath, "rb") as f:
            decoder = Decoder(f, limits=limits)
    except OSError as e:
        raise SourceReadError(f"YAML file could not be read: {filepath}") from e
    return parse(decoder)


__all__ = [
    "Decoder",
    "DecodeLimits",
    "DecodeError",
    "SourceReadError",
    "DocumentTooLargeError",
    "YAMLSyntaxError",
    "RootShapeError",
    "NormalizationError",
    "parse",
    "parse_string",
    "parse_file",
    "normalize_node",
    "canonicalize",
]
