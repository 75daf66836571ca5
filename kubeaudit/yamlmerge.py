"""Merge an autofixed YAML document back into its original layout.

Documents are held as a tree of :class:`Node` objects, much like a YAML
representation graph. Merging keeps the order, styles and comment fields of
the original nodes while taking the content of the fixed document. Comment
fields are carried on nodes built in code; they are not read from YAML text,
nor written back to it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

import yaml
import yaml.resolver

_log = logging.getLogger(__name__)

STR_TAG = "!!str"
SEQ_TAG = "!!seq"
MAP_TAG = "!!map"

_TAG_PREFIX = "tag:yaml.org,2002:"
_SHORT_PREFIX = "!!"
_RESOLVER = yaml.resolver.Resolver()


class MergeError(ValueError):
    """Raised when YAML cannot be parsed, merged or written."""


class NodeKind(Enum):
    """The kind of a YAML node."""

    DOCUMENT = 1
    SEQUENCE = 2
    MAPPING = 4
    SCALAR = 8


@dataclass
class Node:
    """A YAML node.

    A mapping holds its keys and values alternately in ``content``. ``style``
    is the quoting style of a scalar, or the flow flag of a collection.
    ``line`` and ``column`` are 1-based positions in the parsed text.
    """

    kind: NodeKind
    tag: str = ""
    value: str = ""
    content: list[Node] = field(default_factory=list)
    style: str | bool | None = None
    head_comment: str = ""
    line_comment: str = ""
    foot_comment: str = ""
    line: int = 0
    column: int = 0


def _short_tag(tag: str | None) -> str:
    if not tag:
        return ""
    if tag.startswith(_TAG_PREFIX):
        return _SHORT_PREFIX + tag[len(_TAG_PREFIX):]
    return tag


def _long_tag(tag: str) -> str:
    if tag.startswith(_SHORT_PREFIX):
        return _TAG_PREFIX + tag[len(_SHORT_PREFIX):]
    return tag


def _from_yaml(node: yaml.Node, memo: dict[int, Node]) -> Node:
    known = memo.get(id(node))
    if known is not None:
        return known
    if isinstance(node, yaml.ScalarNode):
        result = Node(NodeKind.SCALAR, tag=_short_tag(node.tag), value=node.value, style=node.style)
    elif isinstance(node, yaml.SequenceNode):
        result = Node(NodeKind.SEQUENCE, tag=_short_tag(node.tag), style=node.flow_style)
    elif isinstance(node, yaml.MappingNode):
        result = Node(NodeKind.MAPPING, tag=_short_tag(node.tag), style=node.flow_style)
    else:
        raise MergeError(f"unexpected yaml node {type(node).__name__}")
    if node.start_mark is not None:
        result.line = node.start_mark.line + 1
        result.column = node.start_mark.column + 1
    memo[id(node)] = result
    if isinstance(node, yaml.SequenceNode):
        result.content.extend(_from_yaml(item, memo) for item in node.value)
    elif isinstance(node, yaml.MappingNode):
        for key, val in node.value:
            result.content.append(_from_yaml(key, memo))
            result.content.append(_from_yaml(val, memo))
    return result


def _to_yaml(node: Node, memo: dict[int, yaml.Node]) -> yaml.Node:
    known = memo.get(id(node))
    if known is not None:
        return known
    if node.kind is NodeKind.SCALAR:
        tag = _long_tag(node.tag) if node.tag else _RESOLVER.resolve(
            yaml.ScalarNode, node.value, (True, False)
        )
        style = node.style if isinstance(node.style, str) else None
        result: yaml.Node = yaml.ScalarNode(tag, node.value, style=style)
        memo[id(node)] = result
        return result
    flow = node.style if isinstance(node.style, bool) else None
    if node.kind is NodeKind.SEQUENCE:
        sequence = yaml.SequenceNode(_long_tag(node.tag or SEQ_TAG), [], flow_style=flow)
        memo[id(node)] = sequence
        sequence.value.extend(_to_yaml(item, memo) for item in node.content)
        return sequence
    if node.kind is NodeKind.MAPPING:
        mapping = yaml.MappingNode(_long_tag(node.tag or MAP_TAG), [], flow_style=flow)
        memo[id(node)] = mapping
        mapping.value.extend(
            (_to_yaml(key, memo), _to_yaml(val, memo)) for key, val in _pairs(node)
        )
        return mapping
    raise MergeError(f"cannot write a {node.kind.name.lower()} node inside a document")


def parse(data: bytes | str | None) -> Node:
    """Parse the first YAML document in ``data`` into a document node."""
    if data is None:
        data = b""
    if isinstance(data, (bytes, bytearray)):
        try:
            text = bytes(data).decode("utf-8")
        except UnicodeDecodeError as err:
            raise MergeError(f"invalid yaml encoding: {err}") from err
    else:
        text = data
    document = Node(NodeKind.DOCUMENT, line=1, column=1)
    try:
        root = next(iter(yaml.compose_all(text, Loader=yaml.SafeLoader)), None)
    except yaml.YAMLError as err:
        raise MergeError(f"invalid yaml: {err}") from err
    if root is not None:
        document.content.append(_from_yaml(root, {}))
    return document


def dump(node: Node) -> bytes:
    """Write a node (or a document node) as block-style YAML with indent 2."""
    root = node
    if node.kind is NodeKind.DOCUMENT:
        if not node.content:
            return b""
        root = node.content[0]
    try:
        text = yaml.serialize(
            _to_yaml(root, {}),
            Dumper=yaml.SafeDumper,
            indent=2,
            width=2**31 - 1,
            allow_unicode=True,
        )
    except yaml.YAMLError as err:
        raise MergeError(f"error marshaling merged yaml: {err}") from err
    return text.encode("utf-8")


def _unmarshal(data: bytes | str | None) -> Node:
    document = parse(data)
    if len(document.content) != 1:
        raise MergeError(
            f"expected original yaml document to have one child but got {len(document.content)}"
        )
    if document.content[0].kind is not NodeKind.MAPPING:
        raise MergeError(
            "expected mapping node as child of original yaml document node but got "
            f"{document.content[0].kind.name.lower()}"
        )
    return document


def merge(orig_data: bytes | str | None, fixed_data: bytes | str | None) -> bytes:
    """Return the fixed YAML laid out with the order and styles of the original."""
    orig = _unmarshal(orig_data)
    fixed = _unmarshal(fixed_data)
    merged = shallow_copy_node(orig)
    merged.content = [merge_maps(orig.content[0], fixed.content[0])]
    return dump(merged)


def _pairs(map_node: Node) -> Iterator[tuple[Node, Node]]:
    return zip(map_node.content[::2], map_node.content[1::2])


def merge_maps(orig: Node, fixed: Node) -> Node:
    """Merge two mapping nodes recursively.

    Keys only in ``orig`` are dropped, keys only in ``fixed`` are appended and
    keys in both take the fixed value, merging maps and sequences recursively.
    """
    merged = shallow_copy_node(orig)
    for orig_key, orig_val in _pairs(orig):
        if find_key_in_map(orig_key, fixed) is not None:
            merged.content.extend((orig_key, orig_val))

    for fixed_key, fixed_val in _pairs(fixed):
        key_index = find_key_in_map(fixed_key, merged)
        if key_index is None:
            merged.content.extend((fixed_key, fixed_val))
            continue
        val_index = key_index + 1
        merged_val = merged.content[val_index]
        if fixed_val.kind is not merged_val.kind:
            merged.content[val_index] = fixed_val
        elif fixed_val.kind is NodeKind.SCALAR:
            merged_val.value = fixed_val.value
        elif fixed_val.kind is NodeKind.MAPPING:
            merged.content[val_index] = merge_maps(merged_val, fixed_val)
        elif fixed_val.kind is NodeKind.SEQUENCE:
            merged.content[val_index] = merge_sequences(fixed_key.value, merged_val, fixed_val)
        else:
            _log.error("Unexpected yaml node kind %s", fixed_val.kind)
    return merged


def merge_sequences(sequence_key: str, orig: Node, fixed: Node) -> Node:
    """Merge two sequence nodes recursively, matching items by ``sequence_key``."""
    merged = shallow_copy_node(orig)
    merged.content = [
        item for item in orig.content
        if find_item_in_sequence(sequence_key, item, fixed) is not None
    ]

    for fixed_item in fixed.content:
        index = find_item_in_sequence(sequence_key, fixed_item, merged)
        if index is None:
            merged.content.append(fixed_item)
            continue
        merged_item = merged.content[index]
        if fixed_item.kind is not merged_item.kind:
            merged.content[index] = fixed_item
        elif fixed_item.kind is NodeKind.MAPPING:
            merged.content[index] = merge_maps(merged_item, fixed_item)
        elif fixed_item.kind is NodeKind.SEQUENCE:
            merged.content[index] = merge_sequences(sequence_key, merged_item, fixed_item)
    return merged


def deep_equal(val1: Node, val2: Node) -> bool:
    """Compare two nodes, ignoring comments and the order of children."""
    if val1.kind is not val2.kind:
        return False
    if val1.kind is NodeKind.SCALAR:
        return _equal_scalar(val1, val2)
    if val1.kind is NodeKind.MAPPING:
        return _equal_map(val1, val2)
    if val1.kind is NodeKind.SEQUENCE:
        return _equal_sequence(val1, val2)
    return False


def _equal_scalar(val1: Node, val2: Node) -> bool:
    return val1.tag == val2.tag and val1.value == val2.value


def _equal_sequence(seq1: Node, seq2: Node) -> bool:
    if len(seq1.content) != len(seq2.content):
        return False
    return all(find_item_in_sequence("", item, seq2) is not None for item in seq1.content)


def _equal_map(map1: Node, map2: Node) -> bool:
    if len(map1.content) != len(map2.content):
        return False
    for key1, value1 in _pairs(map1):
        index2 = find_key_in_map(key1, map2)
        if index2 is None or not deep_equal(value1, map2.content[index2 + 1]):
            return False
    return True


def equal_value_for_key(find_key: str, map1: Node, map2: Node) -> bool:
    """Return True if both mappings hold equal values for the given key."""
    if map1.kind is not NodeKind.MAPPING or map2.kind is not NodeKind.MAPPING:
        return False
    found1 = find_val_in_map(find_key, map1)
    found2 = find_val_in_map(find_key, map2)
    if found1 is None or found2 is None:
        return False
    return deep_equal(found1[0], found2[0])


def find_key_in_map(find_key: Node, map_node: Node) -> int | None:
    """Return the index of ``find_key`` among the mapping's children, or None."""
    if map_node.kind is not NodeKind.MAPPING:
        return None
    for index in range(0, len(map_node.content) - 1, 2):
        if deep_equal(map_node.content[index], find_key):
            return index
    return None


def find_val_in_map(key: str, map_node: Node) -> tuple[Node, int] | None:
    """Return the value for a string key and its index, or None if absent."""
    find_key = Node(NodeKind.SCALAR, tag=STR_TAG, value=key)
    key_index = find_key_in_map(find_key, map_node)
    if key_index is None:
        return None
    return map_node.content[key_index + 1], key_index + 1


def find_item_in_sequence(sequence_key: str, find_val: Node, sequence_node: Node) -> int | None:
    """Return the index of the item matching ``find_val``, or None."""
    for index, item in enumerate(sequence_node.content):
        if sequence_item_match(sequence_key, item, find_val):
            return index
    return None


# Sequence key -> key of the item field that identifies an item.
_IDENTIFYING_KEY = {
    "allowedFlexVolumes": "driver",
    "allowedHostPaths": "pathPrefix",
    "allowedTopologies": "matchLabelExpressions",
    "clusterRoleSelectors": "matchExpressions",
    "containers": "name",
    "egress": "ports",
    "env": "name",
    "hostAliases": "ip",
    "httpHeaders": "name",
    "imagePullSecrets": "name",
    "initContainers": "name",
    "matchExpressions": "key",
    "matchFields": "key",
    "options": "name",
    "matchLabelExpressions": "key",
    "pending": "name",
    "readinessGates": "conditionType",
    "requiredDuringSchedulingIgnoredDuringExecution": "labelSelector",
    "secrets": "name",
    "subjects": "name",
    "subsets": "addresses",
    "sysctls": "name",
    "taints": "key",
    "volumeDevices": "devicePath",
    "volumeMounts": "mountPath",
    "volumes": "name",
}

# Sequence key -> item fields, any of which identifies an item.
_ALTERNATIVE_KEYS = {
    "addresses": ("hostname", "ip"),
    "notReadyAddresses": ("hostname", "ip"),
    "ingress": ("ports", "from"),
    "items": ("key", "path"),
    "nodeSelectorTerms": ("matchExpressions", "matchFields"),
    "ownerReferences": ("uid", "name"),
    "preferredDuringSchedulingIgnoredDuringExecution": ("preference", "podAffinityTerm"),
    "ports": ("containerPort", "port"),
    "tls": ("secretName", "hosts"),
}

_PROJECTION_SOURCES = (
    ("configMap", "name"),
    ("downwardAPI", "items"),
    ("secret", "name"),
    ("serviceAccountToken", "path"),
)


def _nested_match(outer: str, inner: str, item1: Node, item2: Node) -> bool | None:
    found1 = find_val_in_map(outer, item1)
    found2 = find_val_in_map(outer, item2)
    if found1 is None or found2 is None:
        return None
    return equal_value_for_key(inner, found1[0], found2[0])


def sequence_item_match(sequence_key: str, item1: Node, item2: Node) -> bool:
    """Return True if two sequence items identify the same thing.

    Mapping items of a known sequence key match when their identifying field
    is equal; everything else matches on deep equality.
    """
    if item1.kind is not item2.kind:
        return False
    if not sequence_key or item1.kind is not NodeKind.MAPPING:
        return deep_equal(item1, item2)

    id_key = _IDENTIFYING_KEY.get(sequence_key)
    if id_key is not None:
        return equal_value_for_key(id_key, item1, item2)

    alternatives = _ALTERNATIVE_KEYS.get(sequence_key)
    if alternatives is not None:
        return any(equal_value_for_key(key, item1, item2) for key in alternatives)

    if sequence_key == "rules":
        return (
            equal_value_for_key("resources", item1, item2)
            or equal_value_for_key("host", item1, item2)
            or deep_equal(item1, item2)
        )

    if sequence_key == "envFrom":
        for outer in ("configMapRef", "secretRef"):
            matched = _nested_match(outer, "name", item1, item2)
            if matched is not None:
                return matched
        return False

    if sequence_key == "sources":
        for outer, inner in _PROJECTION_SOURCES:
            if find_val_in_map(outer, item1) is not None:
                return bool(_nested_match(outer, inner, item1, item2))
        return False

    if sequence_key == "volumeClaimTemplates":
        return bool(_nested_match("metadata", "name", item1, item2))

    return deep_equal(item1, item2)


def shallow_copy_node(orig: Node) -> Node:
    """Return a copy of ``orig`` with an empty content list."""
    return Node(
        kind=orig.kind,
        tag=orig.tag,
        value=orig.value,
        content=[],
        style=orig.style,
        head_comment=orig.head_comment,
        line_comment=orig.line_comment,
        foot_comment=orig.foot_comment,
        line=orig.line,
        column=orig.column,
    )