"""Encoding and decoding of whole Hugrs and extensions."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from hugr_core._errors import (
    DeserializationError,
    ExtensionNotFound,
    HugrError,
    OperationNotFound,
    UnsupportedVersion,
)
from hugr_core._extension import Extension, ExtensionRegistry, FromParams
from hugr_core._extension.prelude import PRELUDE_REGISTRY
from hugr_core._graph import Direction, Node
from hugr_core._hugr import Hugr
from hugr_core._types import ExtensionSet, PolyFuncType, TypeBound

from ._convert import (
    op_from_serial,
    op_to_serial,
    param_from_serial,
    param_to_serial,
    poly_func_from_serial,
    poly_func_to_serial,
    type_from_serial,
    type_to_serial,
    value_from_serial,
    value_to_serial,
)
from ._models import (
    SERIAL_VERSION,
    NamedValueModel,
    OpDefModel,
    SerialEdge,
    SerialExtension,
    SerialHugr,
    SerialNode,
    TypeDefModel,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Encoding
# =============================================================================


def _encoding_order(hugr: Hugr) -> list[Node]:
    """Root first, then its tree in pre-order, then detached trees in arena order."""
    order = hugr.descendants(hugr.root)
    for node in hugr.nodes():
        if node != hugr.root and hugr.get_parent(node) is None:
            order.extend(hugr.descendants(node))
    return order


def to_serial(hugr: Hugr) -> SerialHugr:
    """Encode a Hugr into its external model.

    Any Hugr can be encoded, valid or not. Extension operations are stored by
    name and arguments only.
    """
    order = _encoding_order(hugr)
    index = {node: i for i, node in enumerate(order)}

    nodes = []
    for node in order:
        parent = hugr.get_parent(node)
        metadata = hugr.metadata(node)
        nodes.append(
            SerialNode(
                parent=None if parent is None else index[parent],
                op=op_to_serial(hugr.get_op(node)),
                metadata=metadata or None,
            ),
        )

    edges = [
        SerialEdge(
            src=(index[edge.source.node], edge.source.offset),
            tgt=(index[edge.target.node], edge.target.offset),
            kind=edge.kind,
        )
        for node in order
        for edge in hugr.edges(node, Direction.OUTGOING)
    ]
    logger.debug("Encoded Hugr with %d nodes and %d edges", len(nodes), len(edges))
    return SerialHugr(version=SERIAL_VERSION, nodes=nodes, edges=edges)


def to_dict(hugr: Hugr) -> dict[str, Any]:
    """Encode a Hugr as plain JSON-compatible data. Absent optional fields are omitted."""
    return to_serial(hugr).model_dump(mode="json", exclude_none=True)


def to_json(hugr: Hugr, *, indent: int | None = None) -> str:
    """Encode a Hugr as a JSON document."""
    return to_serial(hugr).model_dump_json(exclude_none=True, indent=indent)


# =============================================================================
# Decoding
# =============================================================================


def from_serial(serial: SerialHugr, registry: ExtensionRegistry) -> Hugr:  # noqa: C901
    """Rebuild a Hugr from its model.

    The result is structurally identical to the encoded Hugr, including any
    invalid state: no validation is performed beyond what is needed to
    rebuild the graph.

    Raises:
        DeserializationError: If the document cannot describe a Hugr (missing
            root, bad parent or port references, malformed arguments).
        ExtensionNotFound: If an extension operation or opaque type names an
            extension not in `registry`. The error carries the offending node index.
        OperationNotFound: If the extension lacks the named operation.

    """
    if not serial.nodes:
        msg = "Encoded Hugr has no nodes"
        raise DeserializationError(msg)

    ops = []
    for i, node_model in enumerate(serial.nodes):
        try:
            ops.append(op_from_serial(node_model.op, registry))
        except ExtensionNotFound as e:
            raise ExtensionNotFound(e.extension, node=i) from e
        except OperationNotFound as e:
            raise OperationNotFound(e.extension, e.op_name, node=i) from e
        except HugrError as e:
            msg = f"Cannot decode operation: {e.message}"
            raise DeserializationError(msg, node=i) from e

    if serial.nodes[0].parent is not None:
        msg = "The root node must not have a parent"
        raise DeserializationError(msg, node=0)

    hugr = Hugr(ops[0])
    nodes = [hugr.root] + [hugr.add_node(op) for op in ops[1:]]

    for i, node_model in enumerate(serial.nodes):
        if node_model.metadata:
            for key, value in node_model.metadata.items():
                hugr.set_metadata(nodes[i], key, value)
        if node_model.parent is None:
            continue
        if not 0 <= node_model.parent < len(nodes):
            msg = f"Parent index {node_model.parent} out of range"
            raise DeserializationError(msg, node=i)
        try:
            hugr.set_parent(nodes[i], nodes[node_model.parent])
        except HugrError as e:
            raise DeserializationError(e.message, node=i) from e

    for edge_model in serial.edges:
        (src, src_port), (tgt, tgt_port) = edge_model.src, edge_model.tgt
        for end in (src, tgt):
            if not 0 <= end < len(nodes):
                msg = f"Edge {edge_model.src} -> {edge_model.tgt} references a missing node"
                raise DeserializationError(msg, node=end)
        try:
            hugr._connect_raw(nodes[src].out(src_port), nodes[tgt].inp(tgt_port), edge_model.kind)  # noqa: SLF001
        except HugrError as e:
            raise DeserializationError(e.message, node=src) from e

    logger.debug("Decoded Hugr with %d nodes and %d edges", len(nodes), len(serial.edges))
    return hugr


def _node_index(error: ValidationError) -> int | None:
    for detail in error.errors():
        loc = detail["loc"]
        if len(loc) >= 2 and loc[0] == "nodes" and isinstance(loc[1], int):  # noqa: PLR2004
            return loc[1]
    return None


def from_dict(data: Any, registry: ExtensionRegistry) -> Hugr:  # noqa: ANN401
    """Decode a Hugr from plain data (as produced by `to_dict`).

    Raises:
        UnsupportedVersion: If the version field is missing or unknown.
        DeserializationError: If the document is malformed.

    """
    if not isinstance(data, dict):
        msg = f"Expected an object at the top level, got {type(data).__name__}"
        raise DeserializationError(msg)
    version = data.get("version")
    if version != SERIAL_VERSION:
        raise UnsupportedVersion(version)
    try:
        serial = SerialHugr.model_validate(data)
    except ValidationError as e:
        msg = f"Malformed Hugr document: {e}"
        raise DeserializationError(msg, node=_node_index(e)) from e
    return from_serial(serial, registry)


def from_json(text: str | bytes, registry: ExtensionRegistry) -> Hugr:
    """Decode a Hugr from a JSON document.

    Raises:
        UnsupportedVersion: If the version field is missing or unknown.
        DeserializationError: If the text is not JSON or not a valid document.

    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        msg = f"Invalid JSON: {e}"
        raise DeserializationError(msg) from e
    return from_dict(data, registry)


def hugr_json_schema() -> dict[str, Any]:
    """JSON schema of the encoded form."""
    return SerialHugr.model_json_schema()


# =============================================================================
# Extensions
# =============================================================================


def extension_to_serial(extension: Extension) -> SerialExtension:
    """Encode an extension's declarations.

    Operations whose signature is computed by a custom function are stored
    without a signature; they decode to definitions that cannot be
    instantiated.
    """
    types = []
    for type_def in extension.types.values():
        bound = type_def.bound
        types.append(
            TypeDefModel(
                name=type_def.name,
                params=[param_to_serial(p) for p in type_def.params],
                description=type_def.description,
                bound=bound if isinstance(bound, TypeBound) else None,
                bound_from_params=list(bound.indices) if isinstance(bound, FromParams) else None,
            ),
        )
    operations = []
    for op_def in extension.operations.values():
        signature = op_def.signature_func
        operations.append(
            OpDefModel(
                name=op_def.name,
                description=op_def.description,
                misc=op_def.misc,
                signature=poly_func_to_serial(signature) if isinstance(signature, PolyFuncType) else None,
            ),
        )
    values = [
        NamedValueModel(name=named.name, value=value_to_serial(named.value), typ=type_to_serial(named.typ))
        for named in extension.values.values()
    ]
    return SerialExtension(
        name=extension.name,
        version=extension.version,
        description=extension.description,
        extension_reqs=extension.extension_reqs.to_strings(),
        types=types,
        operations=operations,
        values=values,
    )


def extension_from_serial(serial: SerialExtension, registry: ExtensionRegistry | None = None) -> Extension:
    """Rebuild an extension from its model.

    Opaque types in signatures and values are resolved against the extension
    itself and `registry`, which defaults to the prelude. A registered
    extension with the same name is shadowed by the decoded one.

    Raises:
        ExtensionBuildError: If names are invalid or duplicated.
        ExtensionNotFound: If a type names an extension that is not available.
        SignatureError: If a type is not defined by its extension.
        TypeMismatch: If a named value does not inhabit its type.

    """
    extension = Extension(
        serial.name,
        version=serial.version,
        extension_reqs=ExtensionSet.from_strings(serial.extension_reqs),
        description=serial.description,
    )
    for type_model in serial.types:
        bound: TypeBound | FromParams = (
            FromParams(tuple(type_model.bound_from_params))
            if type_model.bound_from_params is not None
            else type_model.bound or TypeBound.COPYABLE
        )
        extension.add_type(
            type_model.name,
            [param_from_serial(p) for p in type_model.params],
            type_model.description,
            bound,
        )
    known = PRELUDE_REGISTRY if registry is None else registry
    scope = ExtensionRegistry([*(ext for ext in known if ext.name != extension.name), extension])
    for op_model in serial.operations:
        signature = None if op_model.signature is None else poly_func_from_serial(op_model.signature, scope)
        extension.add_op(op_model.name, signature, op_model.description, op_model.misc)
    for value_model in serial.values:
        value = value_from_serial(value_model.value, scope)
        extension.add_value(value_model.name, value, type_from_serial(value_model.typ, scope))
    return extension
