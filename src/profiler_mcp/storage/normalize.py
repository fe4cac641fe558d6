"""Conversion of decoded collector state into JSON-safe data.

Collectors are stored as serialized PHP objects. Their interesting state
lives in a protected ``data`` property that is usually a VarDumper ``Data``
clone: a table of rows where containers point at their children by row
position. This module walks both shapes with a bounded depth.
"""

from __future__ import annotations

import math

from phpserialize import phpobject

MAX_DEPTH_MARKER = "[max depth reached]"

VARDUMPER_NAMESPACE = "Symfony\\Component\\VarDumper\\"
VARDUMPER_DATA_CLASS = "Symfony\\Component\\VarDumper\\Cloner\\Data"

# Stub::TYPE_* and Stub::ARRAY_* constants.
STUB_TYPE_REF = 1
STUB_TYPE_STRING = 2
STUB_TYPE_ARRAY = 3
STUB_TYPE_OBJECT = 4
STUB_TYPE_RESOURCE = 5
STUB_ARRAY_INDEXED = 2


def strip_visibility(key: object) -> str:
    """Drop PHP's serialized visibility prefix from a property name.

    Protected members serialize as ``\\0*\\0name`` and private members as
    ``\\0Class\\0name``; VarDumper adds ``\\0~\\0`` and ``\\0+\\0`` variants.
    """
    name = key if isinstance(key, str) else str(key)
    if name.startswith("\0"):
        parts = name.split("\0", 2)
        if len(parts) == 3:
            return parts[2]
    return name


def object_properties(value: phpobject) -> dict[str, object]:
    """Return an object's properties keyed by their bare names."""
    return {strip_visibility(key): item for key, item in value.__php_vars__.items()}


def is_dumper_data(value: object) -> bool:
    return isinstance(value, phpobject) and value.__name__ == VARDUMPER_DATA_CLASS


def _is_stub(value: object) -> bool:
    return (
        isinstance(value, phpobject)
        and value.__name__.startswith(VARDUMPER_NAMESPACE)
        and value.__name__.endswith("Stub")
    )


def normalize_value(value: object, max_depth: int, _depth: int = 0) -> object:
    """Convert any decoded value into data json.dumps accepts."""
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else str(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if _depth >= max_depth:
        return MAX_DEPTH_MARKER
    if is_dumper_data(value):
        return resolve_dumper_data(value, max_depth=max_depth - _depth)
    if isinstance(value, phpobject):
        output: dict[str, object] = {"__class__": value.__name__}
        for key, item in object_properties(value).items():
            output[key] = normalize_value(item, max_depth, _depth + 1)
        return output
    if isinstance(value, dict):
        return {
            str(key): normalize_value(item, max_depth, _depth + 1) for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [normalize_value(item, max_depth, _depth + 1) for item in value]
    return repr(value)


def resolve_dumper_data(data: phpobject, max_depth: int) -> object:
    """Rebuild the value captured by a VarDumper ``Data`` clone."""
    properties = object_properties(data)
    table = properties.get("data")
    if not isinstance(table, dict) or not table:
        return None
    position = properties.get("position", 0)
    key = properties.get("key", 0)
    row = table.get(position if isinstance(position, int) else 0)
    if not isinstance(row, dict) or key not in row:
        return None
    return _resolve_item(row[key], table, max_depth, 0)


def _is_array_reference(item: object) -> bool:
    return isinstance(item, dict) and bool(item) and all(isinstance(key, int) for key in item)


def _array_stub(item: dict[object, object]) -> dict[str, object]:
    """Expand a cloned array written as ``[class => position]``.

    Cut arrays are written as ``[cut, class => position]``.
    """
    stub_class, position = list(item.items())[-1]
    return {
        "type": STUB_TYPE_ARRAY,
        "class": stub_class,
        "position": position,
        "cut": item.get(0, 0),
    }


def _resolve_item(item: object, table: dict[object, object], max_depth: int, depth: int) -> object:
    if isinstance(item, dict) and not item:
        return []
    if _is_array_reference(item):
        stub = _array_stub(item)
    elif _is_stub(item):
        stub = object_properties(item)
    else:
        return normalize_value(item, max_depth, depth)
    if depth >= max_depth:
        return MAX_DEPTH_MARKER

    # Stub::__sleep() drops properties left at their defaults.
    stub_type = stub.get("type", STUB_TYPE_REF)
    stub_class = stub.get("class", "")
    stub_value = stub.get("value")
    position = stub.get("position", 0)
    cut = stub.get("cut", 0)

    if stub_type == STUB_TYPE_REF:
        return _resolve_item(stub_value, table, max_depth, depth)
    if stub_type == STUB_TYPE_STRING:
        text = normalize_value(stub_value, max_depth, depth)
        if cut and isinstance(text, str):
            return f"{text}...(+{cut})"
        return text
    if stub_type == STUB_TYPE_RESOURCE:
        return f"resource({stub_class})"
    if stub_type == STUB_TYPE_ARRAY:
        children = _resolve_children(
            table, position, max_depth, depth, indexed=stub_class == STUB_ARRAY_INDEXED
        )
        if cut and isinstance(children, dict):
            children["__cut__"] = cut
        elif cut and isinstance(children, list):
            children.append({"__cut__": cut})
        return children
    if stub_type == STUB_TYPE_OBJECT:
        output: dict[str, object] = {"__class__": stub_class}
        members = _resolve_children(table, position, max_depth, depth, indexed=False)
        if isinstance(members, dict):
            output.update(members)
        if cut:
            output["__cut__"] = cut
        return output
    return normalize_value(stub_value, max_depth, depth)


def _resolve_children(
    table: dict[object, object],
    position: object,
    max_depth: int,
    depth: int,
    indexed: bool,
) -> object:
    row = table.get(position) if position else None
    if not isinstance(row, dict):
        return [] if indexed else {}
    if indexed:
        return [_resolve_item(value, table, max_depth, depth + 1) for value in row.values()]
    return {
        strip_visibility(key): _resolve_item(value, table, max_depth, depth + 1)
        for key, value in row.items()
    }


def collector_data(collector: object, max_depth: int) -> object:
    """Extract a collector's public state merged with its ``data`` property."""
    if isinstance(collector, phpobject):
        raw_properties = collector.__php_vars__
        output: dict[str, object] = {}
        for raw_key, item in raw_properties.items():
            if isinstance(raw_key, str) and raw_key.startswith("\0"):
                continue
            if raw_key == "data":
                continue
            output[str(raw_key)] = normalize_value(item, max_depth, 1)
        data_value = object_properties(collector).get("data")
        _merge_data(output, data_value, max_depth)
        return output
    if isinstance(collector, dict) and "data" in collector:
        output = {
            str(key): normalize_value(item, max_depth, 1)
            for key, item in collector.items()
            if key != "data"
        }
        _merge_data(output, collector["data"], max_depth)
        return output
    return normalize_value(collector, max_depth)


def _merge_data(output: dict[str, object], data_value: object, max_depth: int) -> None:
    if data_value is None:
        return
    if is_dumper_data(data_value):
        resolved = resolve_dumper_data(data_value, max_depth=max_depth)
    else:
        resolved = normalize_value(data_value, max_depth)
    if isinstance(resolved, dict):
        output.update(resolved)
    elif resolved is not None:
        output["data_value"] = resolved
