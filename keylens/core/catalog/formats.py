"""
Locale Catalog Parser — One locale file to a flat key -> value mapping.

Supported formats:
- json: nested or flat objects (orjson)
- arb: Flutter Application Resource Bundle; `@key` metadata excluded
- yaml: nested or flat mappings (PyYAML node graph, for value positions)
- php: Laravel `return [...]` array literals

All functions here are pure: bytes in, ParsedCatalog out.

Usage:
    fmt = detect_format(Path("locales/en/common.json"))
    parsed = parse_catalog(data, fmt, key_style="auto", path="locales/en/common.json")
    parsed.entries["common.actions.submit"]  # "Submit"
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import orjson
import yaml

from ...errors import CatalogParseError
from ..models import Position
from ..parsing.extractor import LineIndex
from .locate import locate_json_values
from .php import PhpSyntaxError, parse_php_array

KEY_STYLES = ("nested", "flat", "auto")

FORMAT_EXTENSIONS: Dict[str, str] = {
    '.json': 'json',
    '.arb': 'arb',
    '.yaml': 'yaml',
    '.yml': 'yaml',
    '.php': 'php',
}

_YAML_NULL_TAG = "tag:yaml.org,2002:null"

PathPositions = Dict[Tuple[str, ...], Position]


@dataclass
class ParsedCatalog:
    """
    Result of parsing one catalog file.

    Attributes:
        entries: Flattened key -> value
        positions: Key -> 0-based position of the value, where known
        key_style: Style actually applied ("nested" or "flat")
        skipped: Top-level keys dropped under the flat style (non-scalar values)
        declared_locale: Locale named inside the file (ARB @@locale)
    """
    entries: Dict[str, str] = field(default_factory=dict)
    positions: Dict[str, Position] = field(default_factory=dict)
    key_style: str = "flat"
    skipped: List[str] = field(default_factory=list)
    declared_locale: Optional[str] = None

    def __len__(self) -> int:
        return len(self.entries)


# =============================================================================
# Detection
# =============================================================================

def detect_format(path: Union[str, Path]) -> Optional[str]:
    """Catalog format from the file extension, or None if not a catalog."""
    return FORMAT_EXTENSIONS.get(Path(path).suffix.lower())


def detect_key_style(mapping: Dict[str, Any]) -> str:
    """
    Classify a decoded top-level mapping.

    Any non-scalar top-level value means nested; otherwise flat.
    """
    for value in mapping.values():
        if isinstance(value, (dict, list)):
            return "nested"
    return "flat"


def scalar_to_string(value: Any) -> Optional[str]:
    """Normalize a scalar catalog value. None stays None (skipped)."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    return str(value)


# =============================================================================
# Flattening
# =============================================================================

def flatten(
    tree: Dict[str, Any],
    separator: str = ".",
    path_positions: Optional[PathPositions] = None,
) -> Tuple[Dict[str, str], Dict[str, Position]]:
    """
    Flatten nested mappings by joining key segments with the separator.

    Lists flatten with their index as segment; nulls are dropped.
    """
    entries: Dict[str, str] = {}
    positions: Dict[str, Position] = {}
    path_positions = path_positions or {}

    def walk(node: Any, path: Tuple[str, ...]) -> None:
        if isinstance(node, dict):
            for key, child in node.items():
                walk(child, path + (str(key),))
        elif isinstance(node, list):
            for index, child in enumerate(node):
                walk(child, path + (str(index),))
        else:
            value = scalar_to_string(node)
            if value is None or not path:
                return
            key = separator.join(path)
            entries[key] = value
            if path in path_positions:
                positions[key] = path_positions[path]

    walk(tree, ())
    return entries, positions


def apply_key_style(
    tree: Dict[str, Any],
    key_style: str,
    separator: str = ".",
    path_positions: Optional[PathPositions] = None,
) -> ParsedCatalog:
    """Turn a decoded mapping into a ParsedCatalog under a key style."""
    if key_style not in KEY_STYLES:
        raise ValueError(f"Unknown key style: {key_style}")

    style = detect_key_style(tree) if key_style == "auto" else key_style
    path_positions = path_positions or {}

    if style == "nested":
        entries, positions = flatten(tree, separator, path_positions)
        return ParsedCatalog(entries=entries, positions=positions, key_style=style)

    parsed = ParsedCatalog(key_style=style)
    for key, node in tree.items():
        key = str(key)
        if isinstance(node, (dict, list)):
            parsed.skipped.append(key)
            continue
        value = scalar_to_string(node)
        if value is None:
            continue
        parsed.entries[key] = value
        if (key,) in path_positions:
            parsed.positions[key] = path_positions[(key,)]
    return parsed


# =============================================================================
# Per-format decoding
# =============================================================================

def _decode_text(data: Union[bytes, str], path: str) -> str:
    if isinstance(data, str):
        return data.lstrip('\ufeff')
    try:
        return data.decode('utf-8-sig')
    except UnicodeDecodeError as e:
        raise CatalogParseError(path, f"not valid UTF-8: {e.reason}") from e


def _load_json(text: str, path: str) -> Tuple[Any, PathPositions]:
    try:
        tree = orjson.loads(text)
    except orjson.JSONDecodeError as e:
        line = getattr(e, 'lineno', None)
        column = getattr(e, 'colno', None)
        raise CatalogParseError(
            path,
            f"invalid JSON: {e.msg if hasattr(e, 'msg') else e}",
            line=line - 1 if line else None,
            column=column - 1 if column else None,
        ) from e
    return tree, locate_json_values(text)


def _load_yaml(text: str, path: str) -> Tuple[Any, PathPositions]:
    positions: PathPositions = {}

    def build(node: yaml.Node, node_path: Tuple[str, ...]) -> Any:
        if isinstance(node, yaml.MappingNode):
            result = {}
            for key_node, value_node in node.value:
                key = str(key_node.value)
                if key == "<<":
                    # Merge keys copy an anchored mapping's entries
                    merged = build(value_node, node_path)
                    if isinstance(merged, dict):
                        for merged_key, merged_value in merged.items():
                            result.setdefault(merged_key, merged_value)
                    continue
                result[key] = build(value_node, node_path + (key,))
            return result
        if isinstance(node, yaml.SequenceNode):
            return [build(child, node_path + (str(i),)) for i, child in enumerate(node.value)]
        if node.tag == _YAML_NULL_TAG:
            return None
        positions[node_path] = Position(node.start_mark.line, node.start_mark.column)
        return node.value

    try:
        root = yaml.compose(text, Loader=yaml.SafeLoader)
    except yaml.YAMLError as e:
        mark = getattr(e, 'problem_mark', None)
        raise CatalogParseError(
            path,
            f"invalid YAML: {getattr(e, 'problem', None) or e}",
            line=mark.line if mark else None,
            column=mark.column if mark else None,
        ) from e

    if root is None:
        return {}, positions
    return build(root, ()), positions


def _load_php(text: str, path: str) -> Tuple[Any, PathPositions]:
    try:
        return parse_php_array(text)
    except PhpSyntaxError as e:
        position = None
        if e.offset is not None:
            position = LineIndex(text).position(e.offset)
        raise CatalogParseError(
            path,
            f"invalid PHP array: {e}",
            line=position.line if position else None,
            column=position.character if position else None,
        ) from e


_LOADERS = {
    'json': _load_json,
    'arb': _load_json,
    'yaml': _load_yaml,
    'php': _load_php,
}


def parse_catalog(
    data: Union[bytes, str],
    fmt: str,
    key_style: str = "auto",
    separator: str = ".",
    path: Union[str, Path] = "<memory>",
) -> ParsedCatalog:
    """
    Parse one locale file into a flat key -> value mapping.

    Args:
        data: Raw file bytes (or decoded text)
        fmt: One of json, arb, yaml, php
        key_style: nested, flat or auto
        separator: Segment delimiter for flattened keys
        path: File path, for error attribution

    Returns:
        ParsedCatalog

    Raises:
        CatalogParseError: If the content is not valid for the format or
            its top level is not a mapping
        ValueError: On an unknown format or key style
    """
    loader = _LOADERS.get(fmt)
    if loader is None:
        raise ValueError(f"Unknown catalog format: {fmt}")

    path = str(path)
    text = _decode_text(data, path)
    if not text.strip():
        return ParsedCatalog(key_style="flat" if key_style == "auto" else key_style)

    tree, path_positions = loader(text, path)
    if not isinstance(tree, dict):
        raise CatalogParseError(
            path, f"top level must be a mapping, got {type(tree).__name__}"
        )

    declared_locale = None
    if fmt == 'arb':
        declared = tree.get("@@locale")
        declared_locale = declared if isinstance(declared, str) and declared else None
        tree = {k: v for k, v in tree.items() if not str(k).startswith("@")}

    parsed = apply_key_style(tree, key_style, separator, path_positions)
    parsed.declared_locale = declared_locale
    return parsed
