"""
Locale directory layouts.

Two layouts are recognized under each configured locale root, decided per
root by what it contains:
- nested: root/<locale>/<namespace>.<ext> (namespaces may nest further)
- flat:   root/<locale>.<ext>

A root holding both locale directories and locale files is "mixed"; both
kinds are loaded. Flutter ARB files (app_en.arb) are flat files whose
locale comes from @@locale or the stem suffix.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Union

from .formats import detect_format

logger = logging.getLogger(__name__)

NESTED = "nested"
FLAT = "flat"
MIXED = "mixed"
EMPTY = "empty"

_LOCALE_RE = re.compile(
    r"^[a-z]{2}"                 # language
    r"(?:[-_][A-Z][a-z]{3})?"    # script (zh-Hans)
    r"(?:[-_](?:[A-Z]{2}|[a-z]{2}|\d{3}))?$"  # region (pt-BR, en_us, es-419)
)

_THREE_LETTER_LOCALES = {
    "fil", "haw", "yue", "ast", "ckb", "gsw",
}


def is_locale_code(name: str) -> bool:
    """Check if a file stem or directory name looks like a locale code."""
    return bool(_LOCALE_RE.match(name)) or name in _THREE_LETTER_LOCALES


def arb_stem_locale(stem: str) -> Optional[str]:
    """
    Locale encoded in an ARB file stem.

    Tries the whole stem, then each suffix after an underscore, longest
    first: app_pt_BR -> pt_BR, intl_en -> en.
    """
    if is_locale_code(stem):
        return stem
    parts = stem.split("_")
    for i in range(1, len(parts)):
        candidate = "_".join(parts[i:])
        if is_locale_code(candidate):
            return candidate
    return None


@dataclass(frozen=True)
class CatalogFile:
    """
    A locale file found under a root.

    Attributes:
        path: File path
        root: Locale root the file belongs to
        format: json, arb, yaml or php
        locale: Locale from the path; None for ARB files that only
                declare it inside (@@locale)
        namespace: Path below the locale directory without extension
                   (nested layout only), e.g. "common" or "admin/users"
        layout: NESTED or FLAT
    """
    path: Path
    root: Path
    format: str
    locale: Optional[str]
    namespace: Optional[str]
    layout: str


def classify(root: Path, path: Path) -> Optional[CatalogFile]:
    """
    Classify a path under a root as a catalog file, or None.

    Pure path logic; the file need not exist (deleted-file events).
    """
    try:
        rel = path.relative_to(root)
    except ValueError:
        return None

    parts = rel.parts
    if not parts or any(part.startswith(".") for part in parts):
        return None

    fmt = detect_format(path)
    if fmt is None:
        return None

    if len(parts) == 1:
        stem = path.stem
        locale = arb_stem_locale(stem) if fmt == "arb" else (stem if is_locale_code(stem) else None)
        if locale is None and fmt != "arb":
            return None
        return CatalogFile(path, root, fmt, locale, None, FLAT)

    if is_locale_code(parts[0]):
        namespace = Path(*parts[1:]).with_suffix("").as_posix()
        return CatalogFile(path, root, fmt, parts[0], namespace, NESTED)

    return None


def detect_layout(root: Path) -> str:
    """
    Infer a root's layout from directory-vs-file presence.

    Returns:
        NESTED, FLAT, MIXED or EMPTY
    """
    has_dirs = False
    has_files = False
    for child in Path(root).iterdir():
        if child.name.startswith("."):
            continue
        if child.is_dir() and is_locale_code(child.name):
            has_dirs = True
        elif child.is_file() and classify(root, child) is not None:
            has_files = True

    if has_dirs and has_files:
        return MIXED
    if has_dirs:
        return NESTED
    if has_files:
        return FLAT
    return EMPTY


def iter_catalog_files(root: Union[str, Path]) -> Iterator[CatalogFile]:
    """
    Enumerate catalog files under a root in a stable order.

    Flat files first, then each locale directory depth-first, each
    level sorted by name.

    Raises:
        OSError: If the root cannot be listed
    """
    root = Path(root)
    children = sorted(root.iterdir())

    for child in children:
        if child.is_file():
            found = classify(root, child)
            if found is not None:
                yield found

    for child in children:
        if child.is_dir() and is_locale_code(child.name):
            for path in sorted(child.rglob("*")):
                if path.is_file():
                    found = classify(root, path)
                    if found is not None:
                        yield found


def list_catalog_files(root: Union[str, Path]) -> List[CatalogFile]:
    files = list(iter_catalog_files(root))
    logger.debug("Found %d catalog file(s) under %s", len(files), root)
    return files
