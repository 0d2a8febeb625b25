"""
Reference Extractor - lexical read/write analysis of routine bodies.

Definitions are scanned with a handful of case-insensitive patterns, not
parsed. CTEs, dynamic SQL, synonyms and table-valued function calls are not
resolved, so the results are a lower bound on what a routine touches.
"""

import logging
import re
from typing import Dict, Iterable, List, Set, Tuple

from shared.models import TableNode, ViewNode

logger = logging.getLogger(__name__)

# (optional schema, name), brackets optional on both parts
_OBJECT_NAME = r'\s+(?:\[?(\w+)\]?\.)?\[?(\w+)\]?'

READ_PATTERNS = (
    re.compile(r'\bFROM' + _OBJECT_NAME, re.IGNORECASE),
    re.compile(r'\bJOIN' + _OBJECT_NAME, re.IGNORECASE),
)

WRITE_PATTERNS = (
    re.compile(r'\bINSERT\s+INTO' + _OBJECT_NAME, re.IGNORECASE),
    re.compile(r'\bUPDATE' + _OBJECT_NAME, re.IGNORECASE),
    re.compile(r'\bDELETE\s+FROM' + _OBJECT_NAME, re.IGNORECASE),
)


def build_name_index(tables: Iterable[TableNode], views: Iterable[ViewNode]) -> Dict[str, str]:
    """
    Map lowercase short names and lowercase ids to canonical object ids.

    When two schemas hold an object with the same name the later one owns the
    short name; qualified ids never collide.
    """
    index: Dict[str, str] = {}

    for obj in [*tables, *views]:
        short_key = obj.name.lower()
        previous = index.get(short_key)
        if previous is not None and previous != obj.id:
            logger.debug(f"Short name '{obj.name}' maps to both {previous} and {obj.id}; using {obj.id}")
        index[short_key] = obj.id
        index[obj.id.lower()] = obj.id

    return index


def find_ambiguous_names(tables: Iterable[TableNode], views: Iterable[ViewNode]) -> Set[str]:
    """Lowercase short names held by more than one table or view."""
    seen: Set[str] = set()
    ambiguous: Set[str] = set()
    for obj in [*tables, *views]:
        short_key = obj.name.lower()
        if short_key in seen:
            ambiguous.add(short_key)
        seen.add(short_key)
    return ambiguous


def _collect(definition: str, patterns, name_index: Dict[str, str]) -> Set[str]:
    found: Set[str] = set()
    for pattern in patterns:
        for match in pattern.finditer(definition):
            schema, name = match.group(1), match.group(2)
            key = f"{schema}.{name}" if schema else name
            object_id = name_index.get(key.lower())
            if object_id is not None:
                found.add(object_id)
    return found


def extract_references(definition: str, name_index: Dict[str, str]) -> Tuple[List[str], List[str]]:
    """
    Find the objects a routine reads from and writes to.

    Args:
        definition: Routine text as stored in the catalog
        name_index: Output of build_name_index

    Returns:
        (reads, writes) as sorted lists of canonical ids
    """
    if not definition:
        return [], []

    reads = _collect(definition, READ_PATTERNS, name_index)
    writes = _collect(definition, WRITE_PATTERNS, name_index)
    return sorted(reads), sorted(writes)


def extract_read_references(definition: str, name_index: Dict[str, str]) -> List[str]:
    """Read references only (views never write)."""
    if not definition:
        return []
    return sorted(_collect(definition, READ_PATTERNS, name_index))
