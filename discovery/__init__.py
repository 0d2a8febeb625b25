"""
Schema discovery - catalog streaming, reference extraction and graph assembly
"""

from .schema_loader import SchemaLoader, load_schema, list_databases
from .mock_generator import load_schema_mock
from .type_formatter import format_data_type
from .reference_extractor import (build_name_index, extract_references, extract_read_references,
                                  find_ambiguous_names)

__all__ = [
    "SchemaLoader",
    "load_schema",
    "list_databases",
    "load_schema_mock",
    "format_data_type",
    "build_name_index",
    "extract_references",
    "extract_read_references",
    "find_ambiguous_names",
]
