"""Declared build rules: naming, validation, registry and persistence."""

from .models import (
    GROUP_BY_DIRECTORY,
    GROUP_BY_EXPLICIT,
    GROUP_BY_FILENAME,
    GROUP_BY_NONE,
    GROUP_BY_VALUES,
    AssetDeclaration,
    InvalidDeclarationError,
    RulesVersion,
    SubPackage,
)
from .naming import NamingPolicy, group_name, md5_hex, strip_extension
from .registry import AssetRegistry
from .store import (
    RULES_SCHEMA_VERSION,
    RulesRecord,
    RulesSchemaUnsupportedError,
    RulesStore,
    empty_record,
)
from .validation import ValidationRules, normalize_asset_key

__all__ = [
    "AssetDeclaration",
    "AssetRegistry",
    "GROUP_BY_DIRECTORY",
    "GROUP_BY_EXPLICIT",
    "GROUP_BY_FILENAME",
    "GROUP_BY_NONE",
    "GROUP_BY_VALUES",
    "InvalidDeclarationError",
    "NamingPolicy",
    "RULES_SCHEMA_VERSION",
    "RulesRecord",
    "RulesSchemaUnsupportedError",
    "RulesStore",
    "RulesVersion",
    "SubPackage",
    "ValidationRules",
    "empty_record",
    "group_name",
    "md5_hex",
    "normalize_asset_key",
    "strip_extension",
]
