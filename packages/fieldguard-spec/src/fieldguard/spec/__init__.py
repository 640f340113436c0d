from .models import FieldKey, SourceSpan, MutationKind, MutationSite, WhitelistEntry
from .markers import MARKER_NAME, MutatedBy, mutatedby
from .errors import (
    FieldGuardError,
    ConfigError,
    RegistryFrozenError,
    SourceParseError,
)
from .protocols import (
    WhitelistLookupProtocol,
    WhitelistRegistryProtocol,
    WhitelistExtractorProtocol,
    MutationScannerProtocol,
)

__all__ = [
    "FieldKey",
    "SourceSpan",
    "MutationKind",
    "MutationSite",
    "WhitelistEntry",
    "MARKER_NAME",
    "MutatedBy",
    "mutatedby",
    "FieldGuardError",
    "ConfigError",
    "RegistryFrozenError",
    "SourceParseError",
    "WhitelistLookupProtocol",
    "WhitelistRegistryProtocol",
    "WhitelistExtractorProtocol",
    "MutationScannerProtocol",
]
