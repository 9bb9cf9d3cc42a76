"""Configuration dataclasses.

Frozen: immutable after creation, IDE-autocompletable, no string-key
dict lookups.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Server configuration.

    ``debug`` adds the exception detail to default 500 responses.
    Error-stage handlers are unaffected.
    """

    debug: bool = False


@dataclass(frozen=True, slots=True)
class RegistryConfig:
    """Service discovery and registration settings.

    Override what you need::

        config = RegistryConfig(prefix="/api/v1", log_level="debug")
    """

    # Prepended verbatim to every registered path (no slash normalisation)
    prefix: str = ""

    # File suffixes eligible for loading as service modules
    extensions: tuple[str, ...] = (".py",)

    # Names starting with any of these are skipped; dunder files (__init__.py) always are
    hidden_prefixes: tuple[str, ...] = (".",)

    # Level for the registry's own child logger; None leaves logger levels alone
    log_level: str | None = None
