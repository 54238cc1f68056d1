"""AniShelf exception classes."""


class AniShelfError(Exception):
    """Base class for all AniShelf exceptions."""


# Configuration errors
class ConfigError(AniShelfError):
    """Base class for configuration-related errors."""


class DataPathError(ConfigError, ValueError):
    """The configured data directory path is invalid for the requested operation."""


# Database errors
class DatabaseError(AniShelfError):
    """Base class for database-related errors."""


class MigrationError(DatabaseError):
    """The database schema could not be brought up to date."""


# Catalog errors
class CatalogError(AniShelfError):
    """Base class for recoverable catalog mutation failures.

    Raised for conflicts and missing rows that affect a single item; callers
    processing a batch are expected to record these and move on.
    """


class DuplicateAnimeError(CatalogError):
    """An anime with the same unique key already exists in the catalog."""


class AnimeNotFoundError(CatalogError, KeyError):
    """A referenced anime or site link does not exist in the catalog."""


class SiteLinkError(CatalogError):
    """A site link could not be attached to an anime."""


class FileReassignError(CatalogError):
    """Library files could not be associated with an anime."""


# Provider errors
class ProviderError(AniShelfError):
    """Base class for failures raised by external metadata providers."""


class ProviderRequestError(ProviderError):
    """The provider could not be reached or kept failing after retries."""


class ProviderNotFoundError(ProviderError, LookupError):
    """The provider has no record for the requested identifier."""


class ProviderResponseError(ProviderError, ValueError):
    """The provider returned a payload that could not be parsed."""


# Scheduler errors
class SchedulerError(AniShelfError):
    """Base class for scheduler-related failures."""
