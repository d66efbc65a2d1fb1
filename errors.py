# errors.py
"""
Exception taxonomy for the sync run.

Configuration / source / catalog errors abort the run (non-zero exit).
SyncItemError subclasses only ever escape a single item: the orchestrator
counts them as a failure and moves on.
"""


class SyncError(Exception):
    """Base class for every error raised on purpose by this project."""


# ---------- fatal ----------

class ConfigError(SyncError):
    """Missing or invalid configuration / credential material."""


class ProfileNotConfigured(ConfigError):
    pass


class NoSavedSession(ConfigError):
    pass


class SourceFetchError(SyncError):
    """Drive folder empty, download failed or the document could not be decoded."""


class CatalogUnreachable(SyncError):
    pass


# ---------- per item ----------

class SyncItemError(SyncError):
    def __init__(self, display_name: str, message: str = ""):
        self.display_name = display_name
        super().__init__(message or display_name)


class ItemNotFound(SyncItemError):
    pass


class ControlNotFound(SyncItemError):
    pass
