"""Error handling utilities."""


class TESPropertyError(Exception):
    """Base exception for the TES Property backend."""
    pass


class StorageError(TESPropertyError):
    """Persistence adapter read/write error."""
    pass


class SupabaseError(StorageError):
    """Supabase operation error."""
    pass


class InvalidTimeFormatError(TESPropertyError, ValueError):
    """Unparseable HH:MM time or calendar date."""
    pass
