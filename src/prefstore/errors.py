class PrefsError(Exception):
    """Base exception for preference store errors."""


class PrefsValueError(PrefsError, ValueError):
    """Raised when a value cannot be encoded into the preference store."""


class PrefsSerializationError(PrefsError):
    """Raised when a strict object array save cannot serialize every element."""


class PrefsBackendError(PrefsError):
    """Raised when the backing store fails to read or write its media."""


class CorruptPrefsError(PrefsBackendError):
    """Raised when a prefs file is corrupted and cannot be recovered from backup."""
