# transfill/services/exceptions.py

class TranslationError(Exception):
    """Base translation exception."""


class ProviderError(TranslationError):
    """Raised when the translation provider could not translate the text."""


class ProviderTooLarge(ProviderError):
    """Raised when the source text exceeds what the provider accepts."""


class ProviderRateLimited(ProviderError):
    """Raised when the provider rejects the call because of rate or quota limits."""


class ProviderRequestFailed(ProviderError):
    """Raised on timeouts, transport errors and unexpected provider responses."""


class StoreUnavailable(TranslationError):
    """Raised when the cache, the translations table or the queue cannot be reached."""


class DuplicateRecord(TranslationError):
    """Raised when a translation for (key, lang) already exists."""
