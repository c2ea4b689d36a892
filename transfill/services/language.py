# transfill/services/language.py
from werkzeug.datastructures import LanguageAccept
from werkzeug.http import parse_accept_header

DEFAULT_LANGUAGE = 'en'


def normalize_language(code: str | None) -> str:
    """Lowercase primary subtag of a language tag ('bn-BD' -> 'bn')."""
    if not code:
        return ''
    return code.strip().replace('_', '-').split('-')[0].lower()


def negotiate_language(accept: LanguageAccept, supported, default: str = DEFAULT_LANGUAGE) -> str:
    """Pick the best supported language from a parsed Accept-Language value.

    Region subtags are dropped before matching, so a client asking for
    'bn-BD' is served 'bn'.
    """
    if not accept:
        return default

    primaries = LanguageAccept([
        (value if value == '*' else normalize_language(value), quality)
        for value, quality in accept
        if value == '*' or normalize_language(value)
    ])
    best = primaries.best_match(list(supported), default=default)
    return normalize_language(best) or default


def parse_accept_language(header: str | None, supported, default: str = DEFAULT_LANGUAGE) -> str:
    """Resolve an Accept-Language header to one supported language code."""
    if not header:
        return default
    return negotiate_language(parse_accept_header(header, LanguageAccept), supported, default)
