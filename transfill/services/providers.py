"""Machine translation providers (Google Cloud Translation, DeepL).

Providers translate from the master language into a target language and
raise one of ProviderTooLarge, ProviderRateLimited or ProviderRequestFailed.
Each provider instance carries its own circuit breaker so a worker stops
hammering an API that keeps failing.
"""
import logging
import time

import requests

from transfill.services.exceptions import (
    ProviderRateLimited,
    ProviderRequestFailed,
    ProviderTooLarge,
)

logger = logging.getLogger(__name__)

GOOGLE_TRANSLATE_URL = 'https://translation.googleapis.com/language/translate/v2'


class CircuitBreaker:
    """After N consecutive failures, pause calls for a cooldown."""

    def __init__(self, max_failures=3, cooldown_seconds=300, clock=time.monotonic):
        self.max_failures = max_failures
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self.consecutive_failures = 0
        self.cooldown_until = 0
        self.disabled = False  # True once we've confirmed the credentials are bad

    def is_open(self) -> bool:
        if self.disabled:
            return True

        if self.consecutive_failures >= self.max_failures:
            if self._clock() < self.cooldown_until:
                return True
            # Cooldown expired, reset and allow retry
            self.consecutive_failures = 0
            self.cooldown_until = 0
            logger.info("Translation circuit breaker reset - retrying")

        return False

    def record_success(self):
        self.consecutive_failures = 0

    def record_failure(self, permanent=False):
        if permanent:
            self.disabled = True
            return

        self.consecutive_failures += 1
        if self.consecutive_failures >= self.max_failures:
            self.cooldown_until = self._clock() + self.cooldown_seconds
            logger.warning(
                f"Translation failed {self.consecutive_failures} times in a row. "
                f"Pausing for {self.cooldown_seconds}s."
            )


class HTTPTranslationProvider:
    """Shared guards for HTTP translation APIs."""

    name = 'http'

    def __init__(self, api_key, timeout=10, max_text_length=5000, breaker=None):
        self.api_key = api_key
        self.timeout = timeout
        self.max_text_length = max_text_length
        self.breaker = breaker or CircuitBreaker()

    def translate(self, text: str, target_lang: str) -> str:
        if len(text) > self.max_text_length:
            raise ProviderTooLarge(
                f"Text of {len(text)} chars exceeds {self.max_text_length} char limit"
            )

        if self.breaker.is_open():
            raise ProviderRequestFailed(f"{self.name} circuit open, skipping call")

        try:
            translated = self._request(text, target_lang)
        except (ProviderRateLimited, ProviderRequestFailed):
            self.breaker.record_failure()
            raise

        self.breaker.record_success()
        return translated

    def _post(self, url, **kwargs):
        try:
            return requests.post(url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            raise ProviderRequestFailed(f"{self.name} timeout") from e
        except requests.RequestException as e:
            raise ProviderRequestFailed(f"{self.name} request error: {e}") from e

    def _request(self, text, target_lang):
        raise NotImplementedError


class GoogleTranslateProvider(HTTPTranslationProvider):
    """Translate using Google Cloud Translation API (v2, API key auth)."""

    name = 'google'

    def __init__(self, api_key, source_lang='en', **kwargs):
        super().__init__(api_key, **kwargs)
        self.source_lang = source_lang

    def _request(self, text, target_lang):
        params = {
            'key': self.api_key,
            'q': text,
            'source': self.source_lang,
            'target': target_lang,
            'format': 'text',
        }
        response = self._post(GOOGLE_TRANSLATE_URL, data=params)

        if response.status_code == 429:
            raise ProviderRateLimited("Google Translate rate limit exceeded")
        if response.status_code == 413:
            raise ProviderTooLarge("Google Translate request too large")

        try:
            result = response.json()
        except ValueError as e:
            raise ProviderRequestFailed(
                f"Google Translate returned non-JSON response ({response.status_code})"
            ) from e

        if not isinstance(result, dict):
            raise ProviderRequestFailed("Google Translate unexpected response format")

        if 'data' in result:
            try:
                return result['data']['translations'][0]['translatedText']
            except (KeyError, IndexError, TypeError) as e:
                raise ProviderRequestFailed("Google Translate unexpected response format") from e

        if 'error' in result:
            error = result['error']
            if not isinstance(error, dict):
                raise ProviderRequestFailed(f"Google Translate error: {error}")
            message = str(error.get('message', 'unknown'))

            # Invalid API key - disable permanently
            for detail in error.get('details') or []:
                if isinstance(detail, dict) and detail.get('reason') == 'API_KEY_INVALID':
                    self.breaker.record_failure(permanent=True)
                    logger.error(
                        "Google Translate API key is INVALID. Translation is now DISABLED. "
                        "Set a valid GOOGLE_TRANSLATE_API_KEY."
                    )
                    raise ProviderRequestFailed("Google Translate API key invalid")

            if error.get('code') == 400 and ('too long' in message.lower() or 'too large' in message.lower()):
                raise ProviderTooLarge(f"Google Translate: {message}")
            if error.get('status') == 'RESOURCE_EXHAUSTED':
                raise ProviderRateLimited(f"Google Translate: {message}")

            raise ProviderRequestFailed(f"Google Translate error: {message}")

        raise ProviderRequestFailed("Google Translate unexpected response format")


class DeepLProvider(HTTPTranslationProvider):
    """Translate using DeepL API."""

    name = 'deepl'

    def __init__(self, api_key, api_url='https://api-free.deepl.com', source_lang='en', **kwargs):
        super().__init__(api_key, **kwargs)
        self.api_url = api_url.rstrip('/')
        self.source_lang = source_lang

    @staticmethod
    def _target_code(lang):
        # DeepL uses uppercase language codes
        target = lang.upper()
        if target == 'EN':
            target = 'EN-US'
        return target

    def _request(self, text, target_lang):
        headers = {'Authorization': f'DeepL-Auth-Key {self.api_key}'}
        data = {
            'text': [text],
            'source_lang': self.source_lang.upper(),
            'target_lang': self._target_code(target_lang),
        }
        response = self._post(f'{self.api_url}/v2/translate', headers=headers, data=data)

        if response.status_code == 413:
            raise ProviderTooLarge("DeepL request too large")
        if response.status_code in (429, 456):  # 456 = quota exceeded
            raise ProviderRateLimited(f"DeepL limit exceeded ({response.status_code})")
        if response.status_code == 403:
            self.breaker.record_failure(permanent=True)
            logger.error("DeepL API key rejected. Translation is now DISABLED.")
            raise ProviderRequestFailed("DeepL authorization failed")
        if response.status_code != 200:
            raise ProviderRequestFailed(f"DeepL error status {response.status_code}")

        try:
            result = response.json()
            return result['translations'][0]['text']
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderRequestFailed("DeepL unexpected response format") from e


def build_provider(config):
    """Create the configured provider, or None when translation is disabled."""
    service = config.get('TRANSLATION_SERVICE', 'google')
    options = {
        'timeout': config.get('TRANSLATION_PROVIDER_TIMEOUT', 10),
        'max_text_length': config.get('TRANSLATION_MAX_TEXT_LENGTH', 5000),
        'source_lang': config.get('MASTER_LANGUAGE', 'en'),
        'breaker': CircuitBreaker(
            max_failures=config.get('TRANSLATION_MAX_CONSECUTIVE_FAILURES', 3),
            cooldown_seconds=config.get('TRANSLATION_COOLDOWN_SECONDS', 300),
        ),
    }

    if service == 'google':
        api_key = (config.get('GOOGLE_TRANSLATE_API_KEY') or '').strip()
        if api_key:
            return GoogleTranslateProvider(api_key, **options)
    elif service == 'deepl':
        api_key = (config.get('DEEPL_API_KEY') or '').strip()
        if api_key:
            return DeepLProvider(api_key, api_url=config.get('DEEPL_API_URL', 'https://api-free.deepl.com'), **options)
    else:
        logger.error(f"Unknown TRANSLATION_SERVICE '{service}'")
        return None

    logger.warning(f"No API key configured for '{service}' - background translation disabled")
    return None
