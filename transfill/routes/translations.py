"""Translation lookup routes."""

from flask import Blueprint, current_app, jsonify, request

from transfill.services import get_translation_service
from transfill.services.exceptions import StoreUnavailable
from transfill.services.language import negotiate_language, normalize_language

translations_bp = Blueprint('translations', __name__)


def get_request_language():
    """Target language from ?lang=, else Accept-Language, else the master language."""
    override = normalize_language(request.args.get('lang'))
    if override:
        return override

    return negotiate_language(
        request.accept_languages,
        current_app.config['SUPPORTED_LANGUAGES'],
        default=current_app.config['MASTER_LANGUAGE'],
    )


@translations_bp.route('/<key>', methods=['GET'])
def resolve_translation(key):
    """Resolve one key.

    Query params:
    - text: Source text in the master language (required)
    - lang: Target language (optional, overrides Accept-Language)
    """
    text = request.args.get('text')
    if text is None:
        return jsonify({'error': 'text is required'}), 400

    lang = get_request_language()
    value = get_translation_service().resolver.resolve(key, text, lang)

    return jsonify({'key': key, 'lang': lang, 'value': value}), 200


@translations_bp.route('', methods=['POST'])
def resolve_translations():
    """Resolve many keys at once.

    Body: {"lang": "bn" (optional), "items": {"greeting.hello": "Hello", ...}}
    """
    data = request.get_json(silent=True) or {}
    items = data.get('items')

    if not isinstance(items, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in items.items()
    ):
        return jsonify({'error': 'items must be an object of key to text'}), 400

    lang = normalize_language(data.get('lang')) or get_request_language()
    translations = get_translation_service().resolver.resolve_many(items, lang)

    return jsonify({'lang': lang, 'translations': translations}), 200


@translations_bp.route('/<key>/<lang>', methods=['GET'])
def get_stored_translation(key, lang):
    """Return the durable record for (key, lang)."""
    store = get_translation_service().resolver.store
    try:
        record = store.find_one(key, normalize_language(lang))
    except StoreUnavailable:
        return jsonify({'error': 'Translation store unavailable'}), 503

    if record is None:
        return jsonify({'error': 'Translation not found'}), 404

    return jsonify(record.to_dict()), 200
