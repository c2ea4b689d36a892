from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from celery import Celery, Task
import logging
import os
from dotenv import load_dotenv

load_dotenv()

db = SQLAlchemy()

logger = logging.getLogger(__name__)


def _env_bool(name, default='false'):
    return os.getenv(name, default).lower() in ('true', '1', 'yes')


def _database_url():
    url = os.getenv('DATABASE_URL', 'sqlite:///transfill.db')
    # Render/Heroku style URLs
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


def _load_config(app, config_name):
    """Populate app.config from the environment."""
    redis_url = os.getenv('REDIS_URL')

    app.config['SQLALCHEMY_DATABASE_URI'] = _database_url()
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['REDIS_URL'] = redis_url
    app.config['LOG_LEVEL'] = os.getenv('LOG_LEVEL', 'INFO')

    app.config['MASTER_LANGUAGE'] = os.getenv('MASTER_LANGUAGE', 'en').lower()
    app.config['SUPPORTED_LANGUAGES'] = [
        code.strip().lower()
        for code in os.getenv('SUPPORTED_LANGUAGES', 'en,bn,ar').split(',')
        if code.strip()
    ]

    # Provider selection - change TRANSLATION_SERVICE to switch providers
    app.config['TRANSLATION_SERVICE'] = os.getenv('TRANSLATION_SERVICE', 'google')
    app.config['GOOGLE_TRANSLATE_API_KEY'] = os.getenv('GOOGLE_TRANSLATE_API_KEY', '')
    app.config['DEEPL_API_KEY'] = os.getenv('DEEPL_API_KEY', '')
    app.config['DEEPL_API_URL'] = os.getenv('DEEPL_API_URL', 'https://api-free.deepl.com')

    app.config['TRANSLATION_CACHE_TTL'] = int(os.getenv('TRANSLATION_CACHE_TTL', 86400))  # 24 hours
    app.config['TRANSLATION_DISPATCH_TTL'] = int(os.getenv('TRANSLATION_DISPATCH_TTL', 60))
    app.config['TRANSLATION_BACKOFF_MAX'] = int(os.getenv('TRANSLATION_BACKOFF_MAX', 3600))
    app.config['TRANSLATION_PROVIDER_TIMEOUT'] = float(os.getenv('TRANSLATION_PROVIDER_TIMEOUT', 10))
    app.config['TRANSLATION_MAX_TEXT_LENGTH'] = int(os.getenv('TRANSLATION_MAX_TEXT_LENGTH', 5000))
    app.config['TRANSLATION_MAX_CONSECUTIVE_FAILURES'] = 3
    app.config['TRANSLATION_COOLDOWN_SECONDS'] = 300  # 5 minutes

    app.config['CELERY'] = {
        'broker_url': os.getenv('CELERY_BROKER_URL', redis_url or 'memory://'),
        'task_always_eager': _env_bool('CELERY_TASK_ALWAYS_EAGER'),
        'task_acks_late': True,
        'task_ignore_result': True,
    }

    if config_name == 'testing':
        app.config['TESTING'] = True
        app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite:///:memory:'
        app.config['REDIS_URL'] = None
        app.config['GOOGLE_TRANSLATE_API_KEY'] = ''
        app.config['DEEPL_API_KEY'] = ''
        app.config['CELERY'] = {
            'broker_url': 'memory://',
            'task_always_eager': True,
            'task_acks_late': True,
            'task_ignore_result': True,
        }


def celery_init_app(app):
    """Create the Celery app whose tasks run inside a Flask app context."""

    class FlaskTask(Task):
        def __call__(self, *args, **kwargs):
            with app.app_context():
                return self.run(*args, **kwargs)

    celery_app = Celery(app.name, task_cls=FlaskTask)
    celery_app.config_from_object(app.config['CELERY'])
    celery_app.set_default()
    app.extensions['celery'] = celery_app
    return celery_app


def create_app(config_name='development', config_overrides=None):
    app = Flask(__name__)

    # Config
    _load_config(app, config_name)
    if config_overrides:
        app.config.update(config_overrides)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )

    # Initialize extensions
    db.init_app(app)
    CORS(app)
    celery_init_app(app)

    # Create tables with error handling
    from transfill import models  # noqa: F401
    with app.app_context():
        try:
            db.create_all()
        except Exception as e:
            logger.warning(f"Could not create database tables: {e}")

    from transfill.services import build_translation_service
    app.extensions['transfill'] = build_translation_service(app)

    # Register routes
    from transfill.routes import register_routes
    register_routes(app)

    # Health check
    @app.route('/health', methods=['GET'])
    def health():
        return {'status': 'ok'}, 200

    return app
