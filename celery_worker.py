"""Celery entry point for translation fill workers."""
import os
from transfill import create_app

flask_app = create_app(os.getenv('FLASK_ENV', 'development'))
celery_app = flask_app.extensions['celery']


# celery -A celery_worker worker -l info
