import logging
import os
from dotenv import load_dotenv
load_dotenv()
from flask import Flask
from flask_cors import CORS
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError

from config import config_dict
from models import db
from routes.attempts import attempt_bp
from routes.certificates import certificate_bp
from routes.course_certificates import course_certificate_bp
from routes.test_builder import test_builder_bp
from utils.errors import api_error, register_error_handlers

migrate = Migrate()


def create_app(config_name=None, storage_factory=None):
    """Build the app. ``storage_factory`` returns the object-storage client used for one request."""
    app = Flask(__name__)

    env = config_name or os.environ.get("FLASK_ENV", "production")
    app.config.from_object(config_dict.get(env, config_dict["production"]))

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"], "supports_credentials": True}})

    db.init_app(app)
    migrate.init_app(app, db)

    if storage_factory is not None:
        app.extensions["storage_factory"] = storage_factory

    register_error_handlers(app)

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(err):
        db.session.rollback()
        app.logger.error("Database error: %s", err)
        return api_error("INTERNAL", "Database error.", 500)

    @app.route('/')
    def home():
        return "Welcome to the LMS App!"

    app.register_blueprint(attempt_bp, url_prefix='/api')
    app.register_blueprint(certificate_bp, url_prefix='/api')
    app.register_blueprint(course_certificate_bp, url_prefix='/api')
    app.register_blueprint(test_builder_bp, url_prefix='/api')

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=app.config.get('DEBUG', False))
