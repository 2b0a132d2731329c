from flask import Flask
from flask_cors import CORS

from taglang import TagProcessor
from taglang.config import Config


def create_app(config_class=Config, registry=None):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # CORS: origens vindas de CORS_ORIGINS (separadas por vírgula)
    allowed_origins = [
        origin.strip()
        for origin in (config_class.CORS_ORIGINS or '').split(',')
        if origin.strip()
    ]
    CORS(app,
         resources={r"/api/*": {"origins": allowed_origins}},
         supports_credentials=False,
         allow_headers=["Content-Type"],
         methods=["GET", "POST", "OPTIONS"])

    app.extensions['taglang'] = TagProcessor(registry=registry, config=config_class)

    from taglang.api.tags import tags_bp
    app.register_blueprint(tags_bp)

    return app
