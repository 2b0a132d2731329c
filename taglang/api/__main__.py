import os
import logging

from taglang.api import create_app
from taglang.config import Config
from taglang.logging_setup import configure_logging

logger = logging.getLogger(__name__)


if __name__ == '__main__':
    configure_logging(Config)
    app = create_app(Config)
    port = int(os.getenv('PORT', '5000'))
    logger.info(f"Iniciando API de tags na porta {port}")
    app.run(host='0.0.0.0', port=port, debug=Config.DEBUG)
