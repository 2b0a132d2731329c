import logging

from taglang.config import Config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(config=Config):
    """
    Configura o logging do processo.

    TAGLANG_DEBUG força o nível DEBUG; caso contrário usa LOG_LEVEL.
    """
    if config.DEBUG:
        level = logging.DEBUG
    else:
        level = getattr(logging, str(config.LOG_LEVEL).upper(), logging.INFO)

    logging.basicConfig(level=level, format=LOG_FORMAT)
    return level
