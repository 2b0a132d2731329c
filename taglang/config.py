import os
from dotenv import load_dotenv

load_dotenv()


def env_flag(name, default=False):
    """Lê uma variável de ambiente booleana ('1', 'true', 'yes', 'on')"""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    # Tag syntax
    TAG_KEYWORD = os.getenv('TAGLANG_TAG_KEYWORD', 'TAG')
    DRY_RUN_PLACEHOLDER = os.getenv('TAGLANG_DRY_RUN_PLACEHOLDER', '1')

    # Limits
    MAX_INPUT_LENGTH = int(os.getenv('TAGLANG_MAX_INPUT_LENGTH', '100000'))
    MAX_NESTING_DEPTH = int(os.getenv('TAGLANG_MAX_NESTING_DEPTH', '50'))

    # Logging
    DEBUG = env_flag('TAGLANG_DEBUG')
    LOG_LEVEL = os.getenv('TAGLANG_LOG_LEVEL', 'INFO')

    # CORS (HTTP adapter)
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '')
