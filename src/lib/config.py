import os
import logging
from typing import Dict, List

from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

console = Console()
logger = logging.getLogger(__name__)


def load_root_env() -> bool:
    """Load environment variables from root .env file"""
    env_path = os.path.join(os.getcwd(), '.env')
    if not os.path.exists(env_path):
        logger.debug(f"No .env file at {env_path}, using process environment")
        return False
    load_dotenv(dotenv_path=env_path, override=False)
    return True


def setup_logging(level: str = None):
    level = (level or os.environ.get('LOG_LEVEL', 'INFO')).upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def initialize_sender_configs(default_daily_limit: int = None) -> List[Dict]:
    """
    Read numbered sender accounts from the environment:
    SENDER_EMAIL_{i}, SENDER_NAME_{i}, SENDER_APP_PASSWORD_{i}, DAILY_LIMIT_{i}
    """
    if default_daily_limit is None:
        default_daily_limit = int(os.getenv('DEFAULT_DAILY_LIMIT', 30))
    count = int(os.getenv('SENDER_ACCOUNTS_COUNT', 5))

    senders = []
    for i in range(1, count + 1):
        email = os.getenv(f'SENDER_EMAIL_{i}')
        if not email:
            continue
        senders.append({
            'email': email,
            'name': os.getenv(f'SENDER_NAME_{i}') or email.split('@')[0].title(),
            'app_password': os.getenv(f'SENDER_APP_PASSWORD_{i}'),
            'daily_limit': int(os.getenv(f'DAILY_LIMIT_{i}', default_daily_limit)),
        })
    logger.info(f"Found {len(senders)} sender accounts in configuration")
    return senders


load_root_env()


class Config:
    """Base configuration, read from the environment"""

    DEBUG = os.environ.get('FLASK_DEBUG', 'False').lower() == 'true'
    TESTING = False
    PORT = int(os.environ.get('PORT', 8080))

    SUPABASE_URL = os.environ.get('SUPABASE_URL')
    SUPABASE_KEY = os.environ.get('SUPABASE_KEY')

    SMTP_HOST = os.environ.get('SMTP_HOST', 'smtp.gmail.com')
    SMTP_PORT = int(os.environ.get('SMTP_PORT', 587))

    SENDER_EMAIL = os.environ.get('SENDER_EMAIL')
