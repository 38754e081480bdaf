import os
from typing import Any, Dict, List, Optional

REQUIRED_KEYS = {
    'base_url': 'GLPI_BASE_URL',
    'user_token': 'GLPI_USER_TOKEN',
}


def _env_str(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() == 'true'


def _env_number(name: str, default: float, cast=int):
    try:
        return cast(os.getenv(name, '').strip())
    except ValueError:
        return default


class NotifierConfig:
    """Centralized notifier configuration, read from the environment (.env loaded by main)."""

    @staticmethod
    def get_config() -> Dict[str, Any]:
        """Get notifier configuration from environment variables."""
        base_url = _env_str('GLPI_BASE_URL')

        return {
            'base_url': base_url.rstrip('/') if base_url else None,
            'app_token': _env_str('GLPI_APP_TOKEN'),
            'user_token': _env_str('GLPI_USER_TOKEN'),
            'poll_seconds': _env_number('POLL_SECONDS', 60),
            'verify_ssl': _env_bool('VERIFY_SSL', True),
            'first_run_notify': _env_bool('FIRST_RUN_NOTIFY', False),
            'debug_list': _env_bool('DEBUG_LIST', False),
            'ticket_url_template': _env_str('GLPI_TICKET_URL_TEMPLATE'),
            'logo_path': _env_str('GLPI_LOGO_PATH'),
            'timeout': _env_number('GLPI_TIMEOUT', 30, cast=float),
        }

    @staticmethod
    def validate_config(config: Dict[str, Any]) -> List[str]:
        """Return the environment variable names of missing required settings."""
        return [env_name for key, env_name in REQUIRED_KEYS.items() if not config.get(key)]

