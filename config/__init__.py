import os
import json
from pathlib import Path
from dotenv import load_dotenv
from .logging_config import setup_app_logging
import logging

# Load environment variables from .env file
load_dotenv()

# Get the config directory path (where this file is located)
CONFIG_DIR = Path(__file__).parent

PROJECT_ROOT = CONFIG_DIR.parent

# Load configuration from config.json
config_path = CONFIG_DIR / 'config.json'
with open(config_path, 'r', encoding='utf-8') as f:
    CONFIG = json.load(f)

CONFIG['project_root'] = str(PROJECT_ROOT)

CONCURRENCY_MODES = ('serialize', 'reject', 'interleave')
APPROVAL_MODES = ('policy', 'console')
RISK_THRESHOLDS = ('none', 'low', 'medium', 'high')
BACKEND_PROVIDERS = ('mock', 'openai', 'nebius')
EXTENSION_NAMES = ('logger', 'metrics', 'openai-backend')


# --- Helper function to get config value from CONFIG or environment variable ---
def get_config_value(json_keys: list, env_var_name: str, default_value=None):
    """
    Retrieves a configuration value.
    Priority:
    1. Environment variable (if env_var_name is provided and variable is set).
    2. Value from CONFIG dictionary (using json_keys).
    3. default_value.
    """
    if env_var_name:
        env_value = os.getenv(env_var_name)
        if env_value is not None:
            # Attempt to match type of default_value if it's bool, int or float
            if isinstance(default_value, bool):
                if env_value.lower() in ('true', '1', 'yes'): return True
                if env_value.lower() in ('false', '0', 'no'): return False
            elif isinstance(default_value, int):
                try:
                    return int(env_value)
                except ValueError:
                    pass # Fall through to JSON or default if not a valid int
            elif isinstance(default_value, float):
                try:
                    return float(env_value)
                except ValueError:
                    pass
            else:
                return env_value

    current_level = CONFIG
    try:
        for key in json_keys:
            current_level = current_level[key]
        if isinstance(current_level, (str, int, bool, float, list, dict)):
            return current_level
    except (KeyError, TypeError):
        pass # Key not found or CONFIG structure not as expected, fall through to default

    return default_value


# --- Orchestrator / approval / backend settings ---
# Environment variables take precedence over config.json.
CONFIG['orchestrator'] = {
    'concurrency': str(get_config_value(['orchestrator', 'concurrency'], 'ORCHESTRATOR_CONCURRENCY', 'serialize')).strip().lower(),
    'enable_approval': get_config_value(['orchestrator', 'enable_approval'], 'ENABLE_APPROVAL', True),
}
CONFIG['approval'] = {
    'mode': str(get_config_value(['approval', 'mode'], 'APPROVAL_MODE', 'policy')).strip().lower(),
    'max_auto_approve_risk': str(get_config_value(['approval', 'max_auto_approve_risk'], 'MAX_AUTO_APPROVE_RISK', 'low')).strip().lower(),
}
CONFIG['backend'] = {
    'provider': str(get_config_value(['backend', 'provider'], 'COMPLETION_BACKEND', 'mock')).strip().lower(),
    'mock': {
        'response_delay': get_config_value(['backend', 'mock', 'response_delay'], 'MOCK_RESPONSE_DELAY', 0.1),
    },
}

# Built-in extensions installed into the process-wide orchestrator, in order.
# EXTENSIONS_ENABLED is a comma-separated list; an empty value disables them all.
enabled_extensions = get_config_value(['extensions', 'enabled'], 'EXTENSIONS_ENABLED', [])
if isinstance(enabled_extensions, str):
    enabled_extensions = enabled_extensions.split(',')
CONFIG['extensions'] = {
    'enabled': [name.strip().lower() for name in enabled_extensions if name.strip()],
    'logger': {
        'log_file': get_config_value(['extensions', 'logger', 'log_file'], 'EXTENSION_LOG_FILE', ''),
    },
    'openai_backend': {
        'provider': str(get_config_value(['extensions', 'openai_backend', 'provider'], 'EXTENSION_OPENAI_PROVIDER', 'openai')).strip().lower(),
    },
}

# --- System Prompt Loading ---
# One system prompt per lane; the network-backed backend prepends it to the history.
CONFIG['prompts'] = {}
for lane_name in ('strategic', 'implementation'):
    prompt_path = CONFIG_DIR / f'{lane_name}_system_prompt.txt'
    try:
        with open(prompt_path, 'r', encoding='utf-8') as f:
            CONFIG['prompts'][lane_name] = f.read().strip()
    except FileNotFoundError:
        raise FileNotFoundError(
            f"System prompt file not found: {prompt_path}\n"
            f"Please ensure {lane_name}_system_prompt.txt exists in the config directory."
        )


def validate_config():
    """Validate that the enumerated settings hold one of their supported values.

    Secrets are not checked here: the mock backend needs none, and the network-backed
    backend validates its API key when it is built (see `llm_cloud.provider`).
    """
    concurrency = CONFIG['orchestrator']['concurrency']
    if concurrency not in CONCURRENCY_MODES:
        raise ValueError(f"Unsupported orchestrator concurrency mode: {concurrency}")

    approval_mode = CONFIG['approval']['mode']
    if approval_mode not in APPROVAL_MODES:
        raise ValueError(f"Unsupported approval mode: {approval_mode}")

    threshold = CONFIG['approval']['max_auto_approve_risk']
    if threshold not in RISK_THRESHOLDS:
        raise ValueError(f"Unsupported auto-approve risk threshold: {threshold}")

    provider = CONFIG['backend']['provider']
    if provider not in BACKEND_PROVIDERS:
        raise ValueError(f"Unsupported completion backend: {provider}")

    for name in CONFIG['extensions']['enabled']:
        if name not in EXTENSION_NAMES:
            raise ValueError(f"Unsupported extension: {name}")
    if len(set(CONFIG['extensions']['enabled'])) != len(CONFIG['extensions']['enabled']):
        raise ValueError("Each extension may be enabled only once")

    extension_provider = CONFIG['extensions']['openai_backend']['provider']
    if extension_provider not in ('openai', 'nebius'):
        raise ValueError(f"Unsupported provider for the openai-backend extension: {extension_provider}")


# Validate configuration on module import
validate_config()

# --- Logging Configuration ---
CONFIG['logging'] = {
    'level': get_config_value(['logging', 'level'], 'LOG_LEVEL', 'INFO'),
    'file_path': get_config_value(['logging', 'file_path'], 'LOG_FILE_PATH', ''),
    'max_bytes': get_config_value(['logging', 'max_bytes'], 'LOG_MAX_BYTES', 5*1024*1024), # 5MB
    'backup_count': get_config_value(['logging', 'backup_count'], 'LOG_BACKUP_COUNT', 3),
    'format': get_config_value(
        ['logging', 'format'],
        'LOG_FORMAT',
        '%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(lineno)d - %(message)s'
    ),
    'date_format': get_config_value(
        ['logging', 'date_format'],
        'LOG_DATE_FORMAT',
        '%Y-%m-%d %H:%M:%S'
    )
}

setup_app_logging(config=CONFIG.get('logging'))

config_init_logger = logging.getLogger(__name__)
config_init_logger.info("[config_init] Logging initialized from config/__init__.py using setup_app_logging.")
