from zimshelf.constants import CONFIG_FILE, DEFAULT_SETTINGS, ENV_OVERRIDES
import copy
import yaml
import os

import logging

# Retrieve main logger
logger = logging.getLogger("main")


# Cache variable
_cached_settings = None


def merge_settings(overrides):
    """Deep merge a settings dict over the defaults, section by section."""
    merged_settings = copy.deepcopy(DEFAULT_SETTINGS)
    for section, values in (overrides or {}).items():
        if isinstance(values, dict) and section in merged_settings and isinstance(merged_settings[section], dict):
            merged_settings[section].update(values)
        else:
            merged_settings[section] = values
    return merged_settings


def apply_env_overrides(settings, environ=None):
    environ = os.environ if environ is None else environ
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            settings.setdefault(section, {})[key] = value
    return settings


def load_settings(force=False, config_file=CONFIG_FILE):
    global _cached_settings

    if _cached_settings and not force:
        return _cached_settings

    if os.path.exists(config_file):
        logger.debug(f"Reading configuration file: {config_file}")
        with open(config_file, "r") as yaml_file:
            settings = yaml.safe_load(yaml_file) or {}
        settings = merge_settings(settings)

    else:
        settings = copy.deepcopy(DEFAULT_SETTINGS)
        os.makedirs(os.path.dirname(config_file), exist_ok=True)
        with open(config_file, "w") as yaml_file:
            yaml.dump(settings, yaml_file)
        logger.info(f"Default configuration written to {config_file}")

    settings = apply_env_overrides(settings)

    _cached_settings = settings
    return settings


def verify_settings(settings):
    success = True
    errors = []

    provider = settings["storage"].get("provider")
    if provider not in ("catbox", "supabase"):
        success = False
        errors.append({"path": "storage/provider", "error": f"Unknown storage provider {provider}."})
    elif provider == "supabase" and not (settings["storage"].get("supabase_url") and settings["storage"].get("supabase_key")):
        success = False
        errors.append({"path": "storage/supabase_url", "error": "Supabase provider requires supabase_url and supabase_key."})

    max_size = settings["uploads"].get("max_size")
    if not isinstance(max_size, int) or max_size <= 0:
        success = False
        errors.append({"path": "uploads/max_size", "error": f"Invalid upload size limit {max_size}."})

    return success, errors

