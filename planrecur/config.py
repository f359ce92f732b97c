"""
Engine settings: the step cap of the recurrence walk, the locale for
readable phrases, the time zone calendar days are taken in and the
default event color.

Settings are looked up in this order: explicit keyword arguments,
PLANRECUR_* environment variables, a config file section, built-in defaults.

The config file is read once per path and kept in memory, so expanding
plans does not touch the disk again.  Call reset_config_cache() after
editing the file in a running process.
"""
import json
import logging
import os
from functools import lru_cache

log = logging.getLogger("planrecur")

DEFAULTS = {
    "max_steps": 1000,
    "locale": "en",
    "timezone": None,
    "default_color": "#3b82f6",
}

## environment variable → (setting, type)
ENV_SETTINGS = {
    "PLANRECUR_MAX_STEPS": ("max_steps", int),
    "PLANRECUR_LOCALE": ("locale", str),
    "PLANRECUR_TIMEZONE": ("timezone", str),
    "PLANRECUR_DEFAULT_COLOR": ("default_color", str),
}


def config_section(config, section="default"):
    """
    Returns the given section, with settings from any section it
    "inherits" from filled in underneath.
    """
    if section in config and "inherits" in config[section]:
        ret = config_section(config, config[section]["inherits"])
    else:
        ret = {}
    if section in config:
        ret.update(config[section])
    return ret


def read_config(fn):
    if not fn:
        cfgdir = f"{os.environ.get('HOME', '/')}/.config/"
        for config_file in (
            f"{cfgdir}/planrecur/planrecur.conf",
            f"{cfgdir}/planrecur/planrecur.yaml",
            f"{cfgdir}/planrecur/planrecur.json",
            f"{cfgdir}/planrecur.conf",
            "/etc/planrecur.conf",
            "/etc/planrecur/planrecur.conf",
        ):
            cfg = read_config(config_file)
            if cfg:
                return cfg
        return None

    try:
        try:
            with open(fn, "rb") as config_file:
                return json.load(config_file)
        except json.decoder.JSONDecodeError:
            ## Late import, wrapped in try/except.  yaml is external module,
            ## and only part of the test requirements.
            try:
                import yaml

                try:
                    with open(fn, "rb") as config_file:
                        return yaml.load(config_file, yaml.SafeLoader)
                except yaml.YAMLError:
                    log.error(
                        f"config file {fn} exists but is neither valid json nor yaml.  Check the syntax."
                    )
            except ImportError:
                log.error(
                    f"config file {fn} exists but is not valid json, and pyyaml is not installed."
                )

    except FileNotFoundError:
        log.info(f"no config file found at {fn}")
    except ValueError:
        log.error("error in config file.  It will be ignored", exc_info=True)
    return {}


@lru_cache(maxsize=None)
def _cached_config(fn, home):
    ## home is part of the key since the default locations live under it
    return read_config(fn)


def reset_config_cache():
    """Forget config files read so far; the next lookup reads them again"""
    _cached_config.cache_clear()


def _env_settings():
    settings = {}
    for var, (name, cast) in ENV_SETTINGS.items():
        value = os.environ.get(var)
        if value is None or value == "":
            continue
        try:
            settings[name] = cast(value)
        except ValueError:
            log.error(f"ignoring environment variable {var}={value!r}, not a valid {name}")
    return settings


def get_expansion_params(config_file=None, config_section_name=None, **kwargs):
    """
    Collect engine settings.

    Explicit keyword arguments win over environment variables
    (PLANRECUR_MAX_STEPS, PLANRECUR_LOCALE, PLANRECUR_TIMEZONE,
    PLANRECUR_DEFAULT_COLOR), which win over the config file section
    (PLANRECUR_CONFIG_FILE / PLANRECUR_CONFIG_SECTION may point at
    those), which wins over DEFAULTS.  Keyword arguments that are None
    count as not given.
    """
    params = dict(DEFAULTS)

    fn = config_file or os.environ.get("PLANRECUR_CONFIG_FILE")
    section = config_section_name or os.environ.get("PLANRECUR_CONFIG_SECTION", "default")
    ## Without an explicit file, the default locations are searched
    cfg = _cached_config(fn or None, os.environ.get("HOME"))
    if cfg:
        params.update(
            {k: v for k, v in config_section(cfg, section).items() if k in DEFAULTS}
        )

    params.update(_env_settings())
    params.update({k: v for k, v in kwargs.items() if k in DEFAULTS and v is not None})

    unknown = set(kwargs) - set(DEFAULTS)
    if unknown:
        log.warning(f"ignoring unknown settings: {', '.join(sorted(unknown))}")
    return params
