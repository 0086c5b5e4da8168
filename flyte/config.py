"""Server configuration read from environment variables."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

logger = logging.getLogger(__name__)

PORT_ENV = "FLYTE_PORT"
TLS_CERT_PATH_ENV = "FLYTE_TLS_CERT_PATH"
TLS_KEY_PATH_ENV = "FLYTE_TLS_KEY_PATH"
MONGO_HOST_ENV = "FLYTE_MGO_HOST"
AUTH_POLICY_PATH_ENV = "FLYTE_AUTH_POLICY_PATH"
OIDC_ISSUER_URL_ENV = "FLYTE_OIDC_ISSUER_URL"
OIDC_ISSUER_CLIENT_ID_ENV = "FLYTE_OIDC_ISSUER_CLIENT_ID"
FLYTE_TTL_ENV = "FLYTE_TTL_IN_SECONDS"
SHOULD_DELETE_DEAD_PACKS_ENV = "FLYTE_SHOULD_DELETE_DEAD_PACKS"
DELETE_DEAD_PACKS_TIME_ENV = "FLYTE_DELETE_DEAD_PACKS_AT_HH_COLON_MM"
PACK_GRACE_PERIOD_ENV = "FLYTE_PACK_GRACE_PERIOD_UNTIL_MARKED_DEAD_IN_SECONDS"
LOG_LEVEL_ENV = "LOGLEVEL"

DEFAULT_MONGO_HOST = "localhost:27017"
DEFAULT_DELETE_DEAD_PACKS_TIME = "23:00"
ONE_WEEK_IN_SECONDS = 604800
ONE_YEAR_IN_SECONDS = 31557600
MAX_PORT = 65535

TRACE = 5

_LOG_LEVELS = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL + 5,
    "disabled": logging.CRITICAL + 10,
    "": logging.NOTSET,
}

_BOOL_VALUES = {
    "1": True, "t": True, "T": True, "TRUE": True, "true": True, "True": True,
    "0": False, "f": False, "F": False, "FALSE": False, "false": False, "False": False,
}

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_TIME_PATTERN = re.compile(r"([0-9]{1,2}):([0-9]{2})")


class ConfigError(Exception):
    """Raised when the configuration cannot be used to start the server."""


@dataclass(frozen=True)
class Config:
    """Settings the server runs with."""

    mongo_host: str = DEFAULT_MONGO_HOST
    port: str = "8080"
    tls_cert_path: str = ""
    tls_key_path: str = ""
    auth_policy_path: str = ""
    oidc_issuer_url: str = ""
    oidc_issuer_client_id: str = ""
    flyte_ttl: int = ONE_YEAR_IN_SECONDS
    should_delete_dead_packs: bool = False
    delete_dead_packs_time: str = DEFAULT_DELETE_DEAD_PACKS_TIME
    pack_grace_period_until_dead_in_seconds: int = ONE_WEEK_IN_SECONDS
    log_level: int = logging.INFO

    def require_tls(self) -> bool:
        """True when both a certificate and a key are configured."""
        return bool(self.tls_cert_path) and bool(self.tls_key_path)

    def require_auth(self) -> bool:
        """True when a policy file and an OIDC issuer and client are configured."""
        return bool(self.auth_policy_path and self.oidc_issuer_url and self.oidc_issuer_client_id)


def _default_file_exists(path: str) -> bool:
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    except OSError:
        return True
    return True


def _string_with_default(environ: Mapping[str, str], name: str, default: str) -> str:
    value = environ.get(name)
    if value is None:
        logger.info("%s env not set, using default", name)
        value = default
    logger.info("Using %s=%s", name, value)
    return value


def _int_with_default(environ: Mapping[str, str], name: str, default: int) -> int:
    value = environ.get(name)
    if value is None:
        logger.info("%s env not set, using default", name)
        return default
    if not _INT_PATTERN.fullmatch(value):
        logger.error("Error converting %s to int, using default. Value of %s: %s", name, name, value)
        return default
    number = int(value)
    logger.info("Using %s=%d", name, number)
    return number


def _bool_with_default(environ: Mapping[str, str], name: str, default: bool) -> bool:
    value = environ.get(name)
    if value is None:
        logger.info("%s env not set, using default: %s", name, default)
        return default
    if value not in _BOOL_VALUES:
        logger.error(
            "Error converting %s to bool, using default: %s. Value of %s: %s", name, default, name, value
        )
        return default
    flag = _BOOL_VALUES[value]
    logger.info("Using %s=%s", name, flag)
    return flag


def _is_valid_clock_time(value: str) -> bool:
    match = _TIME_PATTERN.fullmatch(value)
    if not match:
        return False
    hour, minute = int(match.group(1)), int(match.group(2))
    return hour < 24 and minute < 60


def _time_with_default(environ: Mapping[str, str], name: str, default: str) -> str:
    value = environ.get(name)
    if value is None:
        logger.info("%s env not set, using default %s", name, default)
        return default
    if not _is_valid_clock_time(value):
        logger.error("%s env is invalid, using default %s", name, default)
        return default
    logger.info("Using %s=%s", name, value)
    return value


def _optional(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name)
    if value is None:
        return ""
    logger.info("Using %s=%s", name, value)
    return value


def _path(environ: Mapping[str, str], name: str, file_exists: Callable[[str], bool]) -> str:
    path = _optional(environ, name)
    if path and not file_exists(path):
        raise ConfigError(f"cannot find file defined by: {name}={path}")
    return path


def _port(environ: Mapping[str, str], default: str) -> str:
    port = _string_with_default(environ, PORT_ENV, default)
    if not _INT_PATTERN.fullmatch(port) or not 0 <= int(port) <= MAX_PORT:
        raise ConfigError(f"invalid port: {PORT_ENV}={port}")
    return port


def parse_log_level(value: str) -> int:
    """Map a level name such as 'debug' or 'warn' to a logging level; unknown names give INFO."""
    level = _LOG_LEVELS.get(value.lower())
    if level is None:
        logger.error("Unable to parse log level %r, using info", value)
        return logging.INFO
    return level


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    file_exists: Optional[Callable[[str], bool]] = None,
) -> Config:
    """Build the configuration from the environment, applying defaults where values are missing or invalid."""
    env = os.environ if environ is None else environ
    exists = _default_file_exists if file_exists is None else file_exists

    log_level = parse_log_level(_string_with_default(env, LOG_LEVEL_ENV, "info"))
    logging.getLogger(__name__.partition(".")[0]).setLevel(log_level)

    mongo_host = _string_with_default(env, MONGO_HOST_ENV, DEFAULT_MONGO_HOST)
    tls_cert_path = _path(env, TLS_CERT_PATH_ENV, exists)
    tls_key_path = _path(env, TLS_KEY_PATH_ENV, exists)
    default_port = "8443" if tls_cert_path and tls_key_path else "8080"
    port = _port(env, default_port)

    return Config(
        mongo_host=mongo_host,
        port=port,
        tls_cert_path=tls_cert_path,
        tls_key_path=tls_key_path,
        auth_policy_path=_optional(env, AUTH_POLICY_PATH_ENV),
        oidc_issuer_url=_optional(env, OIDC_ISSUER_URL_ENV),
        oidc_issuer_client_id=_optional(env, OIDC_ISSUER_CLIENT_ID_ENV),
        flyte_ttl=_int_with_default(env, FLYTE_TTL_ENV, ONE_YEAR_IN_SECONDS),
        should_delete_dead_packs=_bool_with_default(env, SHOULD_DELETE_DEAD_PACKS_ENV, False),
        delete_dead_packs_time=_time_with_default(
            env, DELETE_DEAD_PACKS_TIME_ENV, DEFAULT_DELETE_DEAD_PACKS_TIME
        ),
        pack_grace_period_until_dead_in_seconds=_int_with_default(
            env, PACK_GRACE_PERIOD_ENV, ONE_WEEK_IN_SECONDS
        ),
        log_level=log_level,
    )