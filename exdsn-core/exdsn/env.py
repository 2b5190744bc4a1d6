import logging
import os
from typing import Optional, TypeVar

from dotenv import find_dotenv, load_dotenv

from exdsn.errors import DsnEnvError
from exdsn.parser import parse_dsn

logger = logging.getLogger(__name__)

R = TypeVar("R")


def dsn_from_env(
    name: str,
    default: Optional[str] = None,
    dotenv_path: Optional[str] = None,
) -> str:
    """Read a DSN from an environment variable.

    When the variable is not set the `.env` file is loaded (without
    overriding variables that are already set) and the lookup is repeated.

    Args:
        name: The name of the environment variable.
        default: The value to use if the variable is not set at all.
        dotenv_path: The `.env` file to load; by default the first `.env`
            found in the current directory or its parents.

    Raises:
        DsnEnvError: The variable is not set and no default was provided.
    """
    value = os.environ.get(name, None)
    if value is None:
        load_dotenv(dotenv_path=dotenv_path or find_dotenv(usecwd=True))
        value = os.environ.get(name, None)

    if value is None:
        if default is None:
            raise DsnEnvError(name)
        logger.debug("%s is not set, using the default DSN", name)
        value = default
    return value


def parse_dsn_env(
    record: R,
    name: str,
    default: Optional[str] = None,
    dotenv_path: Optional[str] = None,
) -> R:
    """Populate a record from a DSN stored in an environment variable.

    Raises:
        DsnEnvError: The variable is not set and no default was provided.
        ParseError: The DSN could not be parsed.
    """
    return parse_dsn(
        dsn_from_env(name, default=default, dotenv_path=dotenv_path), record
    )
