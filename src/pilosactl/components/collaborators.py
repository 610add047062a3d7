"""Resolution of the external codec and cluster client.

Both are named in configuration as "package.module:attribute" strings.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any

from ..core.config import PilosactlConfig
from ..core.errors import CollaboratorError
from ..interfaces.client import ClusterClient
from ..interfaces.codec import BitmapCodec

logger = logging.getLogger(__name__)


def resolve(target: str) -> Any:
    """Import the object named by ``target`` ("module:attr" or "module.attr")."""
    if ":" in target:
        module_name, _, attr_path = target.partition(":")
    else:
        module_name, _, attr_path = target.rpartition(".")
    if not module_name or not attr_path:
        raise CollaboratorError(f"invalid import string: {target!r}")

    try:
        obj = importlib.import_module(module_name)
    except ImportError as e:
        raise CollaboratorError(f"cannot import {module_name!r}: {e}") from e

    for name in attr_path.split("."):
        try:
            obj = getattr(obj, name)
        except AttributeError as e:
            raise CollaboratorError(f"{module_name!r} has no attribute {attr_path!r}") from e
    return obj


def load_codec(config: PilosactlConfig) -> BitmapCodec:
    """Return the configured bitmap codec.

    The configured object is used as-is when it is an instance with a
    ``decode`` method; classes and other factories are called with no
    arguments to build one.
    """
    if not config.codec:
        raise CollaboratorError(
            "no bitmap codec configured (set 'codec' in the config file or PILOSACTL_CODEC)"
        )
    obj = resolve(config.codec)
    if isinstance(obj, type) or not hasattr(obj, "decode"):
        if not callable(obj):
            raise CollaboratorError(f"{config.codec!r} is not a bitmap codec")
        obj = obj()
    if not callable(getattr(obj, "decode", None)):
        raise CollaboratorError(f"{config.codec!r} is not a bitmap codec")
    logger.debug(f"Using bitmap codec {config.codec}")
    return obj


def load_client(config: PilosactlConfig, host: str) -> ClusterClient:
    """Build a cluster client for ``host`` from the configured factory."""
    if not config.client:
        raise CollaboratorError(
            "no cluster client configured (set 'client' in the config file or PILOSACTL_CLIENT)"
        )
    factory = resolve(config.client)
    if not callable(factory):
        raise CollaboratorError(f"{config.client!r} is not callable")
    logger.debug(f"Connecting to {host} with {config.client}")
    return factory(host)
