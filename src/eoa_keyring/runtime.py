"""
Wiring of the keyring engine from configuration.
"""

import logging
import sys
from typing import Optional, TextIO, Tuple

import structlog

from eoa_keyring.accounts.encryption import KeyEncryption
from eoa_keyring.config import KeyringConfig, config as default_config
from eoa_keyring.keyring import SimpleKeyring
from eoa_keyring.messaging.notifier import EventNotifier, LoggingEventNotifier, RedisEventNotifier
from eoa_keyring.state.store import InMemoryStateStore, JsonFileStateStore, StateStore


def configure_logging(cfg: Optional[KeyringConfig] = None, stream: Optional[TextIO] = None) -> None:
    """Configure structured logging. Logs go to stdout unless ``stream`` is given."""
    cfg = cfg or default_config
    level = "DEBUG" if cfg.debug else cfg.logging.level
    renderer = (
        structlog.processors.JSONRenderer()
        if cfg.logging.json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stdout),
    )


def build_store(cfg: Optional[KeyringConfig] = None) -> StateStore:
    """Create the configured state store."""
    cfg = cfg or default_config
    if cfg.state.backend == "memory":
        return InMemoryStateStore()

    encryption = None
    if cfg.encryption.key is not None:
        encryption = KeyEncryption(cfg.encryption.key.get_secret_value())

    return JsonFileStateStore(
        cfg.state.path,
        encryption=encryption,
        default_sync_approvals=cfg.approval.sync,
    )


def build_notifier(cfg: Optional[KeyringConfig] = None) -> EventNotifier:
    """Create the configured event notifier (not yet connected)."""
    cfg = cfg or default_config
    if cfg.events.backend == "redis":
        return RedisEventNotifier(
            str(cfg.redis.url),
            channel_prefix=cfg.events.channel_prefix,
            max_connections=cfg.redis.max_connections,
        )
    return LoggingEventNotifier()


async def open_keyring(
    cfg: Optional[KeyringConfig] = None,
) -> Tuple[SimpleKeyring, EventNotifier]:
    """
    Load the keyring with the configured store and notifier.

    Returns the notifier too so the caller can disconnect it.
    """
    cfg = cfg or default_config
    notifier = build_notifier(cfg)
    if isinstance(notifier, RedisEventNotifier):
        await notifier.connect()

    keyring = await SimpleKeyring.load(build_store(cfg), notifier=notifier)
    return keyring, notifier


async def close_notifier(notifier: EventNotifier) -> None:
    """Release notifier resources."""
    if isinstance(notifier, RedisEventNotifier):
        await notifier.disconnect()


__all__ = [
    "configure_logging",
    "build_store",
    "build_notifier",
    "open_keyring",
    "close_notifier",
]
