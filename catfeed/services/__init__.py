"""
Services package for catfeed.
This package wires the paging and caching core to the remote API,
logging, configuration and event delivery.
"""

# Interfaces
from .interfaces import ILogger, IEventBus, IConfigService, ICatApi, IImageService, Events

# Concrete implementations
from .logging_service import LoggingService, LogLevel, MemoryLogger
from .event_bus import EventBus, EventData
from .config_service import (
    ConfigService, AppConfig, ApiConfig, PagingConfig, CacheConfig, WorkerConfig, LoggingConfig,
    load_app_config,
)
from .cat_api import TheCatApiClient
from .image_service import ImageService
from .feed_service import CatFeedService
from .container import ServiceContainer, ServiceContainerBuilder, configure_services

__all__ = [
    # Interfaces
    'ILogger', 'IEventBus', 'IConfigService', 'ICatApi', 'IImageService', 'Events',

    # Implementations
    'LoggingService', 'EventBus', 'ConfigService', 'TheCatApiClient', 'ImageService', 'CatFeedService',

    # Configuration classes
    'AppConfig', 'ApiConfig', 'PagingConfig', 'CacheConfig', 'WorkerConfig', 'LoggingConfig',
    'load_app_config',

    # Logging utilities
    'LogLevel', 'MemoryLogger',

    # Event bus utilities
    'EventData',

    # Dependency injection
    'ServiceContainer', 'ServiceContainerBuilder', 'configure_services',
]
