"""
Dependency injection container for catfeed.
Manages service instances and their dependencies.
"""

from __future__ import annotations

from typing import (
    Annotated,
    Any,
    Callable,
    Dict,
    Optional,
    Type,
    TypeVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
    ForwardRef,
)
from pathlib import Path
import inspect
import sys
from dataclasses import dataclass

from .interfaces import ICatApi, IConfigService, IEventBus, IImageService, ILogger
from .cat_api import TheCatApiClient
from .config_service import AppConfig, ConfigService
from .event_bus import EventBus
from .feed_service import CatFeedService
from .image_service import ImageService
from .logging_service import LoggingService, LogLevel
from ..core.cache import KeyedAsyncCache
from ..core.dispatch import Dispatcher, QueueDispatcher

T = TypeVar("T")


@dataclass
class ServiceRegistration:
    """Registration information for a service."""

    service_type: Type
    implementation: Optional[Type]
    singleton: bool = True
    factory: Optional[Callable] = None


class ServiceContainer:
    """Dependency injection container."""

    def __init__(self):
        self._registrations: Dict[str, ServiceRegistration] = {}
        self._instances: Dict[str, Any] = {}
        self._building: set[str] = set()  # services under construction, for cycle detection

    # ------------------------------------------------------------------
    # Registration helpers
    # ------------------------------------------------------------------
    def register_singleton(self, service_type: Type[T], implementation: Type[T]) -> "ServiceContainer":
        key = self._get_service_key(service_type)
        self._registrations[key] = ServiceRegistration(
            service_type=service_type,
            implementation=implementation,
            singleton=True,
        )
        return self

    def register_transient(self, service_type: Type[T], implementation: Type[T]) -> "ServiceContainer":
        key = self._get_service_key(service_type)
        self._registrations[key] = ServiceRegistration(
            service_type=service_type,
            implementation=implementation,
            singleton=False,
        )
        return self

    def register_factory(
        self,
        service_type: Type[T],
        factory: Callable[..., T],
        singleton: bool = True,
    ) -> "ServiceContainer":
        key = self._get_service_key(service_type)
        self._registrations[key] = ServiceRegistration(
            service_type=service_type,
            implementation=None,
            singleton=singleton,
            factory=factory,
        )
        return self

    def register_instance(self, service_type: Type[T], instance: T) -> "ServiceContainer":
        key = self._get_service_key(service_type)
        self._instances[key] = instance
        return self

    # ------------------------------------------------------------------
    # Resolution API
    # ------------------------------------------------------------------
    def get(self, service_type: Type[T]) -> T:
        key = self._get_service_key(service_type)

        if key in self._instances:
            return self._instances[key]

        if key not in self._registrations:
            raise ValueError(f"Service {service_type.__name__} is not registered")

        if key in self._building:
            raise ValueError(f"Circular dependency detected for service {service_type.__name__}")

        registration = self._registrations[key]

        try:
            self._building.add(key)
            if registration.factory:
                instance = self._create_from_factory(registration)
            else:
                instance = self._create_from_type(registration)
            if registration.singleton:
                self._instances[key] = instance
            return instance
        finally:
            self._building.discard(key)

    # ------------------------------------------------------------------
    # Instance creation helpers
    # ------------------------------------------------------------------
    def _create_from_factory(self, registration: ServiceRegistration) -> Any:
        factory = registration.factory
        globalns = getattr(factory, "__globals__", {}) or {}
        kwargs = self._resolve_parameters(factory, globalns, getattr(factory, "__name__", "factory"))
        return factory(**kwargs)

    def _create_from_type(self, registration: ServiceRegistration) -> Any:
        impl_type = registration.implementation
        module = sys.modules.get(impl_type.__module__)
        globalns = vars(module) if module else {}
        kwargs = self._resolve_parameters(impl_type.__init__, globalns, impl_type.__name__)
        return impl_type(**kwargs)

    def _resolve_parameters(self, func: Callable, globalns: Dict[str, Any], owner: str) -> Dict[str, Any]:
        sig = inspect.signature(func)
        try:
            type_hints = get_type_hints(func, globalns=globalns, localns=None)
        except (NameError, TypeError):
            type_hints = {}

        kwargs: Dict[str, Any] = {}
        for param_name, param in sig.parameters.items():
            if param_name == "self":
                continue
            annotation = type_hints.get(param_name, param.annotation)
            dependency_type = self._resolve_annotation(annotation, globalns)
            if dependency_type is None:
                continue
            if not self.is_registered(dependency_type):
                if param.default is inspect.Parameter.empty:
                    raise ValueError(
                        f"Cannot resolve dependency {getattr(dependency_type, '__name__', dependency_type)!r} "
                        f"for {owner}.{param_name}"
                    )
                continue
            kwargs[param_name] = self.get(dependency_type)
        return kwargs

    def _resolve_annotation(self, annotation: Any, globalns: Optional[Dict[str, Any]]) -> Optional[Type]:
        """Resolve postponed / composite annotations into a concrete type."""

        if annotation is inspect.Parameter.empty or annotation is None or annotation is Any:
            return None

        if isinstance(annotation, ForwardRef):
            annotation = annotation.__forward_arg__

        if isinstance(annotation, str):
            try:
                evaluated = eval(annotation, globalns or {}, {})
            except Exception:
                return None
            return self._resolve_annotation(evaluated, globalns)

        origin = get_origin(annotation)
        if origin is None:
            return annotation if isinstance(annotation, type) else None

        if origin in (list, dict, tuple, set):
            return None

        if origin is Annotated:
            base, *_ = get_args(annotation)
            return self._resolve_annotation(base, globalns)

        if origin is Union:
            resolved = [
                self._resolve_annotation(arg, globalns)
                for arg in get_args(annotation)
                if arg is not type(None)  # noqa: E721
            ]
            resolved = [arg for arg in resolved if arg is not None]
            if len(resolved) == 1:
                return resolved[0]
            return None

        # Parameterized generics such as KeyedAsyncCache[np.ndarray]
        return origin if isinstance(origin, type) else None

    # ------------------------------------------------------------------
    # Registry helpers
    # ------------------------------------------------------------------
    def _get_service_key(self, service_type: Type) -> str:
        if not hasattr(service_type, "__module__") or not hasattr(service_type, "__name__"):
            raise TypeError(f"Service key expects a type, got {service_type!r}")
        return f"{service_type.__module__}.{service_type.__name__}"

    def is_registered(self, service_type: Type) -> bool:
        try:
            key = self._get_service_key(service_type)
        except TypeError:
            return False
        return key in self._registrations or key in self._instances

    def shutdown(self) -> None:
        """Stop the dispatcher pool, close the HTTP session and log handlers if they were built."""
        dispatcher = self._instances.get(self._get_service_key(Dispatcher))
        if dispatcher is not None:
            dispatcher.shutdown(wait=False)
        api = self._instances.get(self._get_service_key(ICatApi))
        if isinstance(api, TheCatApiClient):
            api.close()
        logger = self._instances.get(self._get_service_key(ILogger))
        if isinstance(logger, LoggingService):
            logger.close()

    def clear(self) -> None:
        self._registrations.clear()
        self._instances.clear()
        self._building.clear()


# ----------------------------------------------------------------------
# Default factories (resolved by type hints)
# ----------------------------------------------------------------------
def _cat_api_factory(config: AppConfig, logger: ILogger) -> ICatApi:
    return TheCatApiClient(config.api, logger)


def _image_cache_factory(config: AppConfig, dispatcher: Dispatcher) -> KeyedAsyncCache:
    return KeyedAsyncCache(dispatcher, max_items=config.cache.max_items, coalesce=config.cache.coalesce)


def _feed_factory(config: AppConfig, api: ICatApi, dispatcher: Dispatcher,
                  logger: ILogger, event_bus: IEventBus) -> CatFeedService:
    return CatFeedService(api, dispatcher, logger, event_bus, config.paging)


class ServiceContainerBuilder:
    """Builder for configuring the service container."""

    def __init__(self, config: Optional[AppConfig] = None):
        self._container = ServiceContainer()
        self._config = config or AppConfig()

    def configure_default_services(self) -> "ServiceContainerBuilder":
        config = self._config
        if not self._container.is_registered(ILogger):
            self.configure_logging()
        self._container.register_instance(AppConfig, config)
        if not self._container.is_registered(Dispatcher):
            self._container.register_factory(
                Dispatcher, lambda: QueueDispatcher(max_workers=config.workers.max_workers)
            )

        def config_factory(logger: ILogger) -> IConfigService:
            return ConfigService(logger, config=config)

        self._container.register_factory(IConfigService, config_factory)
        self._container.register_singleton(IEventBus, EventBus)
        if not self._container.is_registered(ICatApi):
            self._container.register_factory(ICatApi, _cat_api_factory)
        self._container.register_factory(KeyedAsyncCache, _image_cache_factory)
        self._container.register_singleton(IImageService, ImageService)
        self._container.register_factory(CatFeedService, _feed_factory)
        return self

    def configure_logging(
        self,
        log_file: Optional[Path] = None,
        console_level: Optional[LogLevel] = None,
    ) -> "ServiceContainerBuilder":
        logging_config = self._config.logging
        if console_level is not None:
            logging_config = logging_config.model_copy(update={"level": console_level.value})
        self._container.register_factory(
            ILogger,
            lambda: LoggingService.from_config(logging_config, log_file=log_file),
        )
        return self

    def add_instance(self, service_type: Type[T], instance: T) -> "ServiceContainerBuilder":
        self._container.register_instance(service_type, instance)
        return self

    def build(self) -> ServiceContainer:
        return self._container


def configure_services(
    config: Optional[AppConfig] = None,
    log_file: Optional[Path] = None,
) -> ServiceContainer:
    """Build a fully wired container. The caller owns it; there is no global one."""
    builder = ServiceContainerBuilder(config)
    if log_file:
        builder.configure_logging(log_file)
    return builder.configure_default_services().build()
