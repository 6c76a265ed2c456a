"""
Dependency Injection Container.

This module provides the dependency injection container used to wire the
request executor to its client factory, policy store and JSON codec.
"""

from typing import TYPE_CHECKING, TypeVar, Type, Callable, Dict, Any, Mapping, Optional, Union
from abc import ABC, abstractmethod
import inspect
import typing
from contextlib import asynccontextmanager

import structlog

if TYPE_CHECKING:
    import httpx

    from resilient_http.infrastructure.http.config import HttpClientConfig, JsonSerializerSettings
    from resilient_http.infrastructure.resilience.policy_store import PolicyStore

logger = structlog.get_logger(__name__)

T = TypeVar('T')


def _type_name(annotation: Any) -> str:
    return getattr(annotation, "__name__", str(annotation))


def _unwrap_optional(annotation: Any) -> Any:
    """Return ``X`` for ``Optional[X]``; other annotations unchanged."""
    if typing.get_origin(annotation) is Union:
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


class DIContainer:
    """
    Dependency Injection Container with lifecycle management.

    Provides registration and resolution of dependencies with support for:
    - Singleton and transient lifecycles
    - Factory functions
    - Interface to implementation mapping
    - Async dependency resolution
    """

    def __init__(self):
        """Initialize container."""
        self._singletons: Dict[Type, Any] = {}
        self._transients: Dict[Type, Callable] = {}
        self._factories: Dict[Type, Callable] = {}
        self._interfaces: Dict[Type, Type] = {}

    def register_singleton(self, interface: Type[T], implementation: Type[T]) -> None:
        """
        Register a singleton dependency.

        Args:
            interface: Abstract interface type
            implementation: Concrete implementation type
        """
        logger.debug("Registering singleton", interface=interface.__name__, implementation=implementation.__name__)
        self._interfaces[interface] = implementation

    def register_transient(self, interface: Type[T], implementation: Type[T]) -> None:
        """
        Register a transient dependency (new instance each time).

        Args:
            interface: Abstract interface type
            implementation: Concrete implementation type
        """
        logger.debug("Registering transient", interface=interface.__name__, implementation=implementation.__name__)
        self._transients[interface] = implementation

    def register_factory(self, interface: Type[T], factory: Callable[..., T]) -> None:
        """
        Register a factory function for dependency creation.

        Args:
            interface: Interface type
            factory: Factory function that creates instances
        """
        logger.debug("Registering factory", interface=interface.__name__)
        self._factories[interface] = factory

    def register_instance(self, interface: Type[T], instance: T) -> None:
        """
        Register a specific instance as singleton.

        Args:
            interface: Interface type
            instance: Pre-created instance
        """
        logger.debug("Registering instance", interface=interface.__name__)
        self._singletons[interface] = instance

    def is_registered(self, interface: Type) -> bool:
        return any(
            interface in registry
            for registry in (self._singletons, self._factories, self._interfaces, self._transients)
        )

    async def resolve(self, interface: Type[T]) -> T:
        """
        Resolve a dependency by interface type.

        Args:
            interface: Interface type to resolve

        Returns:
            Instance of the requested type

        Raises:
            ValueError: If dependency is not registered
        """
        logger.debug("Resolving dependency", interface=_type_name(interface))

        # Check if we have a pre-created singleton instance
        if interface in self._singletons:
            return self._singletons[interface]

        # Check if we have a factory
        if interface in self._factories:
            factory = self._factories[interface]
            instance = await self._create_with_dependencies(factory)
            return instance

        # Check if it's registered as singleton
        if interface in self._interfaces:
            implementation = self._interfaces[interface]
            instance = await self._create_with_dependencies(implementation)
            self._singletons[interface] = instance
            return instance

        # Check if it's registered as transient
        if interface in self._transients:
            implementation = self._transients[interface]
            instance = await self._create_with_dependencies(implementation)
            return instance

        raise ValueError(f"Dependency {_type_name(interface)} is not registered")

    async def _create_with_dependencies(self, cls_or_func: Callable) -> Any:
        """
        Create instance with automatic dependency injection.

        Args:
            cls_or_func: Class or function to instantiate

        Returns:
            Created instance with injected dependencies
        """
        sig = inspect.signature(cls_or_func)

        kwargs = {}
        for param_name, param in sig.parameters.items():
            if param.annotation is inspect.Parameter.empty:
                continue
            annotation = _unwrap_optional(param.annotation)
            try:
                kwargs[param_name] = await self.resolve(annotation)
            except ValueError:
                # Skip parameters we can't resolve (optional dependencies)
                if param.default is inspect.Parameter.empty:
                    logger.warning(
                        "Cannot resolve required dependency",
                        parameter=param_name,
                        type=_type_name(annotation)
                    )

        if inspect.iscoroutinefunction(cls_or_func):
            return await cls_or_func(**kwargs)
        else:
            return cls_or_func(**kwargs)

    async def cleanup(self) -> None:
        """Cleanup all singletons that support cleanup."""
        logger.info("Cleaning up DI container")

        for instance in self._singletons.values():
            if hasattr(instance, 'cleanup') and callable(instance.cleanup):
                try:
                    if inspect.iscoroutinefunction(instance.cleanup):
                        await instance.cleanup()
                    else:
                        instance.cleanup()
                except Exception as e:
                    logger.error("Error during cleanup", error=str(e))

        self._singletons.clear()


class ServiceProvider(ABC):
    """Abstract base class for service providers."""

    @abstractmethod
    async def configure(self, container: DIContainer) -> None:
        """Configure services in the container."""
        pass


class HttpServiceProvider(ServiceProvider):
    """Service provider for the HTTP client stack."""

    def __init__(
        self,
        client_configs: Optional[Mapping[str, "HttpClientConfig"]] = None,
        default_client_config: Optional["HttpClientConfig"] = None,
        json_settings: Optional["JsonSerializerSettings"] = None,
        policy_store: Optional["PolicyStore"] = None,
        transport: Optional["httpx.AsyncBaseTransport"] = None
    ):
        """
        Args:
            client_configs: Named HttpClientConfig objects
            default_client_config: HttpClientConfig for the default client
            json_settings: JsonSerializerSettings for the JSON codec
            policy_store: Pre-built PolicyStore (a fresh one from the environment if None)
            transport: httpx transport shared by all clients
        """
        self.client_configs = client_configs
        self.default_client_config = default_client_config
        self.json_settings = json_settings
        self.policy_store = policy_store
        self.transport = transport

    async def configure(self, container: DIContainer) -> None:
        """Configure HTTP services."""
        from resilient_http.core.domain.transport import ClientFactory
        from resilient_http.infrastructure.http.client_factory import HttpxClientFactory
        from resilient_http.infrastructure.http.config import (
            load_http_client_config, load_retry_config, load_circuit_breaker_config
        )
        from resilient_http.infrastructure.http.executor import HttpRequestExecutor
        from resilient_http.infrastructure.http.serialization import JsonSerializer
        from resilient_http.infrastructure.resilience.policy_store import PolicyStore

        client_factory = HttpxClientFactory(
            configs=self.client_configs,
            default_config=self.default_client_config or load_http_client_config(),
            transport=self.transport
        )
        policy_store = self.policy_store or PolicyStore(
            retry_config=load_retry_config(),
            circuit_breaker_config=load_circuit_breaker_config()
        )

        container.register_instance(ClientFactory, client_factory)
        container.register_instance(PolicyStore, policy_store)
        container.register_instance(JsonSerializer, JsonSerializer(self.json_settings))
        container.register_singleton(HttpRequestExecutor, HttpRequestExecutor)

        logger.info("HTTP services configured", clients=sorted(self.client_configs or {}))


async def add_http_client(container: DIContainer, **options: Any) -> DIContainer:
    """Register the HTTP client stack in ``container``.

    Keyword arguments are passed to :class:`HttpServiceProvider`.
    """
    await HttpServiceProvider(**options).configure(container)
    return container


# Global container instance
_container: Optional[DIContainer] = None


async def get_container(providers: Optional[list] = None) -> DIContainer:
    """
    Get the global DI container.

    Args:
        providers: Service providers used on first initialization
            (an HttpServiceProvider configured from the environment if None)

    Returns:
        Configured DI container instance
    """
    global _container

    if _container is None:
        container = DIContainer()

        for provider in providers or [HttpServiceProvider()]:
            await provider.configure(container)

        _container = container
        logger.info("DI container initialized")

    return _container


async def cleanup_container() -> None:
    """Cleanup the global container."""
    global _container

    if _container:
        await _container.cleanup()
        _container = None
        logger.info("DI container cleaned up")


@asynccontextmanager
async def container_scope(providers: Optional[list] = None):
    """Context manager for container lifecycle."""
    try:
        container = await get_container(providers)
        yield container
    finally:
        await cleanup_container()
