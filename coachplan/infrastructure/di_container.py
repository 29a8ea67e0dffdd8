# coachplan/infrastructure/di_container.py
"""Dependency injection container for coachplan services."""
from __future__ import annotations

from functools import lru_cache
import inspect
from typing import Any, Callable, Dict, Type

from coachplan.application.reconciliation import PlanReconciliationService
from coachplan.config import settings as app_settings
from coachplan.domain.repositories import PlanStore
from coachplan.infrastructure.postgres_dal import PostgresPlanStore

ServiceType = Type[Any]
Factory = Callable[["Container"], Any]


class Container:
    """Minimal service container supporting factories and instances."""

    def __init__(self) -> None:
        self._factories: Dict[ServiceType, Factory] = {}
        self._instances: Dict[ServiceType, Any] = {}

    def register(
        self,
        service: ServiceType,
        *,
        factory: Factory | None = None,
        instance: Any | None = None,
    ) -> None:
        if instance is not None:
            self._instances[service] = instance
            self._factories.pop(service, None)
            return
        if factory is None:
            raise ValueError("Either factory or instance must be provided.")
        self._factories[service] = factory
        self._instances.pop(service, None)

    def resolve(self, service: ServiceType) -> Any:
        if service in self._instances:
            return self._instances[service]
        try:
            factory = self._factories[service]
        except KeyError as exc:
            raise KeyError(f"No provider registered for {service!r}") from exc
        return factory(self)


def _register_defaults(container: Container) -> None:
    """Register the production service graph with the container."""
    container.register(PlanStore, factory=lambda _c: PostgresPlanStore())
    container.register(
        PlanReconciliationService,
        factory=lambda c: PlanReconciliationService(
            c.resolve(PlanStore),
            days_per_week=app_settings.DAYS_PER_WEEK,
            week_start_weekday=app_settings.WEEK_START_WEEKDAY,
            timeout_seconds=app_settings.RECONCILE_TIMEOUT_SECONDS,
            soft_delete_vetoed=app_settings.SOFT_DELETE_VETOED,
        ),
    )


def build_container(overrides: Dict[ServiceType, Any] | None = None) -> Container:
    """Create a new container with optional dependency overrides.

    An override is either a ready instance or a function taking the container.
    """
    container = Container()
    _register_defaults(container)

    for service, provider in (overrides or {}).items():
        if inspect.isfunction(provider):
            container.register(service, factory=provider)
        else:
            container.register(service, instance=provider)

    return container


@lru_cache(maxsize=1)
def get_container() -> Container:
    """Return a cached container instance for application use."""
    return build_container()


__all__ = ["Container", "build_container", "get_container"]
