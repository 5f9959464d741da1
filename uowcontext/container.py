"""의존성 등록/해결을 위한 간단한 컨테이너.

싱글톤과 스코프(요청 단위) 두 가지 수명을 지원합니다. 스코프가 닫히면
스코프 안에서 만들어진 인스턴스 중 ``dispose()`` 가 있는 것들을 해제합니다.

Example: ::

    container = Container()
    add_unit_of_work(container, AccountContext, "account", context_maker=make_account)
    add_unit_of_work(container, CatalogContext, "catalog", context_maker=make_catalog)
    add_unit_of_work_factory(container)

    with container.scope() as scope:
        factory = scope.resolve(UnitOfWorkFactory)
        uow = factory.get_unit_of_work("account")
"""
from __future__ import annotations

import enum
import threading
from contextlib import AbstractContextManager
from typing import Any, Callable, Literal, Optional, Type

from sqlalchemy.orm import Session

from uowcontext.core import ResolutionError
from uowcontext.core._logging import get_logger
from uowcontext.factory import (
    ContextRegistry,
    UnitOfWorkFactory,
    get_registry,
    unit_of_work_key,
)
from uowcontext.orm import ContextMaker, WorkspaceContext
from uowcontext.uow import SqlAlchemyUnitOfWork, UnitOfWorkspace

Provider = Callable[["Scope"], Any]
"""현재 스코프를 받아 인스턴스를 만드는 함수."""

logger = get_logger("uowcontext.container")


class Lifetime(enum.Enum):
    SINGLETON = "singleton"
    SCOPED = "scoped"


class Container:
    """프로바이더 레지스트리. 등록은 애플리케이션 시작 시에 합니다."""

    def __init__(self) -> None:
        self._providers: dict[Any, tuple[Provider, Lifetime]] = {}
        self._singletons: dict[Any, Any] = {}
        self._lock = threading.RLock()

    def add_singleton(self, key: Any, instance: Any = None, provider: Provider = None):
        """싱글톤을 등록합니다. ``instance`` 또는 ``provider`` 중 하나를 줍니다."""
        with self._lock:
            if instance is not None:
                self._singletons[key] = instance
                self._providers[key] = (lambda _: instance, Lifetime.SINGLETON)
            elif provider is not None:
                self._singletons.pop(key, None)
                self._providers[key] = (provider, Lifetime.SINGLETON)
            else:
                raise ValueError("instance or provider should be given!")
        return self

    def add_scoped(self, key: Any, provider: Provider):
        """스코프마다 한 번 만들어지는 인스턴스를 등록합니다."""
        with self._lock:
            self._providers[key] = (provider, Lifetime.SCOPED)
        return self

    def is_bound(self, key: Any) -> bool:
        with self._lock:
            return key in self._providers

    def _get_provider(self, key: Any) -> Optional[tuple[Provider, Lifetime]]:
        with self._lock:
            return self._providers.get(key)

    def _get_singleton(self, key: Any, provider: Provider, scope: Scope) -> Any:
        with self._lock:
            if key not in self._singletons:
                self._singletons[key] = provider(scope)
            return self._singletons[key]

    def scope(self) -> Scope:
        return Scope(self)


class Scope(AbstractContextManager["Scope"]):
    """하나의 요청(작업) 단위. 스코프 인스턴스를 캐시하고 닫을 때 해제합니다."""

    def __init__(self, container: Container) -> None:
        self.container = container
        self._instances: dict[Any, Any] = {}
        self._order: list[Any] = []
        self.closed = False

    def __exit__(self, *args: Any) -> Literal[False]:
        self.close()
        return False

    def get(self, key: Any) -> Optional[Any]:
        """``key`` 에 바인딩된 인스턴스를 리턴합니다. 바인딩이 없으면 ``None``."""
        if key in self._instances:
            return self._instances[key]

        entry = self.container._get_provider(key)  # pylint: disable=protected-access
        if entry is None:
            return None

        provider, lifetime = entry
        if lifetime is Lifetime.SINGLETON:
            return self.container._get_singleton(key, provider, self)  # pylint: disable=protected-access

        instance = provider(self)
        self._instances[key] = instance
        self._order.append(instance)
        return instance

    def resolve(self, key: Any) -> Any:
        """``key`` 에 바인딩된 인스턴스를 리턴합니다.

        Raises:
            ResolutionError: 바인딩이 없는 경우.
        """
        instance = self.get(key)
        if instance is None:
            name = getattr(key, "__name__", repr(key))
            raise ResolutionError(f"No binding registered for {name}", key=key)
        return instance

    def close(self) -> None:
        """스코프 인스턴스를 생성 역순으로 해제합니다."""
        if self.closed:
            return
        self.closed = True
        for instance in reversed(self._order):
            dispose = getattr(instance, "dispose", None)
            if callable(dispose):
                dispose()
        self._instances.clear()
        self._order.clear()


def add_unit_of_work(
    container: Container,
    context_type: Type[Session],
    context_key: Optional[str] = None,
    *,
    context_maker: ContextMaker[Any],
    registry: Optional[ContextRegistry] = None,
) -> Container:
    """``context_type`` 에 대한 UnitOfWork 를 스코프 수명으로 등록합니다.

    ``context_key`` 가 주어지면 레지스트리에도 등록하여
    :meth:`UnitOfWorkFactory.get_unit_of_work` 로 찾을 수 있게 합니다.

    Raises:
        InvalidArgumentError: 키가 비어 있는 경우.
        DuplicateKeyError: 같은 키가 이미 등록된 경우.
    """
    if context_key is not None:
        get_registry(registry).register(context_key, context_type)

    uow_class = SqlAlchemyUnitOfWork[context_type]  # type: ignore
    container.add_scoped(
        unit_of_work_key(context_type), lambda _: uow_class(context_maker())
    )
    logger.debug("bound %s", uow_class)
    return container


def add_unit_of_work_factory(
    container: Container, registry: Optional[ContextRegistry] = None
) -> Container:
    """레지스트리를 싱글톤으로, Factory 를 스코프 수명으로 등록합니다.

    모든 컨텍스트를 :func:`add_unit_of_work` 로 등록한 뒤에 호출하세요.
    """
    container.add_singleton(ContextRegistry, get_registry(registry))
    container.add_scoped(
        UnitOfWorkFactory,
        lambda scope: UnitOfWorkFactory(scope, scope.resolve(ContextRegistry)),
    )
    return container


def add_unit_of_workspace(
    container: Container, workspace_maker: Callable[[], WorkspaceContext]
) -> Container:
    """:class:`UnitOfWorkspace` 를 스코프 수명으로 등록합니다."""
    container.add_scoped(UnitOfWorkspace, lambda _: UnitOfWorkspace(workspace_maker()))
    return container


def get_registered_contexts(registry: Optional[ContextRegistry] = None) -> dict[str, type]:
    """등록된 컨텍스트 목록(키 → 타입)을 리턴합니다. 디버깅용."""
    return get_registry(registry).items()
