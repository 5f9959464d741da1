"""여러 컨텍스트(스키마)를 위한 UnitOfWork Factory.

키(문자열) → 컨텍스트 타입 매핑은 프로세스 전역의 :class:`ContextRegistry`
에 보관되고, Factory는 요청(스코프)마다 만들어져 컨테이너에서 해당 스코프의
UnitOfWork 를 찾아줍니다. ::

    factory = scope.resolve(UnitOfWorkFactory)
    account_uow = factory.get_unit_of_work("account")
    catalog_uow = factory.get_unit_of_work_for(CatalogContext)
"""
from __future__ import annotations

import threading
from typing import Any, ClassVar, Optional, Protocol, Type, TypeVar

from uowcontext.core import (
    AbstractUnitOfWorkFactory,
    DuplicateKeyError,
    InvalidArgumentError,
    ResolutionError,
    UnknownContextError,
)
from uowcontext.core._logging import get_logger
from uowcontext.uow import SqlAlchemyUnitOfWork

C = TypeVar("C")

logger = get_logger("uowcontext.factory")


class Resolver(Protocol):
    """타입(또는 키)으로 인스턴스를 찾아주는 컨테이너 인터페이스.

    바인딩이 없으면 ``None`` 을 리턴해야 합니다.
    """

    def get(self, key: Any) -> Optional[Any]:
        ...


def unit_of_work_key(context_type: type) -> Any:
    """컨테이너에서 ``context_type`` 의 UnitOfWork 바인딩을 찾을 때 쓰는 키."""
    return SqlAlchemyUnitOfWork[context_type]  # type: ignore


def _is_blank(key: Optional[str]) -> bool:
    return key is None or not str(key).strip()


class ContextRegistry:
    """키 → 컨텍스트 타입 레지스트리.

    애플리케이션 시작 시에 등록되고 이후에는 읽기만 합니다. 모든 접근은
    락으로 보호되므로 일부만 등록된 항목이 보이지 않습니다.
    """

    _default: ClassVar[Optional[ContextRegistry]] = None
    _default_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self) -> None:
        self._contexts: dict[str, type] = {}
        self._lock = threading.Lock()

    @classmethod
    def default(cls) -> ContextRegistry:
        """프로세스 전역에서 공유되는 레지스트리를 리턴합니다."""
        with cls._default_lock:
            if cls._default is None:
                cls._default = cls()
            return cls._default

    def __repr__(self) -> str:
        return f"ContextRegistry{self.keys()}"

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._contexts

    def __len__(self) -> int:
        with self._lock:
            return len(self._contexts)

    def register(self, key: str, context_type: type) -> None:
        """``key`` 로 ``context_type`` 을 등록합니다.

        Raises:
            InvalidArgumentError: 키가 비어 있는 경우.
            DuplicateKeyError: 같은 키가 이미 등록된 경우 (타입이 같아도).
        """
        if _is_blank(key):
            raise InvalidArgumentError("context key must not be None or blank")

        with self._lock:
            existing = self._contexts.get(key)
            if existing is not None:
                raise DuplicateKeyError(key, existing)
            self._contexts[key] = context_type

        logger.debug("registered context '%s' -> %s", key, context_type.__name__)

    def get(self, key: str) -> Optional[type]:
        with self._lock:
            return self._contexts.get(key)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._contexts)

    def items(self) -> dict[str, type]:
        """등록된 컨텍스트의 스냅샷을 리턴합니다."""
        with self._lock:
            return dict(self._contexts)

    def clear(self) -> None:
        """모든 등록을 지웁니다. 테스트에서만 사용하세요."""
        with self._lock:
            self._contexts.clear()


def get_registry(registry: Optional[ContextRegistry] = None) -> ContextRegistry:
    """``registry`` 가 없으면 전역 레지스트리를 리턴합니다."""
    return registry if registry is not None else ContextRegistry.default()


class UnitOfWorkFactory(AbstractUnitOfWorkFactory):
    """키 또는 컨텍스트 타입으로 UnitOfWork 를 찾아주는 Factory 입니다.

    Params:
        - provider: 현재 스코프의 인스턴스를 찾아주는 컨테이너
          (:class:`uowcontext.container.Scope`).
        - registry: 키 → 컨텍스트 타입 레지스트리.
    """

    def __init__(self, provider: Resolver, registry: ContextRegistry) -> None:
        if provider is None:
            raise InvalidArgumentError("provider must not be None")
        if registry is None:
            raise InvalidArgumentError("registry must not be None")
        self.provider = provider
        self.registry = registry

    def register(self, key: str, context_type: type) -> None:
        self.registry.register(key, context_type)

    def get_unit_of_work(self, context_key: str) -> SqlAlchemyUnitOfWork[Any]:
        """키로 등록된 컨텍스트의 UnitOfWork 를 리턴합니다."""
        if _is_blank(context_key):
            raise InvalidArgumentError("context key must not be None or blank")

        context_type = self.registry.get(context_key)
        if context_type is None:
            raise UnknownContextError(context_key, self.registry.keys())

        return self._resolve(context_type, context_key)

    def get_unit_of_work_for(self, context_type: Type[C]) -> SqlAlchemyUnitOfWork[Any]:
        """컨텍스트 타입으로 UnitOfWork 를 리턴합니다."""
        if context_type is None:
            raise InvalidArgumentError("context type must not be None")
        return self._resolve(context_type)

    def has_context(self, context_key: str) -> bool:
        return not _is_blank(context_key) and context_key in self.registry

    def _resolve(self, context_type: type, context_key: Optional[str] = None):
        key = unit_of_work_key(context_type)
        uow = self.provider.get(key)
        if uow is None:
            hint = f"'{context_key}'" if context_key else ""
            raise ResolutionError(
                f"Could not resolve SqlAlchemyUnitOfWork[{context_type.__name__}] "
                f"from the container. Make sure "
                f"add_unit_of_work(container, {context_type.__name__}"
                f"{', ' + hint if hint else ''}) was called.",
                key=key,
            )
        return uow
