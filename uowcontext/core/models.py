from __future__ import annotations

import abc
from contextlib import AbstractContextManager
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Generic,
    Iterable,
    Literal,
    Optional,
    Sequence,
    Type,
    TypeVar,
    Union,
    overload,
)

from sqlalchemy.orm import Query
from sqlalchemy.sql.elements import ColumnElement

if TYPE_CHECKING:
    from uowcontext.paging import Paginate

E = TypeVar("E")
"""엔티티 타입. 이 레이어는 엔티티 내용을 들여다보지 않습니다."""
C = TypeVar("C")

Predicate = ColumnElement[bool]
"""필터 조건. ``Customer.name == "kim"`` 같은 SqlAlchemy 조건식."""
QueryFunc = Callable[[Query], Query]
"""쿼리를 받아 정렬/Eager-load 등을 적용한 쿼리를 돌려주는 함수."""
Selector = Union[Callable[[Any], Any], Sequence[Any]]
"""프로젝션. 엔티티 변환 함수 또는 ``with_entities`` 에 넘길 컬럼 목록."""


class AbstractReadRepository(Generic[E], abc.ABC):
    """읽기 전용 Repository 패턴의 추상 인터페이스 입니다."""

    entity_class: Type[E]

    @abc.abstractmethod
    def find(
        self,
        predicate: Optional[Predicate],
        order_by: Optional[QueryFunc] = None,
        include: Optional[QueryFunc] = None,
        tracking_enabled: bool = True,
    ) -> Optional[E]:
        """조건에 맞는 첫 번째 엔티티를 조회합니다.

        못 찾을 경우 ``None`` 을 리턴합니다.
        """
        raise NotImplementedError

    @overload
    def get(
        self,
        predicate: Optional[Predicate] = None,
        order_by: Optional[QueryFunc] = None,
        include: Optional[QueryFunc] = None,
        index: int = 0,
        size: int = 20,
        tracking_enabled: bool = True,
        *,
        selector: None = None,
    ) -> Paginate[E]:
        ...

    @overload
    def get(
        self,
        predicate: Optional[Predicate] = None,
        order_by: Optional[QueryFunc] = None,
        include: Optional[QueryFunc] = None,
        index: int = 0,
        size: int = 20,
        tracking_enabled: bool = True,
        *,
        selector: Selector,
    ) -> Paginate[Any]:
        ...

    @abc.abstractmethod
    def get(
        self,
        predicate: Optional[Predicate] = None,
        order_by: Optional[QueryFunc] = None,
        include: Optional[QueryFunc] = None,
        index: int = 0,
        size: int = 20,
        tracking_enabled: bool = True,
        *,
        selector: Optional[Selector] = None,
    ) -> Paginate[Any]:
        """조건에 맞는 엔티티들을 페이지 단위로 조회합니다."""
        raise NotImplementedError


class AbstractRepository(AbstractReadRepository[E]):
    """읽기/쓰기 Repository 패턴의 추상 인터페이스 입니다.

    쓰기 작업은 변경 사항을 컨텍스트에 등록(stage)만 할 뿐, 저장소에 반영하지
    않습니다. 반영은 :meth:`AbstractUnitOfWork.commit` 이 담당합니다.
    """

    @abc.abstractmethod
    def insert(self, entity: E) -> E:
        raise NotImplementedError

    @abc.abstractmethod
    def update(self, entity: E) -> E:
        raise NotImplementedError

    @abc.abstractmethod
    def remove(self, entity: E) -> E:
        raise NotImplementedError

    def insert_range(self, entities: Iterable[E]) -> None:
        for entity in entities:
            self.insert(entity)

    def update_range(self, entities: Iterable[E]) -> list[E]:
        return [self.update(entity) for entity in entities]

    def remove_range(self, entities: Iterable[E]) -> None:
        for entity in entities:
            self.remove(entity)


class AbstractUnitOfWork(AbstractContextManager["AbstractUnitOfWork"]):
    """UnitOfWork 패턴의 추상 인터페이스입니다.

    UnitOfWork(UoW)는 하나의 컨텍스트(세션)를 소유하며, 엔티티 타입마다
    하나의 레포지터리를 만들어 재사용하고, 등록된 변경 사항을 한 번에
    커밋합니다.
    """

    def __enter__(self) -> AbstractUnitOfWork:
        """``with`` 블록에 진입했을때 실행되는 메소드입니다."""
        return self

    def __exit__(self, *args: Any) -> Literal[False]:
        """``with`` 블록에서 빠져나갈 때 자원을 반환합니다."""
        self.dispose()
        return False

    def __getitem__(self, entity_class: Type[E]) -> AbstractRepository[E]:
        return self.get_repository(entity_class)

    @abc.abstractmethod
    def get_repository(self, entity_class: Type[E]) -> AbstractRepository[E]:
        raise NotImplementedError

    @abc.abstractmethod
    def open_transaction(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def commit(self) -> Any:
        raise NotImplementedError

    @abc.abstractmethod
    def dispose(self) -> None:
        raise NotImplementedError


class AbstractUnitOfWorkFactory(abc.ABC):
    """여러 컨텍스트(스키마)에 대한 UnitOfWork를 키 또는 타입으로 찾아줍니다."""

    @abc.abstractmethod
    def get_unit_of_work(self, context_key: str) -> AbstractUnitOfWork:
        raise NotImplementedError

    @abc.abstractmethod
    def get_unit_of_work_for(self, context_type: Type[C]) -> AbstractUnitOfWork:
        raise NotImplementedError

    @abc.abstractmethod
    def has_context(self, context_key: str) -> bool:
        raise NotImplementedError
