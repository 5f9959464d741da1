"""레포지터리 패턴 구현.

쿼리 파이프라인은 항상 다음 순서로 적용됩니다. ::

    include -> filter(predicate) -> order_by -> (selector) -> paginate
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator, Iterable, Optional, Type, TypeVar

from sqlalchemy import inspect
from sqlalchemy.orm import Query, Session

from uowcontext.core import (
    AbstractReadRepository,
    AbstractRepository,
    InvalidArgumentError,
    Predicate,
    QueryFunc,
    Selector,
)
from uowcontext.core._logging import get_logger
from uowcontext.paging import Paginate, to_paginate

E = TypeVar("E")

logger = get_logger("uowcontext.repo")


class SqlAlchemyReadRepository(AbstractReadRepository[E]):
    """SqlAlchemy ORM을 저장소로 하는 읽기 전용 레포지터리입니다.

    컨텍스트를 소유하지 않으며, 컨텍스트를 소유한 UnitOfWork 보다 오래
    사용되어서는 안됩니다.
    """

    def __init__(self, entity_class: Type[E], context: Session):
        if context is None:
            raise InvalidArgumentError("context must not be None")
        self.entity_class = entity_class
        self.context = context

    def __repr__(self) -> str:
        return f"{type(self).__name__}[{self.entity_class.__name__}]"

    @contextmanager
    def _reader(self, tracking_enabled: bool) -> Generator[Session, None, None]:
        """쿼리를 실행할 세션을 돌려줍니다.

        ``tracking_enabled`` 가 거짓이면 같은 커넥션에 묶인 임시 세션을 사용하고,
        블록이 끝나면 닫습니다. 로드된 엔티티는 detached 상태가 되어 컨텍스트의
        변경 추적에 포함되지 않습니다.
        """
        if tracking_enabled:
            yield self.context
            return

        reader = Session(
            bind=self.context.connection(),
            join_transaction_mode="conditional_savepoint",
            autoflush=False,
        )
        try:
            yield reader
        finally:
            reader.close()

    def _build_query(
        self,
        session: Session,
        predicate: Optional[Predicate] = None,
        order_by: Optional[QueryFunc] = None,
        include: Optional[QueryFunc] = None,
    ) -> Query:
        query = session.query(self.entity_class)

        if include is not None:
            query = include(query)

        if predicate is not None:
            query = query.filter(predicate)

        if order_by is not None:
            query = order_by(query)

        return query

    def total_count(self) -> int:
        """조건 없이 엔티티 집합 전체의 행 수를 셉니다."""
        return self.context.query(self.entity_class).count()

    def find(
        self,
        predicate: Optional[Predicate],
        order_by: Optional[QueryFunc] = None,
        include: Optional[QueryFunc] = None,
        tracking_enabled: bool = True,
    ) -> Optional[E]:
        with self._reader(tracking_enabled) as session:
            return self._build_query(session, predicate, order_by, include).first()

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
        """엔티티를 페이지 단위로 조회합니다.

        ``selector`` 가 주어지면 다른 형태의 페이지를 만듭니다.

        - 함수: 잘라낸 페이지의 각 엔티티에 적용합니다.
        - 컬럼 목록: ``Query.with_entities`` 로 SQL 에서 프로젝션합니다.

        Example: ::

            page = repo.get(
                Customer.active.is_(True),
                order_by=lambda q: q.order_by(Customer.name),
                selector=lambda c: CustomerSummary(c.id, c.name),
            )
        """
        logger.debug("get %r index=%s size=%s tracking=%s", self, index, size, tracking_enabled)
        count = self.total_count()

        with self._reader(tracking_enabled) as session:
            query = self._build_query(session, predicate, order_by, include)

            if selector is None:
                return to_paginate(query, index, size, count)

            if isinstance(selector, (list, tuple)):
                return to_paginate(query.with_entities(*selector), index, size, count)

            return to_paginate(
                query,
                index,
                size,
                count,
                converter=lambda items: [selector(it) for it in items],
            )


class SqlAlchemyRepository(SqlAlchemyReadRepository[E], AbstractRepository[E]):
    """SqlAlchemy ORM을 저장소로 하는 :class:`AbstractRepository` 구현입니다.

    쓰기 작업은 컨텍스트의 변경 추적에만 등록되고 flush 되지 않습니다.
    """

    def insert(self, entity: E) -> E:
        self.context.add(entity)
        return entity

    def insert_range(self, entities: Iterable[E]) -> None:
        self.context.add_all(entities)

    def update(self, entity: E) -> E:
        """엔티티를 수정 대상으로 등록합니다.

        이미 컨텍스트가 추적하는 엔티티는 그대로 돌려주고, 그렇지 않은
        엔티티는 ``merge`` 한 뒤 컨텍스트에 속한 인스턴스를 돌려줍니다.
        """
        if entity in self.context:
            return entity

        state = inspect(entity, raiseerr=False)
        if state is not None and state.detached and state.key is not None:
            # 다른 세션에서 조회한 엔티티는 변경 이력을 유지한 채 다시 붙입니다.
            self.context.add(entity)
            return entity

        return self.context.merge(entity)

    def remove(self, entity: E) -> E:
        if entity not in self.context:
            entity = self.context.merge(entity)
        self.context.delete(entity)
        return entity