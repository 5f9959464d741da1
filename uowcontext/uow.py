"""UnitOfWork 패턴 모듈.

SqlAlchemy를 이용한 기본 구현체를 제공합니다.

UoW 는 하나의 컨텍스트를 소유하고, 엔티티 타입마다 하나의 레포지터리를
만들어 재사용하며(identity map), 선택적으로 명시적 트랜잭션을 열어
:meth:`commit` 의 결과에 따라 커밋/롤백합니다. ::

    with SqlAlchemyUnitOfWork[AccountContext](make_context()) as uow:
        uow.open_transaction()
        uow.get_repository(Customer).insert(Customer(name="kim"))
        uow.commit()  # flush + 트랜잭션 커밋 + dispose

이 클래스들은 스레드 안전하지 않습니다. 하나의 UoW는 한 번에 하나의 요청
(스코프)에서만 사용되어야 합니다.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Session, SessionTransaction

from uowcontext.core import (
    AbstractRepository,
    AbstractUnitOfWork,
    InvalidArgumentError,
    UnitOfWorkDisposedError,
)
from uowcontext.core._logging import get_logger
from uowcontext.orm import WorkspaceContext
from uowcontext.repo import SqlAlchemyRepository

C = TypeVar("C", bound=Session)
E = TypeVar("E")

RepoKey = tuple[type, str]
"""레포지터리 캐시 키: (엔티티 타입, 레포지터리 구현 클래스 이름)."""

logger = get_logger("uowcontext.uow")


@dataclass(frozen=True)
class CommitResult:
    """:meth:`commit` 의 결과.

    실패한 경우 ``error`` 에 원래 예외가 담깁니다.
    """

    error: Optional[BaseException] = None
    transaction_committed: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


def _qualname(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


class _UnitOfWorkBase(AbstractUnitOfWork):
    """레포지터리 캐시와 트랜잭션/커밋/해제 로직을 구현합니다."""

    context: Session

    def __init__(self, context: Session) -> None:
        if context is None:
            raise InvalidArgumentError("context must not be None")
        self.context = context
        self._repositories: dict[RepoKey, AbstractRepository[Any]] = {}
        self._transaction: Optional[SessionTransaction] = None
        self.disposed = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}[{type(self.context).__name__}]"

    @property
    def transaction(self) -> Optional[SessionTransaction]:
        return self._transaction

    def _check_disposed(self) -> None:
        if self.disposed:
            raise UnitOfWorkDisposedError(f"{self!r} is already disposed")

    def get_repository(
        self,
        entity_class: Type[E],
        repo_class: Type[SqlAlchemyRepository] = SqlAlchemyRepository,
    ) -> SqlAlchemyRepository[E]:
        """``entity_class`` 에 대한 레포지터리를 리턴합니다.

        같은 UoW 안에서는 엔티티 타입(과 레포지터리 구현)마다 항상 같은
        인스턴스를 돌려줍니다.
        """
        self._check_disposed()
        key = (entity_class, _qualname(repo_class))
        repo = self._repositories.get(key)
        if repo is None:
            repo = repo_class(entity_class, self.context)
            self._repositories[key] = repo
            logger.debug("created repository %r for %r", repo, self)
        return repo  # type: ignore

    def open_transaction(self) -> None:
        """트랜잭션을 엽니다. 이미 열려 있으면 아무것도 하지 않습니다."""
        self._check_disposed()
        if self._transaction is not None:
            return

        if self.context.in_transaction():
            # 조회 등으로 이미 시작된 세션 트랜잭션을 그대로 사용합니다.
            self._transaction = self.context.get_transaction()
        else:
            self._transaction = self.context.begin()
        logger.debug("transaction opened for %r", self)

    def _save_changes(self) -> CommitResult:
        try:
            if self._transaction is None:
                self.context.commit()
                return CommitResult()

            self.context.flush()
            self._transaction.commit()
            return CommitResult(transaction_committed=True)
        except Exception as e:  # pylint: disable=broad-except
            return CommitResult(error=e)

    def commit(self) -> CommitResult:
        """등록된 변경 사항을 저장소에 반영합니다.

        - 트랜잭션이 열려 있으면 성공 시 커밋 후 UoW를 해제합니다.
        - 실패 시 트랜잭션이 열려 있으면 롤백 후 UoW를 해제하고, 원래 예외를
          그대로 다시 발생시킵니다.
        - 트랜잭션 없이 실패하면 세션만 롤백하고 예외를 다시 발생시킵니다.
        """
        self._check_disposed()
        had_transaction = self._transaction is not None
        result = self._save_changes()

        if result.ok:
            if had_transaction:
                logger.debug("transaction committed for %r", self)
                self.dispose()
            return result

        logger.exception("commit failed for %r", self, exc_info=result.error)
        try:
            if had_transaction:
                self._transaction.rollback()  # type: ignore
                logger.debug("transaction rolled back for %r", self)
            else:
                self.context.rollback()
        except Exception:  # pylint: disable=broad-except
            # 원래 예외를 다시 발생시켜야 하므로 롤백 실패는 기록만 합니다.
            logger.exception("rollback failed for %r", self)
        finally:
            if had_transaction:
                self.dispose()

        assert result.error is not None
        raise result.error

    def dispose(self) -> None:
        """트랜잭션을 먼저 정리한 뒤 컨텍스트를 닫습니다. 여러 번 호출해도 됩니다."""
        if self._transaction is not None:
            transaction, self._transaction = self._transaction, None
            if transaction.is_active:
                transaction.close()

        if not self.disposed:
            self.context.close()
            self._repositories.clear()
            self.disposed = True


class SqlAlchemyUnitOfWork(_UnitOfWorkBase, Generic[C]):
    """``SqlAlchemy`` ORM을 이용한 UnitOfWork 패턴 구현입니다.

    컨텍스트 타입으로 파라메터화 됩니다. ::

        uow = SqlAlchemyUnitOfWork[AccountContext](AccountContext(engine))
    """

    context: C

    def __init__(self, context: C) -> None:
        super().__init__(context)


class UnitOfWorkspace(_UnitOfWorkBase):
    """단일 :class:`WorkspaceContext` 에 묶인 UnitOfWork 입니다.

    키나 타입으로 컨텍스트를 고를 필요가 없는 단일 스키마 애플리케이션에서
    사용합니다.
    """

    context: WorkspaceContext

    def __init__(self, workspace_context: WorkspaceContext) -> None:
        super().__init__(workspace_context)
