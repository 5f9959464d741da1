"""FastAPI 연동.

요청마다 하나의 :class:`~uowcontext.container.Scope` 를 열고 응답 후에 닫아,
요청마다 독립된 UnitOfWork 를 사용하도록 합니다. ::

    app = FastAPI()
    get_factory = unit_of_work_factory(container)

    @app.get("/customers")
    def list_customers(factory: UnitOfWorkFactory = Depends(get_factory)):
        repo = factory.get_unit_of_work("account").get_repository(Customer)
        ...
"""
from typing import Any, Callable, Generator

from fastapi import Depends

from uowcontext.container import Container, Scope
from uowcontext.factory import UnitOfWorkFactory
from uowcontext.uow import UnitOfWorkspace


def request_scope(container: Container) -> Callable[[], Generator[Scope, None, None]]:
    """요청 단위 스코프를 제공하는 FastAPI 의존성을 만듭니다."""

    def _scope() -> Generator[Scope, None, None]:
        with container.scope() as scope:
            yield scope

    return _scope


def unit_of_work_factory(container: Container) -> Callable[..., UnitOfWorkFactory]:
    """요청 스코프의 :class:`UnitOfWorkFactory` 를 제공하는 의존성."""
    get_scope = request_scope(container)

    def _factory(scope: Scope = Depends(get_scope)) -> UnitOfWorkFactory:
        return scope.resolve(UnitOfWorkFactory)

    return _factory


def unit_of_workspace(container: Container) -> Callable[..., Any]:
    """요청 스코프의 :class:`UnitOfWorkspace` 를 제공하는 의존성."""
    get_scope = request_scope(container)

    def _workspace(scope: Scope = Depends(get_scope)) -> UnitOfWorkspace:
        return scope.resolve(UnitOfWorkspace)

    return _workspace
