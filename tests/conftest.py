# pylint: disable=redefined-outer-name
"""pytest 에서 사용될 전역 Fixture들을 정의합니다."""
from __future__ import annotations

from typing import Callable

import pytest
from sqlalchemy.pool import StaticPool

from uowcontext.factory import ContextRegistry
from uowcontext.orm import ContextMaker, context_maker
from uowcontext.test.unit import FakeContext
from tests.app.models import AccountContext, Base, CatalogContext, Customer

AddCustomersFunc = Callable[[int], list[int]]
""":func:`add_customers` 픽스처 함수 타입."""


def memory_context_maker(context_type=AccountContext) -> ContextMaker:
    """테이블이 생성된 In-memory SQLite 컨텍스트 팩토리를 리턴합니다."""
    return context_maker(
        context_type,
        "sqlite://",
        meta=Base.metadata,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def make_context() -> ContextMaker[AccountContext]:
    """매번 새로운 DB를 사용하는 :class:`AccountContext` 팩토리 픽스처."""
    return memory_context_maker(AccountContext)


@pytest.fixture
def make_catalog_context() -> ContextMaker[CatalogContext]:
    return memory_context_maker(CatalogContext)


@pytest.fixture
def context(make_context) -> AccountContext:
    session = make_context()
    yield session
    session.close()


@pytest.fixture
def add_customers(make_context) -> AddCustomersFunc:
    """``n`` 명의 고객을 ``customer-00`` 형식의 이름으로 저장하고 id 목록을 리턴합니다."""

    def wrapper(n: int) -> list[int]:
        with make_context() as session:
            customers = [
                Customer(name=f"customer-{i:02d}", email=f"c{i}@example.com")
                for i in range(n)
            ]
            session.add_all(customers)
            session.commit()
            return [c.id for c in customers]

    return wrapper


@pytest.fixture
def registry() -> ContextRegistry:
    """테스트마다 새로운 레지스트리. 전역 레지스트리는 건드리지 않습니다."""
    return ContextRegistry()


@pytest.fixture
def fake_context() -> FakeContext:
    return FakeContext()
