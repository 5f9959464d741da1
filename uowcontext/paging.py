"""페이지네이션 엔진.

임의의 시퀀스나 SqlAlchemy ``Query`` 를 받아 페이지 정보(:class:`Paginate`)로
변환합니다. 저장소에 독립적이며, 조건 필터링은 하지 않고 받은 것을 셉니다.

Example: ::

    page = to_paginate(range(45), index=0, size=20, count=45)
    assert page.pages == 3 and page.has_next
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar

from pydantic import BaseModel, Field
from sqlalchemy.orm import Query

from uowcontext.core.errors import InvalidArgumentError

T = TypeVar("T")
S = TypeVar("S")
R = TypeVar("R")

Converter = Callable[[list[S]], Iterable[R]]
"""페이지의 아이템 목록 전체를 다른 형태의 목록으로 바꾸는 함수."""


@dataclass(frozen=True)
class Paginate(Generic[T]):
    """쿼리 결과의 한 페이지.

    Attributes:
        index_from: 페이지 번호의 시작값 (보통 0).
        index: 요청한 페이지 번호.
        size: 페이지당 아이템 수. 0 이하면 페이지를 나누지 않습니다.
        filtered: 조건이 적용된 후의 전체 아이템 수.
        count: 조건이 적용되기 전의 전체 아이템 수.
        pages: 전체 페이지 수.
        items: 현재 페이지의 아이템들.
    """

    index_from: int = 0
    index: int = 0
    size: int = 0
    filtered: int = 0
    count: int = 0
    pages: int = 0
    items: list[T] = field(default_factory=list)

    @property
    def has_previous(self) -> bool:
        return self.index - self.index_from > 0

    @property
    def has_next(self) -> bool:
        return self.index - self.index_from + 1 < self.pages

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    @staticmethod
    def empty() -> Paginate[Any]:
        """아이템이 하나도 없는 페이지를 만듭니다."""
        return Paginate()

    @staticmethod
    def from_page(source: Paginate[S], converter: Converter[S, R]) -> Paginate[R]:
        """이미 만들어진 페이지의 아이템만 변환한 새 페이지를 만듭니다.

        다시 쿼리하지 않으며, 아이템 외의 페이지 정보는 그대로 복사합니다.
        """
        return Paginate(
            index_from=source.index_from,
            index=source.index,
            size=source.size,
            filtered=source.filtered,
            count=source.count,
            pages=source.pages,
            items=list(converter(source.items)),
        )


def count_pages(count: int, size: int) -> int:
    """전체 페이지 수를 계산합니다. ``size <= 0`` 이면 한 페이지입니다."""
    if size <= 0:
        return 1
    return math.ceil(count / size)


def to_paginate(
    source: Iterable[Any],
    index: int,
    size: int,
    count: int,
    index_from: int = 0,
    converter: Optional[Converter[Any, Any]] = None,
) -> Paginate[Any]:
    """``source`` 를 페이지로 만듭니다.

    Args:
        source: 이미 조건이 적용된 ``Query`` 또는 임의의 iterable.
        index: 요청할 페이지 번호.
        size: 페이지당 아이템 수. 0 이하이면 모든 아이템을 돌려줍니다.
        count: 조건 적용 전 전체 아이템 수. 호출하는 쪽에서 넘겨줍니다.
        index_from: 페이지 번호의 시작값.
        converter: 잘라낸 아이템 목록에 적용할 변환 함수.

    Raises:
        InvalidArgumentError: ``index_from > index`` 인 경우.
    """
    if index_from > index:
        raise InvalidArgumentError(
            f"index_from: {index_from} > index: {index}, must index_from <= index"
        )

    offset = (index - index_from) * size

    if isinstance(source, Query):
        filtered = source.count()
        items = (
            source.offset(offset).limit(size).all() if size > 0 else source.all()
        )
    else:
        materialized = list(source)
        filtered = len(materialized)
        items = materialized[offset : offset + size] if size > 0 else materialized

    if converter:
        items = list(converter(items))

    return Paginate(
        index_from=index_from,
        index=index,
        size=size,
        filtered=filtered,
        count=count,
        pages=count_pages(count, size),
        items=list(items),
    )


class DataTableResponse(BaseModel):
    """jQuery DataTables 서버사이드 처리 응답 형식."""

    draw: int
    records_total: int = Field(alias="recordsTotal")
    records_filtered: int = Field(alias="recordsFiltered")
    data: list[Any]

    model_config = {"populate_by_name": True}


def to_datatable_response(page: Paginate[Any], draw: int) -> DataTableResponse:
    """페이지를 DataTables 응답으로 변환합니다."""
    return DataTableResponse(
        draw=draw,
        recordsTotal=page.count,
        recordsFiltered=page.filtered,
        data=page.items,
    )
