"""속성 이름으로 정렬 함수를 만드는 헬퍼."""
from __future__ import annotations

from sqlalchemy.orm import Query

from uowcontext.core import InvalidArgumentError, QueryFunc


def order_by_name(
    property_path: str, descending: bool = False, another_level: bool = False
) -> QueryFunc:
    """``"name"`` 이나 ``"customer.name"`` 같은 경로로 정렬 함수를 만듭니다.

    점으로 구분된 앞부분은 관계(relationship)로 보고 join 합니다.
    ``another_level`` 이 거짓이면 기존 정렬을 지우고, 참이면 기존 정렬 뒤에
    추가합니다 (``ThenBy``).

    Example: ::

        repo.get(order_by=order_by_name("customer.name", descending=True))
    """
    if not property_path or not property_path.strip():
        raise InvalidArgumentError("property path must not be empty")

    *relations, column_name = property_path.split(".")

    def _order(query: Query) -> Query:
        entity = query.column_descriptions[0]["entity"]
        for name in relations:
            relation = getattr(entity, name)
            query = query.join(relation)
            entity = relation.property.mapper.class_

        column = getattr(entity, column_name)
        clause = column.desc() if descending else column.asc()

        if not another_level:
            query = query.order_by(None)
        return query.order_by(clause)

    return _order
