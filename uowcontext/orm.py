"""ORM 어댑터 모듈.

컨텍스트 타입은 :class:`~sqlalchemy.orm.Session` 의 하위 클래스입니다. ::

    class AccountContext(Session):
        ...

    make_context = context_maker(AccountContext, "sqlite://")
    uow = SqlAlchemyUnitOfWork[AccountContext](make_context())
"""
from __future__ import annotations

import io
import logging
import re
import threading
from typing import Any, Callable, ClassVar, Optional, Type, TypeVar, Union, cast

from sqlalchemy import MetaData, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import Pool

S = TypeVar("S", bound=Session)

ContextMaker = Callable[[], S]
"""컨텍스트(Session) 팩토리 타입."""


def init_engine(
    meta: Optional[MetaData],
    url: str,
    connect_args: Optional[dict[str, Any]] = None,
    poolclass: Optional[Type[Pool]] = None,
    show_log: Union[bool, dict[str, Any]] = False,
    isolation_level: Optional[str] = None,
    drop_all: bool = False,
) -> Engine:
    """ORM Engine을 초기화 합니다.

    ``meta`` 가 주어지면 테이블을 생성합니다. ``drop_all`` 이 참이면 먼저
    모든 테이블을 삭제합니다.
    """
    logger = logging.getLogger("sqlalchemy.engine.Engine")
    out = io.StringIO()
    handler = logging.StreamHandler(out)
    logger.addHandler(handler)

    kwargs: dict[str, Any] = dict(connect_args=connect_args or {}, echo=bool(show_log))
    if poolclass:
        kwargs["poolclass"] = poolclass
    if isolation_level:
        kwargs["isolation_level"] = isolation_level

    try:
        engine = create_engine(url, **kwargs)

        if meta is not None:
            if drop_all:
                meta.drop_all(engine)
            meta.create_all(engine)
    finally:
        logger.removeHandler(handler)

    if show_log:
        log_txt = out.getvalue()
        if show_log is True:
            print("".join(re.findall("CREATE.*?\n\n", log_txt, re.DOTALL | re.I)))
        elif isinstance(show_log, dict):
            if show_log.get("all"):
                print(log_txt)

    return engine


def context_maker(
    context_type: Type[S],
    bind: Union[str, Engine],
    meta: Optional[MetaData] = None,
    **engine_kwargs: Any,
) -> ContextMaker[S]:
    """``context_type`` 인스턴스를 만드는 팩토리를 리턴합니다.

    Args:
        context_type: :class:`Session` 하위 클래스.
        bind: DB URL 또는 이미 만들어진 :class:`Engine`.
        meta: URL이 주어진 경우 테이블을 생성할 메타데이터.
    """
    engine = bind if isinstance(bind, Engine) else init_engine(meta, bind, **engine_kwargs)
    return cast(ContextMaker[S], sessionmaker(engine, class_=context_type))


class WorkspaceContext(Session):
    """단일 스키마 애플리케이션을 위한 컨텍스트의 기본 클래스.

    하위 클래스는 ``metadata`` 에 매핑된 테이블 정보를 지정합니다. 접속
    문자열로 만들면 URL 마다 엔진을 한 번만 만들고 테이블을 생성합니다. ::

        class ShopWorkspace(WorkspaceContext):
            metadata = Base.metadata

        uow = UnitOfWorkspace(ShopWorkspace("sqlite:///shop.db"))
    """

    metadata: ClassVar[Optional[MetaData]] = None
    engine_options: ClassVar[dict[str, Any]] = {}

    _engines: ClassVar[dict[tuple[type, str], Engine]] = {}
    _engines_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, connection_string: Optional[str] = None, **kwargs: Any):
        if connection_string and "bind" not in kwargs:
            kwargs["bind"] = self.get_engine(connection_string)
        super().__init__(**kwargs)
        self.connection_string = connection_string

    @classmethod
    def get_engine(cls, connection_string: str) -> Engine:
        key = (cls, connection_string)
        with cls._engines_lock:
            if key not in cls._engines:
                cls._engines[key] = init_engine(
                    cls.metadata, connection_string, **cls.engine_options
                )
            return cls._engines[key]

    @classmethod
    def dispose_engines(cls) -> None:
        """이 클래스로 만든 엔진들을 모두 정리합니다."""
        with cls._engines_lock:
            for key in [k for k in cls._engines if k[0] is cls]:
                cls._engines.pop(key).dispose()
