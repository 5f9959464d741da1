"""``uowcontext`` 에서 발생하는 에러 정의.

영구 저장소(SqlAlchemy)에서 발생한 에러는 감싸지 않고 그대로 전달합니다.
"""
from __future__ import annotations

from typing import Any, Iterable


class UoWContextError(Exception):
    """``uowcontext`` 와 관련된 모든 에러의 기본 클래스."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class InvalidArgumentError(UoWContextError, ValueError):
    """빈 키, ``None`` 컨텍스트, ``index_from > index`` 처럼 잘못된 인자."""

    ...


class DuplicateKeyError(UoWContextError, KeyError):
    """이미 등록된 컨텍스트 키를 다시 등록하려 할 때 발생합니다."""

    def __init__(self, key: str, existing: type):
        super().__init__(
            f"A context is already registered with the key '{key}'. "
            f"Keys must be unique. Existing context: {existing.__name__}"
        )
        self.key = key
        self.existing = existing


class UnknownContextError(UoWContextError, LookupError):
    """등록되지 않은 키로 UnitOfWork를 조회했을 때 발생합니다."""

    def __init__(self, key: str, available: Iterable[str]):
        self.key = key
        self.available = list(available)
        keys = ", ".join(f"'{k}'" for k in self.available) or "none"
        super().__init__(
            f"No context registered with the key '{key}'. "
            f"Available contexts: {keys}. "
            f"Make sure add_unit_of_work(container, <Context>, '{key}') was called."
        )


class ResolutionError(UoWContextError, LookupError):
    """컨테이너에 바인딩이 없어 인스턴스를 만들 수 없을 때 발생합니다.

    보통 등록 순서가 잘못된 설정 오류입니다.
    """

    def __init__(self, message: str, key: Any = None):
        super().__init__(message)
        self.key = key


class UnitOfWorkDisposedError(UoWContextError):
    """이미 해제(dispose)된 UnitOfWork를 사용하려 할 때 발생합니다."""

    ...
