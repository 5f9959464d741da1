"""UoWContext - SqlAlchemy 기반 Repository / UnitOfWork / Factory / Pagination."""
from uowcontext.core import (  # noqa
    AbstractReadRepository,
    AbstractRepository,
    AbstractUnitOfWork,
    AbstractUnitOfWorkFactory,
    DuplicateKeyError,
    InvalidArgumentError,
    ResolutionError,
    UnitOfWorkDisposedError,
    UnknownContextError,
    UoWContextError,
)
from uowcontext.container import (  # noqa
    Container,
    Scope,
    add_unit_of_work,
    add_unit_of_work_factory,
    add_unit_of_workspace,
    get_registered_contexts,
)
from uowcontext.factory import ContextRegistry, UnitOfWorkFactory  # noqa
from uowcontext.orm import WorkspaceContext, context_maker  # noqa
from uowcontext.ordering import order_by_name  # noqa
from uowcontext.paging import Paginate, to_datatable_response, to_paginate  # noqa
from uowcontext.repo import SqlAlchemyReadRepository, SqlAlchemyRepository  # noqa
from uowcontext.uow import CommitResult, SqlAlchemyUnitOfWork, UnitOfWorkspace  # noqa
