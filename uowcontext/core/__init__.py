from .errors import (  # noqa
    DuplicateKeyError,
    InvalidArgumentError,
    ResolutionError,
    UnitOfWorkDisposedError,
    UnknownContextError,
    UoWContextError,
)
from .models import (  # noqa
    AbstractReadRepository,
    AbstractRepository,
    AbstractUnitOfWork,
    AbstractUnitOfWorkFactory,
    Predicate,
    QueryFunc,
    Selector,
)
