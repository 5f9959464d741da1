"""컨텍스트 레지스트리와 UnitOfWork Factory 단위 테스트."""
import threading

import pytest

from uowcontext.container import Container, add_unit_of_work, add_unit_of_work_factory
from uowcontext.core import (
    DuplicateKeyError,
    InvalidArgumentError,
    ResolutionError,
    UnknownContextError,
)
from uowcontext.factory import ContextRegistry, UnitOfWorkFactory
from uowcontext.test.unit import FakeContext
from uowcontext.uow import SqlAlchemyUnitOfWork
from tests.app.models import AccountContext, CatalogContext


@pytest.fixture
def container(registry: ContextRegistry) -> Container:
    container = Container()
    add_unit_of_work(
        container, AccountContext, "account", context_maker=FakeContext, registry=registry
    )
    add_unit_of_work_factory(container, registry)
    return container


def test_register_duplicate_key_fails_naming_existing_context(registry: ContextRegistry):
    registry.register("account", AccountContext)

    with pytest.raises(DuplicateKeyError, match="AccountContext") as exc_info:
        registry.register("account", CatalogContext)

    assert exc_info.value.existing is AccountContext
    assert registry.get("account") is AccountContext


def test_register_duplicate_key_fails_even_for_same_type(registry: ContextRegistry):
    registry.register("account", AccountContext)
    with pytest.raises(DuplicateKeyError):
        registry.register("account", AccountContext)


@pytest.mark.parametrize("key", ["", "   ", None])
def test_register_blank_key_fails(registry: ContextRegistry, key):
    with pytest.raises(InvalidArgumentError):
        registry.register(key, AccountContext)
    assert len(registry) == 0


def test_default_registry_is_a_singleton():
    assert ContextRegistry.default() is ContextRegistry.default()


def test_registry_items_is_a_snapshot(registry: ContextRegistry):
    registry.register("account", AccountContext)
    snapshot = registry.items()
    registry.register("catalog", CatalogContext)

    assert snapshot == {"account": AccountContext}
    assert registry.keys() == ["account", "catalog"]


def test_concurrent_registration_of_same_key_succeeds_once(registry: ContextRegistry):
    errors = []
    barrier = threading.Barrier(8)

    def register():
        barrier.wait()
        try:
            registry.register("account", AccountContext)
        except DuplicateKeyError as e:
            errors.append(e)

    threads = [threading.Thread(target=register) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(errors) == 7
    assert registry.items() == {"account": AccountContext}


def test_factory_requires_provider_and_registry(registry: ContextRegistry):
    with pytest.raises(InvalidArgumentError):
        UnitOfWorkFactory(None, registry)
    with pytest.raises(InvalidArgumentError):
        UnitOfWorkFactory(Container().scope(), None)


def test_has_context(container: Container):
    with container.scope() as scope:
        factory = scope.resolve(UnitOfWorkFactory)

        assert factory.has_context("account")
        assert not factory.has_context("catalog")
        assert not factory.has_context("")
        assert not factory.has_context("  ")
        assert not factory.has_context(None)


def test_get_unit_of_work_by_key(container: Container):
    with container.scope() as scope:
        factory = scope.resolve(UnitOfWorkFactory)
        uow = factory.get_unit_of_work("account")

        assert isinstance(uow, SqlAlchemyUnitOfWork)
        assert isinstance(uow.context, FakeContext)
        assert uow is factory.get_unit_of_work("account")
        assert uow is factory.get_unit_of_work_for(AccountContext)

    assert uow.disposed, "scope should dispose its unit of works"


def test_each_scope_gets_its_own_unit_of_work(container: Container):
    with container.scope() as scope1, container.scope() as scope2:
        uow1 = scope1.resolve(UnitOfWorkFactory).get_unit_of_work("account")
        uow2 = scope2.resolve(UnitOfWorkFactory).get_unit_of_work("account")

        assert uow1 is not uow2
        assert uow1.context is not uow2.context


def test_unknown_key_lists_registered_keys(container: Container):
    with container.scope() as scope:
        factory = scope.resolve(UnitOfWorkFactory)

        with pytest.raises(UnknownContextError, match="'account'") as exc_info:
            factory.get_unit_of_work("payment")

    assert exc_info.value.key == "payment"
    assert exc_info.value.available == ["account"]


def test_unknown_key_with_empty_registry(registry: ContextRegistry):
    factory = UnitOfWorkFactory(Container().scope(), registry)
    with pytest.raises(UnknownContextError, match="Available contexts: none"):
        factory.get_unit_of_work("payment")


def test_blank_key_lookup_fails(container: Container):
    with container.scope() as scope:
        with pytest.raises(InvalidArgumentError):
            scope.resolve(UnitOfWorkFactory).get_unit_of_work(" ")


def test_registered_key_without_binding_fails_to_resolve(registry: ContextRegistry):
    registry.register("catalog", CatalogContext)
    factory = UnitOfWorkFactory(Container().scope(), registry)

    with pytest.raises(ResolutionError, match="CatalogContext"):
        factory.get_unit_of_work("catalog")


def test_get_unit_of_work_for_none_fails(container: Container):
    with container.scope() as scope:
        factory = scope.resolve(UnitOfWorkFactory)
        with pytest.raises(InvalidArgumentError):
            factory.get_unit_of_work_for(None)


def test_unbound_context_type_fails_to_resolve(container: Container):
    with container.scope() as scope:
        factory = scope.resolve(UnitOfWorkFactory)
        with pytest.raises(ResolutionError):
            factory.get_unit_of_work_for(CatalogContext)


def test_factory_register_adds_to_shared_registry(container: Container, registry):
    with container.scope() as scope:
        scope.resolve(UnitOfWorkFactory).register("catalog", CatalogContext)

    with container.scope() as scope:
        assert scope.resolve(UnitOfWorkFactory).has_context("catalog")
    assert "catalog" in registry
