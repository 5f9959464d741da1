"""setup.cfg 기반 컨텍스트 설정 테스트."""
from pathlib import Path
from textwrap import dedent

import pytest
from sqlalchemy.pool import StaticPool

from uowcontext.config import ContextConfig, configure, import_object, load_setupcfg
from uowcontext.container import Container
from uowcontext.core import InvalidArgumentError
from uowcontext.factory import ContextRegistry, UnitOfWorkFactory
from tests.app.models import AccountContext, Base, CatalogContext, Customer

SETUP_CFG = """
[metadata]
name = myapp

[uowcontext:account]
context = tests.app.models:AccountContext
url = sqlite://
metadata = tests.app.models:Base.metadata

[uowcontext:catalog]
context = tests.app.models:CatalogContext
url = sqlite:///catalog.db
echo = false
"""


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    (tmp_path / "setup.cfg").write_text(dedent(SETUP_CFG))
    return tmp_path


def test_load_setupcfg(project_dir: Path):
    account, catalog = load_setupcfg(project_dir)

    assert account.key == "account"
    assert account.context_type is AccountContext
    assert account.metadata is Base.metadata
    assert catalog.key == "catalog"
    assert catalog.context_type is CatalogContext
    assert catalog.metadata is None


def test_load_setupcfg_without_file(tmp_path: Path):
    assert load_setupcfg(tmp_path) == []


def test_load_setupcfg_requires_context(tmp_path: Path):
    (tmp_path / "setup.cfg").write_text("[uowcontext:account]\nurl = sqlite://\n")
    with pytest.raises(InvalidArgumentError, match="context"):
        load_setupcfg(tmp_path)


def test_import_object_requires_attribute():
    assert import_object("tests.app.models:Base.metadata") is Base.metadata
    with pytest.raises(InvalidArgumentError):
        import_object("tests.app.models")


def test_db_url_can_be_overridden_by_environment(monkeypatch):
    cfg = ContextConfig("account", AccountContext, url="sqlite://")
    assert cfg.get_db_poolclass() is StaticPool
    assert cfg.get_db_connect_args() == {"check_same_thread": False}

    monkeypatch.setenv("UOWCONTEXT_ACCOUNT_URL", "postgresql://localhost/account")
    assert cfg.get_db_url() == "postgresql://localhost/account"
    assert cfg.get_db_poolclass() is None
    assert cfg.get_db_connect_args() == {}


def test_configure_registers_unit_of_works(project_dir: Path):
    account_cfg, _ = load_setupcfg(project_dir)
    registry = ContextRegistry()
    container = configure(Container(), [account_cfg], registry)

    with container.scope() as scope:
        uow = scope.resolve(UnitOfWorkFactory).get_unit_of_work("account")
        assert isinstance(uow.context, AccountContext)
        uow.get_repository(Customer).insert(Customer(name="kim"))
        uow.commit()

    with container.scope() as scope:
        uow = scope.resolve(UnitOfWorkFactory).get_unit_of_work_for(AccountContext)
        found = uow.get_repository(Customer).find(Customer.name == "kim")
        assert found is not None

    assert registry.keys() == ["account"]
