import pytest

from pizza_store import (
    AccountManager,
    DatabaseManager,
    MenuManager,
    OrderManager,
    Session,
    UserManager,
)


@pytest.fixture
def db(tmp_path):
    database = DatabaseManager(str(tmp_path / "pizza"), "5432", "tester")
    yield database
    database.close()


@pytest.fixture
def feed(monkeypatch):
    """script answers for input(); running out behaves like a closed stdin"""
    def _feed(*answers):
        remaining = iter(answers)

        def fake_input(prompt=""):
            try:
                return next(remaining)
            except StopIteration:
                raise EOFError from None

        monkeypatch.setattr("builtins.input", fake_input)
    return _feed


@pytest.fixture
def accounts(db):
    return AccountManager(db)


@pytest.fixture
def menu(db, accounts):
    return MenuManager(db, accounts)


@pytest.fixture
def orders(db, accounts):
    return OrderManager(db, accounts)


@pytest.fixture
def users(db, accounts):
    return UserManager(db, accounts)


@pytest.fixture
def alice(accounts):
    assert accounts.create_user("alice", "pw1", "555-1111")
    return Session("alice")


@pytest.fixture
def bob(accounts):
    assert accounts.create_user("bob", "pw2", "555-2222")
    return Session("bob")


@pytest.fixture
def driver(accounts, users):
    assert accounts.create_user("dana", "pw3", "555-3333")
    assert users.change_role("dana", "driver")
    return Session("dana")


@pytest.fixture
def manager():
    # seeded by DatabaseManager
    return Session("admin")
