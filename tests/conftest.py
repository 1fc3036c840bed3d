from __future__ import annotations

import pytest

from autofix.schemas.user import StoredUser, User
from autofix.services.kv_store import InMemoryKeyValueStore
from autofix.services.passwords import hash_password
from autofix.services.tenant_resolver import TenantResolver
from autofix.services.user_directory import UserDirectory
from tests.fixtures_data import OTHER_OWNER, OWNER, STAFF_OF_OWNER


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def resolver():
    return TenantResolver("autofix")


@pytest.fixture
def owner():
    return User(**OWNER)


@pytest.fixture
def other_owner():
    return User(**OTHER_OWNER)


@pytest.fixture
def staff():
    return User(**STAFF_OF_OWNER)


@pytest.fixture
def directory(kv, resolver):
    directory = UserDirectory(kv, resolver)
    password_hash = hash_password("secret-pass")
    for record in (OWNER, OTHER_OWNER, STAFF_OF_OWNER):
        directory.add(StoredUser(**record, password_hash=password_hash))
    return directory
