from __future__ import annotations

import pytest

from rocal.core.auth import guard_redirect, is_public_path
from rocal.schemas.auth import Identity

IDENTITY = Identity(id="1", email="admin@example.com")


@pytest.mark.parametrize(
    ("path", "identity", "expected"),
    [
        ("/login", None, None),
        ("/login", IDENTITY, "/dashboard"),
        ("/dashboard", None, "/login"),
        ("/dashboard", IDENTITY, None),
        ("/", None, "/login"),
        ("/health", None, None),
        ("/static/style.css", None, None),
        ("/dashboard/records/3/delete", None, "/login"),
    ],
)
def test_guard_redirect(path, identity, expected):
    assert guard_redirect(path, identity) == expected


def test_public_paths():
    assert is_public_path("/health")
    assert is_public_path("/static/style.css")
    assert not is_public_path("/login")
    assert not is_public_path("/dashboard")
