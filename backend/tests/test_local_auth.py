from __future__ import annotations

import pytest

from rocal.core.errors import AuthProviderError
from rocal.services.auth_providers import SIGNED_IN, SIGNED_OUT, USER_UPDATED


def test_sign_in_by_email_or_username(local_provider, admin_user):
    by_email = local_provider.sign_in("ADMIN@example.com", "admin123")
    by_username = local_provider.sign_in("admin", "admin123")

    assert by_email.user.id == str(admin_user.id)
    assert by_username.user.email == "admin@example.com"


def test_sign_in_rejects_wrong_password(local_provider, admin_user):
    with pytest.raises(AuthProviderError, match="Invalid login credentials"):
        local_provider.sign_in("admin@example.com", "nope")


def test_sign_in_emits_event(local_provider, admin_user):
    events = []
    local_provider.on_auth_state_change(lambda event, session: events.append(event))

    local_provider.sign_in("admin", "admin123")

    assert events == [SIGNED_IN]


def test_current_session_round_trip(local_provider, admin_user):
    session = local_provider.sign_in("admin", "admin123")

    assert local_provider.get_current_session(session) == session


def test_deactivated_user_is_signed_out(local_provider, admin_user, db_session):
    session = local_provider.sign_in("admin", "admin123")
    events = []
    local_provider.on_auth_state_change(lambda event, current: events.append(event))
    admin_user.is_active = False
    db_session.commit()

    assert local_provider.get_current_session(session) is None
    assert events == [SIGNED_OUT]


def test_changed_profile_emits_user_updated(local_provider, admin_user, db_session):
    session = local_provider.sign_in("admin", "admin123")
    events = []
    local_provider.on_auth_state_change(lambda event, current: events.append(event))
    admin_user.email = "boss@example.com"
    db_session.commit()

    current = local_provider.get_current_session(session)

    assert current.user.email == "boss@example.com"
    assert events == [USER_UPDATED]


def test_tampered_token_is_rejected(local_provider, admin_user):
    session = local_provider.sign_in("admin", "admin123")
    forged = session.model_copy(update={"access_token": session.access_token + "x"})

    assert local_provider.get_current_session(forged) is None
