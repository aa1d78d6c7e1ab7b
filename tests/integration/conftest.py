import re
from datetime import timedelta
from urllib.parse import urlparse

import pytest
import responses
from django.test import Client
from django.utils import timezone
from pytest_factoryboy import register

from cercle.adapters.db.django.models import Event, UserRole
from cercle.links.identity import SESSION_KEY, issue_access_token
from tests.integration.factories import (
    EventFactory,
    ProfileFactory,
    UserFactory,
    UserRoleFactory,
)

pytest.register_assert_rewrite("tests.integration.utils")

from tests.integration.utils import FUNCTIONS_URL, RESEND_URL  # noqa: E402

register(UserFactory)
register(ProfileFactory)

RESEND_MESSAGE_ID = "re_msg_123"


@pytest.fixture(autouse=True)
def _django_db(transactional_db):
    pass


@pytest.fixture(autouse=True)
def resend_settings(settings):
    settings.RESEND_API_KEY = "re_test_key"
    settings.RESEND_API_URL = RESEND_URL
    settings.APP_URL = "http://testserver"
    settings.CONTACT_EMAIL = "contact@cercle.test"


def _member(role):
    user = UserFactory()
    ProfileFactory(user=user, is_presenter=role == UserRole.Role.PRESENTER)
    UserRoleFactory(user=user, role=role)
    return user


@pytest.fixture(name="active_user")
def active_user_fixture():
    return _member(UserRole.Role.PARTICIPANT)


@pytest.fixture(name="admin_member")
def admin_member_fixture():
    return _member(UserRole.Role.ADMIN)


@pytest.fixture(name="presenter_member")
def presenter_member_fixture():
    return _member(UserRole.Role.PRESENTER)


@pytest.fixture
def authenticated_client(client, active_user):
    client.force_login(active_user)
    return client


@pytest.fixture
def panel_client(client, admin_member):
    client.force_login(admin_member)
    return client


@pytest.fixture(name="event")
def event_fixture(admin_member):
    return EventFactory(created_by=admin_member)


@pytest.fixture(name="draft_event")
def draft_event_fixture(admin_member):
    return EventFactory(created_by=admin_member, status=Event.Status.DRAFT)


@pytest.fixture
def bearer():
    def make(user, *, ttl=3600):
        expires_at = int(timezone.now().timestamp()) + ttl
        return f"Bearer {issue_access_token(user.pk, expires_at)}"

    return make


@pytest.fixture
def expire_session():
    """Store an already expired token in the client's session."""

    def expire(client, user):
        session = client.session
        expires_at = int(timezone.now().timestamp()) - 60
        session[SESSION_KEY] = {
            "access_token": issue_access_token(user.pk, expires_at),
            "expires_at": expires_at,
            "refresh_token": "stale",
            "user_id": user.pk,
        }
        session.save()

    return expire


def _forward_to_functions(request):
    """Serve a function call made through ``requests`` with the test client."""
    response = Client().post(
        urlparse(request.url).path,
        data=request.body or b"",
        content_type="application/json",
        headers={"Authorization": request.headers.get("Authorization", "")},
    )
    return response.status_code, {"Content-Type": "application/json"}, response.content


@pytest.fixture(name="http_mock")
def http_mock_fixture():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(
            responses.POST,
            RESEND_URL,
            json={"id": RESEND_MESSAGE_ID},
        )
        yield rsps


@pytest.fixture
def remote_functions(settings, http_mock):
    """Point the panel at a functions deployment reached over HTTP."""
    settings.FUNCTIONS_BASE_URL = FUNCTIONS_URL
    http_mock.add_callback(
        responses.POST,
        re.compile(rf"{FUNCTIONS_URL}/.*"),
        callback=_forward_to_functions,
    )
    return http_mock

