import json
from collections.abc import Iterable
from http import HTTPStatus
from typing import Any

from django.contrib.messages import get_messages
from django.http import HttpResponse

RESEND_URL = "https://api.resend.test/emails"
FUNCTIONS_URL = "http://testserver/functions/v1"


def sent_emails(rsps) -> list[dict[str, Any]]:
    return [
        json.loads(call.request.body)
        for call in rsps.calls
        if call.request.url == RESEND_URL
    ]


def _assert_messages(response, expected_messages: list[tuple[int, str]]):
    msgs = list(get_messages(response.wsgi_request))
    assert len(msgs) == len(expected_messages), [m.message for m in msgs]
    for i, (level, message) in enumerate(expected_messages):
        assert msgs[i].level == level, msgs[i].level
        assert msgs[i].message == message, msgs[i].message


def assert_response(
    response: HttpResponse,
    status_code: HTTPStatus,
    *,
    messages: Iterable[tuple[int, str]] = (),
    json: Any = None,
    **response_fields: Any,
) -> None:
    assert response.status_code == status_code, response.content
    _assert_messages(response, list(messages))
    if json is not None:
        assert response.json() == json, response.json()

    default_fields = {"url": None}
    for key, value in (default_fields | response_fields).items():
        assert getattr(response, key, None) == value
