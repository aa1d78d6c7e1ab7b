"""Request type and JSON helpers shared by the web gate."""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from django.http import HttpRequest, JsonResponse

if TYPE_CHECKING:
    from django import forms
    from pydantic import BaseModel

    from cercle.gears import SessionResolver
    from cercle.i18n import LocaleProvider
    from cercle.inits import DependencyInjector


class CercleRequest(HttpRequest):
    """Request type for views with dependencies, locale and resolver attached."""

    di: DependencyInjector
    locale: LocaleProvider
    resolver: SessionResolver


def dump(model: BaseModel | None) -> dict[str, Any] | None:
    return None if model is None else model.model_dump(mode="json")


def dump_all(models: list[Any] | None) -> list[dict[str, Any]]:
    return [model.model_dump(mode="json") for model in models or []]


def error_response(
    message: str, status: int = HTTPStatus.BAD_REQUEST, **extra: Any  # noqa: ANN401
) -> JsonResponse:
    return JsonResponse({"error": message, **extra}, status=status)


def form_errors(form: forms.Form) -> JsonResponse:
    errors = {field: [str(error) for error in errs] for field, errs in form.errors.items()}
    return JsonResponse({"errors": errors}, status=HTTPStatus.BAD_REQUEST)


def read_json_body(request: HttpRequest) -> dict[str, Any]:
    """Decode a JSON object body; an empty body reads as ``{}``.

    Raises:
        ValueError: If the body is not a JSON object.
    """
    if not request.body:
        return {}

    data = json.loads(request.body)
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object")  # noqa: TRY004
    return data
