"""
Data Fetcher - Single responsibility: pull JSON from an HTTP endpoint

Failures never raise: the problem is reported through `on_problem`
and the console, and the caller gets None.
"""

from __future__ import annotations

import json
import typing
from typing import Any, Callable, Optional, Type, TypeVar, Union

import requests
from pydantic import BaseModel, ValidationError

from core.settings import FetchSettings
from core.logger import log_fetch, log_critical

T = TypeVar("T", bound=BaseModel)


def _model_in(annotation: Any) -> Optional[Type[BaseModel]]:
    """Return the BaseModel class an annotation refers to, if any."""
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return annotation
    for arg in typing.get_args(annotation):
        found = _model_in(arg)
        if found is not None:
            return found
    return None


def match_fields(model: Type[BaseModel], data: Any) -> Any:
    """
    Rename keys of `data` to the model's field names, ignoring case.

    Recurses into nested models and lists of models so that
    {"USER": {"Name": "x"}} validates against User(user=Inner(name=...)).
    Keys that match nothing are left alone.
    """
    if isinstance(data, list):
        return [match_fields(model, item) for item in data]
    if not isinstance(data, dict):
        return data

    lookup = {}
    for field_name, info in model.model_fields.items():
        # Validation goes by alias when one is set
        target = info.alias or field_name
        lookup[field_name.casefold()] = (target, info)
        if info.alias:
            lookup[info.alias.casefold()] = (target, info)

    matched = {}
    for key, value in data.items():
        entry = lookup.get(str(key).casefold())
        if entry is None:
            matched[key] = value
            continue
        name, info = entry
        nested = _model_in(info.annotation)
        if nested is not None:
            value = match_fields(nested, value)
        matched[name] = value
    return matched


class DataFetcher:
    """
    Synchronous JSON fetch helper.

    Usage:
        fetcher = DataFetcher(on_problem=print)
        recipe = fetcher.get_json(url, Recipe)   # Recipe | None
        text = fetcher.get_raw(url)              # str | None
    """

    def __init__(
        self,
        settings: Optional[FetchSettings] = None,
        session: Optional[requests.Session] = None,
        on_problem: Optional[Callable[[str], None]] = None,
    ):
        self.settings = settings or FetchSettings()
        self._session = session or requests.Session()
        self.on_problem = on_problem

    def get_raw(self, url: str) -> Optional[str]:
        """Fetch the response body as text. None on any HTTP/network failure."""
        try:
            return self._get(url)
        except requests.RequestException as e:
            self._report(f"HTTP request error: {e}")
            return None

    def get_json(self, url: str, model: Optional[Type[T]] = None) -> Union[T, Any, None]:
        """
        Fetch and decode JSON.

        With `model`, the payload is validated into that pydantic model with
        case-insensitive field matching. Without it, the decoded JSON value
        is returned as-is.
        """
        try:
            body = self._get(url)
        except requests.RequestException as e:
            self._report(f"HTTP request error: {e}")
            return None

        try:
            payload = json.loads(body)
            if model is None:
                return payload
            return model.model_validate(match_fields(model, payload))
        except (ValueError, ValidationError) as e:
            self._report(f"JSON parse error: {e}")
            return None

    def close(self) -> None:
        self._session.close()

    def _get(self, url: str) -> str:
        log_fetch(">>>", url)
        response = self._session.get(url, timeout=self.settings.timeout_s)
        response.raise_for_status()
        log_fetch("<<<", f"{url} [{response.status_code}]")
        return response.text

    def _report(self, message: str) -> None:
        log_critical(f"[FETCH] {message}")
        if self.on_problem:
            self.on_problem(message)
