from __future__ import annotations

import pytest

from fluent_http.request_options import RequestOptions


def test_defaults() -> None:
    options = RequestOptions()

    assert options.client_kwargs() == {
        "timeout": 30.0,
        "follow_redirects": True,
        "trust_env": False,
        "headers": {},
        "transport": None,
    }


def test_from_env_reads_timeout_and_user_agent(monkeypatch) -> None:
    monkeypatch.setenv("FLUENT_HTTP_TIMEOUT", "2.5")
    monkeypatch.setenv("FLUENT_HTTP_USER_AGENT", "batch-job/3")

    options = RequestOptions.from_env()

    assert options.timeout == 2.5
    assert options.headers == {"User-Agent": "batch-job/3"}


def test_from_env_without_variables_uses_defaults(monkeypatch) -> None:
    monkeypatch.delenv("FLUENT_HTTP_TIMEOUT", raising=False)
    monkeypatch.delenv("FLUENT_HTTP_USER_AGENT", raising=False)

    assert RequestOptions.from_env() == RequestOptions()


def test_from_env_zero_timeout_disables_timeout(monkeypatch) -> None:
    monkeypatch.setenv("FLUENT_HTTP_TIMEOUT", "0")

    assert RequestOptions.from_env().timeout is None


def test_from_env_rejects_non_numeric_timeout(monkeypatch) -> None:
    monkeypatch.setenv("FLUENT_HTTP_TIMEOUT", "soon")

    with pytest.raises(ValueError, match="FLUENT_HTTP_TIMEOUT"):
        RequestOptions.from_env()
