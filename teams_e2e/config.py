"""Shared configuration for the team E2E harness.

Values are resolved in this order:
1. real environment variables,
2. `.env.defaults` at the repository root,
3. the built-in defaults below.

Set E2E_BASE_URL to point the suite at another instance of the application
and DATABASE_URL at the database that instance uses; fixtures are written to
that database directly.
"""
from __future__ import annotations

import os
from contextlib import contextmanager
from copy import deepcopy
from dataclasses import dataclass, replace
from typing import Iterator, Literal
from urllib.parse import urljoin, urlparse

from teams_e2e.env_defaults import get_env_default

OrgAddressForm = Literal["subdomain", "path"]

_BUILTIN_DEFAULTS = {
    "E2E_BASE_URL": "http://localhost:3000",
    "DATABASE_URL": "postgresql://postgres:@localhost:5450/calendso",
    "PLAYWRIGHT_HEADLESS": "true",
    "E2E_BROWSER": "chromium",
    "E2E_ACTION_TIMEOUT_MS": "10000",
    "E2E_NAVIGATION_TIMEOUT_MS": "30000",
    "E2E_EXPECT_TIMEOUT_MS": "10000",
    "E2E_ORG_ADDRESS_FORM": "subdomain",
}

_TRUTHY = {"1", "true", "yes", "on"}


def _lookup(key: str) -> str | None:
    value = os.getenv(key)
    if value is not None and value != "":
        return value
    value = get_env_default(key)
    if value is not None and value != "":
        return value
    return _BUILTIN_DEFAULTS.get(key)


def _flag(key: str) -> bool:
    return (_lookup(key) or "").strip().lower() in _TRUTHY


def _int(key: str) -> int:
    raw = _lookup(key)
    try:
        return int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise RuntimeError(f"{key} must be an integer (milliseconds), got {raw!r}")


def _team_billing_enabled() -> bool:
    """Mirror how the application decides whether team creation needs checkout.

    An explicit IS_TEAM_BILLING_ENABLED wins. Otherwise billing is on when all
    Stripe keys are configured and hosted features are enabled, either by flag
    or because the web app URL is a hosted one.
    """
    explicit = _lookup("IS_TEAM_BILLING_ENABLED")
    if explicit is not None:
        return explicit.strip().lower() in _TRUTHY

    stripe_enabled = all(
        _lookup(key)
        for key in ("STRIPE_CLIENT_ID", "NEXT_PUBLIC_STRIPE_PUBLIC_KEY", "STRIPE_PRIVATE_KEY")
    )
    if not stripe_enabled:
        return False

    if _flag("NEXT_PUBLIC_HOSTED_CAL_FEATURES"):
        return True
    webapp_url = _lookup("NEXT_PUBLIC_WEBAPP_URL") or ""
    hostname = urlparse(webapp_url).hostname or ""
    return hostname.endswith(".cal.com") or hostname.endswith(".cal.dev")


@dataclass
class E2ETarget:
    """Concrete host, database and timing settings for one test run."""

    base_url: str
    database_url: str
    browser_type: str = "chromium"
    headless: bool = True
    action_timeout_ms: int = 10000
    navigation_timeout_ms: int = 30000
    expect_timeout_ms: int = 10000
    org_address_form: OrgAddressForm = "subdomain"
    team_billing_enabled: bool = False


class E2ETestConfig:
    """Configuration for the team E2E suite.

    All values come from the environment (or `.env.defaults`) and are read
    once, when the instance is created.
    """

    def __init__(self) -> None:
        self._active = self._load()
        self._announce()

    @staticmethod
    def _load() -> E2ETarget:
        form = (_lookup("E2E_ORG_ADDRESS_FORM") or "subdomain").lower()
        if form not in ("subdomain", "path"):
            raise RuntimeError(
                f"Invalid E2E_ORG_ADDRESS_FORM: {form}\n"
                f"Must be 'subdomain' or 'path'"
            )

        browser_type = (_lookup("E2E_BROWSER") or "chromium").lower()
        if browser_type not in ("chromium", "firefox", "webkit"):
            raise RuntimeError(
                f"Invalid E2E_BROWSER: {browser_type}\n"
                f"Must be 'chromium', 'firefox' or 'webkit'"
            )

        database_url = _lookup("DATABASE_URL") or ""
        if not database_url:
            raise RuntimeError(
                "DATABASE_URL is not set.\n"
                "Point it at the database of the application under test, "
                "or add it to .env.defaults"
            )

        return E2ETarget(
            base_url=(_lookup("E2E_BASE_URL") or "").rstrip("/"),
            database_url=database_url,
            browser_type=browser_type,
            headless=_flag("PLAYWRIGHT_HEADLESS"),
            action_timeout_ms=_int("E2E_ACTION_TIMEOUT_MS"),
            navigation_timeout_ms=_int("E2E_NAVIGATION_TIMEOUT_MS"),
            expect_timeout_ms=_int("E2E_EXPECT_TIMEOUT_MS"),
            org_address_form=form,  # type: ignore[arg-type]
            team_billing_enabled=_team_billing_enabled(),
        )

    def _announce(self) -> None:
        print(
            f"[CONFIG] Target {self._active.base_url} "
            f"(org form={self._active.org_address_form}, "
            f"billing={'on' if self._active.team_billing_enabled else 'off'})"
        )

    # ---- active target helpers --------------------------------------------------
    @property
    def target(self) -> E2ETarget:
        return self._active

    @property
    def base_url(self) -> str:
        return self._active.base_url

    @property
    def database_url(self) -> str:
        return self._active.database_url

    @property
    def browser_type(self) -> str:
        return self._active.browser_type

    @property
    def playwright_headless(self) -> bool:
        return self._active.headless

    @property
    def action_timeout_ms(self) -> int:
        return self._active.action_timeout_ms

    @property
    def navigation_timeout_ms(self) -> int:
        return self._active.navigation_timeout_ms

    @property
    def expect_timeout_ms(self) -> int:
        return self._active.expect_timeout_ms

    @property
    def org_address_form(self) -> OrgAddressForm:
        return self._active.org_address_form

    @property
    def team_billing_enabled(self) -> bool:
        return self._active.team_billing_enabled

    @contextmanager
    def override(self, **changes) -> Iterator[E2ETarget]:
        """Temporarily replace fields of the active target.

        The original target is deep-copied so changes made inside the block
        never leak into later tests in the same process.
        """
        previous = self._active
        self._active = replace(deepcopy(previous), **changes)
        try:
            yield self._active
        finally:
            self._active = previous

    # ---- utility helpers --------------------------------------------------------
    def url(self, path: str) -> str:
        """Return an absolute URL for the provided path."""
        return urljoin(self.base_url.rstrip("/") + "/", path.lstrip("/"))


# Singleton instance - initialized on first import
settings = E2ETestConfig()
