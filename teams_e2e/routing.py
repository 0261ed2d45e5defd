"""Organization-scoped addressing and routing switches.

An organization's pages are reachable two ways:
- subdomain form: `{orgSlug}.{host}/team/{teamSlug}/...`. Tests cannot rely on
  wildcard DNS, so the application is told which organization the request is
  for with the `x-cal-force-slug` header against the normal host.
- path form: `/org/{orgSlug}/team/{teamSlug}/...` on the root host.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from playwright.async_api import BrowserContext

from teams_e2e.browser import Browser
from teams_e2e.config import OrgAddressForm, settings

FORCE_SLUG_HEADER = "x-cal-force-slug"
FUTURE_ROUTES_COOKIE = "x-calcom-future-routes-override"


@dataclass(frozen=True)
class OrgAddress:
    org_slug: str
    form: OrgAddressForm = "subdomain"

    def url(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        if self.form == "path":
            return f"/org/{self.org_slug}{path}"
        return path


@asynccontextmanager
async def on_org_domain(
    browser: Browser, org_slug: str, form: Optional[OrgAddressForm] = None
) -> AsyncIterator[OrgAddress]:
    """Run a block as if browsing the organization's own address.

    Yields an OrgAddress; build every URL inside the block with `address.url()`
    so the block works unchanged in either form.
    """
    if not org_slug:
        raise ValueError("org_slug is required to browse an organization domain")
    address = OrgAddress(org_slug=org_slug, form=form or settings.org_address_form)
    if address.form == "subdomain":
        await browser.set_extra_headers({FORCE_SLUG_HEADER: org_slug})
    try:
        yield address
    finally:
        if address.form == "subdomain":
            await browser.set_extra_headers({})


async def enable_future_routes(context: BrowserContext, base_url: Optional[str] = None) -> None:
    """Opt this context into the alternate (app router) implementation."""
    await context.add_cookies(
        [{"name": FUTURE_ROUTES_COOKIE, "value": "1", "url": base_url or settings.base_url}]
    )
