# backend/blocker.py
import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional
from urllib.parse import urlsplit

import httpx

from backend import config
from backend.errors import BlockerInitFailure

logger = logging.getLogger(__name__)

# Used when the filter lists cannot be fetched
BUNDLED_BLOCKED_HOSTS = frozenset(
    {
        "doubleclick.net",
        "adservice.google.com",
        "googlesyndication.com",
        "googletagservices.com",
        "googletagmanager.com",
        "google-analytics.com",
        "amazon-adsystem.com",
        "adnxs.com",
        "ads-twitter.com",
        "criteo.com",
        "criteo.net",
        "outbrain.com",
        "taboola.com",
        "moatads.com",
        "pubmatic.com",
        "rubiconproject.com",
        "openx.net",
        "casalemedia.com",
        "demdex.net",
        "scorecardresearch.com",
        "quantserve.com",
        "hotjar.com",
        "fullstory.com",
        "mouseflow.com",
        "bidswitch.net",
        "bluekai.com",
        "krxd.net",
        "rlcdn.com",
        "smartadserver.com",
        "adform.net",
        "yieldmo.com",
        "teads.tv",
    }
)

BUNDLED_HIDE_SELECTORS = (
    "ins.adsbygoogle",
    ".adsbygoogle",
    '[id^="div-gpt-ad"]',
    ".ad-slot",
    ".ad-banner",
    ".advertisement",
)

# [@@]||host^ with an optional $third-party option
_HOST_RULE = re.compile(r"^(@@)?\|\|([a-z0-9][a-z0-9.-]*\.[a-z]{2,})\^(\$third-party)?$")
# [domains]##selector; #@#, #?# and #$# rules are not supported
_HIDE_RULE = re.compile(r"^([^#]*)##(.+)$")


def _host_in(host: str, hosts) -> bool:
    host = (host or "").lower().rstrip(".")
    while host:
        if host in hosts:
            return True
        if "." not in host:
            return False
        host = host.split(".", 1)[1]
    return False


def _site(host: str) -> str:
    # Last two labels; good enough to tell first-party from third-party
    labels = (host or "").lower().rstrip(".").split(".")
    return ".".join(labels[-2:])


def _hostname(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    try:
        return urlsplit(url).hostname
    except ValueError:
        return None


@dataclass(frozen=True)
class BlockRuleset:
    hosts: frozenset
    source: str
    third_party_hosts: frozenset = frozenset()
    allowed_hosts: frozenset = frozenset()
    hide_selectors: tuple = ()
    domain_hide_selectors: dict = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.hosts) + len(self.third_party_hosts)

    def blocks_host(self, host: str, first_party_host: Optional[str] = None) -> bool:
        if _host_in(host, self.allowed_hosts):
            return False
        if _host_in(host, self.hosts):
            return True
        if _host_in(host, self.third_party_hosts):
            # No known initiator counts as third-party
            return first_party_host is None or _site(host) != _site(first_party_host)
        return False

    def blocks(self, url: str, first_party_url: Optional[str] = None) -> bool:
        host = _hostname(url)
        return bool(host) and self.blocks_host(host, _hostname(first_party_url))

    def cosmetic_script(self) -> Optional[str]:
        """Init script that hides the element-hiding rule matches of the current host."""
        if not self.hide_selectors and not self.domain_hide_selectors:
            return None
        data = json.dumps(
            {
                "generic": list(self.hide_selectors),
                "domains": {d: list(s) for d, s in self.domain_hide_selectors.items()},
            }
        )
        return COSMETIC_JS % data


COSMETIC_JS = """
(() => {
  const data = %s;
  const host = location.hostname;
  const selectors = data.generic.slice();
  for (const [domain, list] of Object.entries(data.domains)) {
    if (host === domain || host.endsWith('.' + domain)) selectors.push(...list);
  }
  if (!selectors.length) return;
  // One rule per selector so an unsupported selector only drops itself
  const css = selectors.map(s => s + ' { display: none !important; }').join('\\n');
  const apply = () => {
    const style = document.createElement('style');
    style.textContent = css;
    (document.head || document.documentElement).appendChild(style);
  };
  if (document.documentElement) apply();
  else document.addEventListener('DOMContentLoaded', apply);
})();
"""


@dataclass
class ParsedFilters:
    hosts: set = field(default_factory=set)
    third_party_hosts: set = field(default_factory=set)
    allowed_hosts: set = field(default_factory=set)
    # dicts used as insertion-ordered sets
    hide_selectors: dict = field(default_factory=dict)
    domain_hide_selectors: dict = field(default_factory=dict)

    def merge(self, other: "ParsedFilters") -> None:
        self.hosts |= other.hosts
        self.third_party_hosts |= other.third_party_hosts
        self.allowed_hosts |= other.allowed_hosts
        self.hide_selectors.update(other.hide_selectors)
        for domain, selectors in other.domain_hide_selectors.items():
            self.domain_hide_selectors.setdefault(domain, {}).update(selectors)

    def empty(self) -> bool:
        return not (self.hosts or self.third_party_hosts or self.hide_selectors or self.domain_hide_selectors)

    def to_ruleset(self, source: str) -> BlockRuleset:
        return BlockRuleset(
            hosts=frozenset(self.hosts),
            third_party_hosts=frozenset(self.third_party_hosts),
            allowed_hosts=frozenset(self.allowed_hosts),
            hide_selectors=tuple(self.hide_selectors),
            domain_hide_selectors={d: tuple(s) for d, s in self.domain_hide_selectors.items()},
            source=source,
        )


def parse_filter_list(text: str) -> ParsedFilters:
    parsed = ParsedFilters()
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("!") or line.startswith("["):
            continue
        m = _HOST_RULE.match(line.lower())
        if m:
            exception, host, third_party = m.groups()
            if exception:
                parsed.allowed_hosts.add(host)
            elif third_party:
                parsed.third_party_hosts.add(host)
            else:
                parsed.hosts.add(host)
            continue
        if "#@#" in line or "#?#" in line or "#$#" in line:
            continue
        m = _HIDE_RULE.match(line)
        if not m:
            continue
        domains, selector = m.group(1).strip(), m.group(2).strip()
        if not domains:
            parsed.hide_selectors[selector] = None
            continue
        for domain in domains.lower().split(","):
            domain = domain.strip()
            # ~domain only narrows a rule; those are left out
            if not domain or domain.startswith("~"):
                continue
            parsed.domain_hide_selectors.setdefault(domain, {})[selector] = None
    return parsed


def bundled_ruleset() -> BlockRuleset:
    return BlockRuleset(hosts=BUNDLED_BLOCKED_HOSTS, hide_selectors=BUNDLED_HIDE_SELECTORS, source="bundled")


async def _download(client: httpx.AsyncClient, urls) -> ParsedFilters:
    parsed = ParsedFilters()
    for url in urls:
        r = await client.get(url)
        try:
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise BlockerInitFailure(f"Filter list error: {e.response.status_code} {url}") from e
        parsed.merge(parse_filter_list(r.text))
    return parsed


async def fetch_ruleset(urls: Iterable[str], client: Optional[httpx.AsyncClient] = None) -> BlockRuleset:
    """Download the filter lists and keep their host and element-hiding rules.

    All lists together must arrive within the session timeout. Raises
    BlockerInitFailure if any list cannot be fetched or nothing usable was
    found in them.
    """
    urls = list(urls)
    if not urls:
        raise BlockerInitFailure("No filter list configured")
    timeout = config.TIMEOUT_MS / 1000
    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=timeout, follow_redirects=True)
    try:
        parsed = await asyncio.wait_for(_download(client, urls), timeout)
    except asyncio.TimeoutError as e:
        raise BlockerInitFailure(f"Filter lists timed out after {config.TIMEOUT_MS} ms") from e
    except httpx.HTTPError as e:
        raise BlockerInitFailure(f"Filter list unavailable: {e}") from e
    finally:
        if owns_client:
            await client.aclose()
    if parsed.empty():
        raise BlockerInitFailure("Filter lists contained no usable rules")
    return parsed.to_ruleset(",".join(urls))


# --- Process-wide ruleset, loaded on first use and never mutated ---
_ruleset: Optional[BlockRuleset] = None


async def get_ruleset() -> BlockRuleset:
    global _ruleset
    if _ruleset is not None:
        return _ruleset
    try:
        ruleset = await fetch_ruleset(config.BLOCKLIST_URLS)
        logger.info(
            "Loaded %d blocked hosts and %d hiding rules from %s",
            len(ruleset),
            len(ruleset.hide_selectors),
            ruleset.source,
        )
    except BlockerInitFailure as e:
        logger.warning("Using bundled blocklist: %s", e)
        ruleset = bundled_ruleset()
    _ruleset = ruleset
    return ruleset


def reset_ruleset() -> None:
    global _ruleset
    _ruleset = None


def _is_top_level_navigation(request) -> bool:
    try:
        return request.is_navigation_request() and request.frame.parent_frame is None
    except Exception:
        return False


def _initiator_url(request) -> Optional[str]:
    # A frame navigation belongs to the parent document; anything else to its frame
    try:
        frame = request.frame
        if request.is_navigation_request() and frame.parent_frame is not None:
            return frame.parent_frame.url
        return frame.url
    except Exception:
        return None


def make_route_handler(ruleset: BlockRuleset):
    async def handle_route(route):
        request = route.request
        if not _is_top_level_navigation(request) and ruleset.blocks(request.url, _initiator_url(request)):
            logger.debug("Blocked %s", request.url[:120])
            await route.abort()
            return
        await route.continue_()

    return handle_route


async def attach_blocker(session) -> None:
    """Enable request blocking and element hiding on the session's page, before navigation."""
    try:
        ruleset = await get_ruleset()
        await session.page.route("**/*", make_route_handler(ruleset))
        script = ruleset.cosmetic_script()
        if script:
            await session.page.add_init_script(script=script)
    except Exception as e:
        raise BlockerInitFailure(f"Failed to enable content blocking: {e}") from e
