# backend/consent.py
"""Cookie-consent banner dismissal.

There is no common DOM contract for consent banners, so the resolver tries
several strategies in order, most specific first:

1. known consent platforms, clicked through their exact accept controls
2. buttons and links whose text contains a consent phrase
3. forced removal of common banner containers
4. the phrase pass again inside every child frame

Every step runs regardless of what the previous ones did (banners can re-render
after being accepted) and a failing step never stops the next one.
"""
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Optional

from backend.errors import ConsentResolutionError

logger = logging.getLogger(__name__)

# --- Phrase table: intent category -> lowercase phrases in many languages ---
CONSENT_TERMS = MappingProxyType(
    {
        "accept": frozenset(
            {
                "accept", "accept all", "accepter", "accepta", "acepto",
                "akzeptieren", "accetta", "aceitar", "принять", "принимаю",
                "akceptuję",
            }
        ),
        "agree": frozenset(
            {
                "agree", "i agree", "согласен", "согласиться", "zgadzam się",
                "agree to all", "zustimmen", "ich stimme zu", "j'accepte",
                "estoy de acuerdo",
            }
        ),
        "allow": frozenset(
            {
                "allow", "allow all", "zulassen", "toestaan", "permitir",
                "разрешить", "consenti", "autoriser", "zezwalaj",
            }
        ),
        "consent": frozenset(
            {
                "consent", "give consent", "ich willige ein", "consentir",
                "согласие", "autorizzare", "autorizo",
            }
        ),
        "acknowledge": frozenset(
            {
                "ok", "okay", "ok, i agree", "так", "ок", "d'accord",
                "got it", "ich habe verstanden", "entendido", "понятно",
                "je comprends", "capito", "rozumiem",
            }
        ),
        "dismiss": frozenset(
            {
                "close", "cerrar", "schliessen", "fechar", "закрыть", "fermer",
                "chiudi", "zamknij",
            }
        ),
        "confirm": frozenset(
            {
                "confirm", "confirmar", "bestätigen", "подтвердить", "confirmer",
                "confermare", "potwierdzać",
            }
        ),
    }
)

ALL_TERMS = frozenset().union(*CONSENT_TERMS.values())
FRAME_TERMS = CONSENT_TERMS["accept"] | CONSENT_TERMS["agree"] | CONSENT_TERMS["allow"]


def matches_consent_term(text: Optional[str], terms=ALL_TERMS) -> bool:
    # Containment, not equality
    text = (text or "").lower().strip()
    if not text:
        return False
    return any(term in text for term in terms)


@dataclass(frozen=True)
class ConsentSystem:
    name: str
    globals: tuple
    markers: tuple
    accept: tuple
    container: str


KNOWN_SYSTEMS = (
    ConsentSystem(
        name="cookiebot",
        globals=("CookieConsent",),
        markers=("#CybotCookiebotDialog",),
        accept=(
            "#CybotCookiebotDialogBodyLevelButtonAccept",
            "#CybotCookiebotDialogBodyButtonAccept",
            "#CybotCookiebotDialogBodyLevelButtonLevelOptinAllowAll",
        ),
        container="#CybotCookiebotDialog",
    ),
    ConsentSystem(
        name="onetrust",
        globals=(),
        markers=("#onetrust-banner-sdk",),
        accept=("#onetrust-accept-btn-handler",),
        container="#onetrust-consent-sdk, #onetrust-banner-sdk",
    ),
    ConsentSystem(
        name="didomi",
        globals=("Didomi",),
        markers=("#didomi-host",),
        accept=("#didomi-notice-agree-button",),
        container="#didomi-host",
    ),
    ConsentSystem(
        name="trustarc",
        globals=(),
        markers=("#truste-consent-track",),
        accept=("#truste-consent-button",),
        container="#truste-consent-track",
    ),
)

_VISIBLE = ':not([hidden]):not([aria-hidden="true"]):not([style*="display: none"]):not([style*="visibility: hidden"])'

GENERIC_CANDIDATE_SELECTORS = (
    ", ".join(f'button[aria-label*="{hint}" i]{_VISIBLE}' for hint in ("accept", "agree", "cookie")),
    f"button{_VISIBLE}",
    'a.accept:not([hidden]), a.allow:not([hidden]), a.agree:not([hidden])',
)

FRAME_CANDIDATE_SELECTORS = ("button, a",)

BANNER_SELECTORS = (
    '[id*="cookie-banner" i]', '[class*="cookie-banner" i]',
    '[id*="cookie-consent" i]', '[class*="cookie-consent" i]',
    '[id*="cookie-notice" i]', '[class*="cookie-notice" i]',
    '[id*="gdpr" i]', '[class*="gdpr" i]',
    ".cc-window", ".cc-banner",
    "#CybotCookiebotDialog", "#onetrust-banner-sdk", "#onetrust-consent-sdk",
    "#didomi-host", "#truste-consent-track",
    "#cookiebanner", "#cookie-law-info-bar",
)

# --- Scripts evaluated in the page or frame ---
CLICK_KNOWN_SYSTEMS_JS = """
(systems) => {
  const handled = [];
  for (const s of systems) {
    const present = s.globals.some(g => window[g]) ||
      s.markers.some(m => document.querySelector(m) !== null);
    if (!present) continue;
    let clicked = 0;
    document.querySelectorAll(s.accept.join(', ')).forEach(el => {
      try { el.click(); clicked++; } catch (e) {}
    });
    if (clicked) handled.push(s.name);
  }
  return handled;
}
"""

COLLECT_CANDIDATES_JS = """
({selectors, skip}) => {
  const skipped = (el) => skip.some(sel => {
    try { return el.closest(sel) !== null; } catch (e) { return false; }
  });
  const found = [];
  for (const sel of selectors) {
    for (const el of document.querySelectorAll(sel)) {
      if (!found.includes(el) && !skipped(el)) found.push(el);
    }
  }
  window.__consentCandidates = found;
  return found.map(el => el.textContent || '');
}
"""

CLICK_CANDIDATES_JS = """
(indices) => {
  const found = window.__consentCandidates || [];
  let clicked = 0;
  for (const i of indices) {
    const el = found[i];
    if (!el || !el.isConnected) continue;
    try { el.click(); clicked++; } catch (e) {}
  }
  delete window.__consentCandidates;
  return clicked;
}
"""

REMOVE_BANNERS_JS = """
(selectors) => {
  let removed = 0;
  document.querySelectorAll(selectors.join(', ')).forEach(el => {
    try { el.remove(); removed++; } catch (e) {}
  });
  return removed;
}
"""


@dataclass
class FrameOutcome:
    url: str
    clicked: int = 0
    error: Optional[str] = None


def _system_payload(system: ConsentSystem) -> dict:
    return {
        "name": system.name,
        "globals": list(system.globals),
        "markers": list(system.markers),
        "accept": list(system.accept),
    }


async def click_known_systems(target, systems=KNOWN_SYSTEMS) -> List[str]:
    handled = await target.evaluate(CLICK_KNOWN_SYSTEMS_JS, [_system_payload(s) for s in systems])
    return list(handled or [])


async def click_matching(target, selectors, terms=ALL_TERMS, skip=()) -> int:
    texts = await target.evaluate(
        COLLECT_CANDIDATES_JS, {"selectors": list(selectors), "skip": list(skip)}
    )
    indices = [i for i, text in enumerate(texts or []) if matches_consent_term(text, terms)]
    clicked = await target.evaluate(CLICK_CANDIDATES_JS, indices)
    return int(clicked or 0)


async def remove_banners(target, selectors=BANNER_SELECTORS) -> int:
    removed = await target.evaluate(REMOVE_BANNERS_JS, list(selectors))
    return int(removed or 0)


async def resolve_frames(page) -> List[FrameOutcome]:
    outcomes = []
    main = page.main_frame
    for frame in page.frames:
        if frame is main:
            continue
        outcome = FrameOutcome(url=getattr(frame, "url", ""))
        try:
            outcome.clicked = await click_matching(frame, FRAME_CANDIDATE_SELECTORS, FRAME_TERMS)
        except Exception as e:
            # Cross-origin or detached frames are skipped
            outcome.error = str(e)
            logger.debug("Skipping frame %s: %s", outcome.url, e)
        outcomes.append(outcome)
    return outcomes


async def _attempt(step: str, fn, *args, default=None, **kwargs):
    try:
        return await fn(*args, **kwargs)
    except Exception as e:
        logger.warning("%s", ConsentResolutionError(f"Cookie consent step '{step}' failed: {e}"))
        return default


async def resolve_consent(session) -> None:
    """Try to dismiss cookie-consent banners on the session's page. Never raises."""
    try:
        page = session.page
        handled = await _attempt("known systems", click_known_systems, page, default=[])
        skip = [s.container for s in KNOWN_SYSTEMS if s.name in handled]
        clicked = await _attempt("phrase match", click_matching, page, GENERIC_CANDIDATE_SELECTORS, ALL_TERMS, skip, default=0)
        removed = await _attempt("banner removal", remove_banners, page, default=0)
        frames = await _attempt("frames", resolve_frames, page, default=[])
        logger.info(
            "Cookie consent: systems=%s clicked=%d removed=%d frames=%d (failed %d)",
            handled,
            clicked,
            removed,
            len(frames),
            sum(1 for f in frames if f.error),
        )
    except Exception as e:
        logger.error("Error handling cookie consent: %s", e)
