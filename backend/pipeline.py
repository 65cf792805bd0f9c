# backend/pipeline.py
import asyncio
import logging

from backend.blocker import attach_blocker
from backend.browser import close_session, open_session
from backend.capture import capture
from backend.consent import resolve_consent
from backend.errors import BlockerInitFailure, ScreenshotError
from backend.models import CaptureRequest, CaptureResult
from backend.navigation import navigate

logger = logging.getLogger(__name__)


async def take_screenshot(request: CaptureRequest, open_session=open_session, output_dir: str = None) -> CaptureResult:
    """Run one capture end to end.

    Always returns a CaptureResult and always leaves the browser session
    closed, whichever step fails.
    """
    session = None
    try:
        session = await open_session(request.width, request.height)

        try:
            await attach_blocker(session)
        except BlockerInitFailure as e:
            logger.warning("Continuing without content blocking: %s", e)

        await navigate(session, request.url)

        if request.handle_cookie_banners:
            await resolve_consent(session)

        await asyncio.sleep(request.wait_time_ms / 1000)

        shot = await capture(session, request.full_page, output_dir=output_dir)

        await close_session(session)
        session = None
        return CaptureResult.ok(shot.id, shot.path)
    except ScreenshotError as e:
        logger.error("Screenshot error for %s: %s", request.url, e)
        return CaptureResult.failed(str(e))
    except Exception as e:
        logger.exception("Unexpected screenshot error for %s", request.url)
        return CaptureResult.failed(str(e) or "An unknown error occurred")
    finally:
        if session is not None:
            await close_session(session)
            session = None
