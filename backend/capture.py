# backend/capture.py
import logging
import os
import uuid
from dataclasses import dataclass

from backend import config
from backend.errors import CaptureFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Screenshot:
    id: str
    path: str


def ensure_output_dir(output_dir: str = None) -> str:
    output_dir = output_dir or config.SCREENSHOTS_DIR
    os.makedirs(output_dir, exist_ok=True)
    return output_dir


def new_screenshot_id() -> str:
    return uuid.uuid4().hex


async def capture(session, full_page: bool, output_dir: str = None) -> Screenshot:
    """Render the page to ``<output_dir>/<id>.png``.

    A half-written file is removed before CaptureFailure is raised.
    """
    shot_id = new_screenshot_id()
    file_path = None
    try:
        file_path = os.path.join(ensure_output_dir(output_dir), f"{shot_id}.png")
        await session.page.screenshot(path=file_path, full_page=full_page, type="png")
    except Exception as e:
        if file_path and os.path.exists(file_path):
            try:
                os.remove(file_path)
            except OSError as rm_err:
                logger.error("Could not remove partial screenshot %s: %s", file_path, rm_err)
        raise CaptureFailure(f"Failed to capture screenshot: {e}") from e
    logger.info("Screenshot written to %s", file_path)
    return Screenshot(id=shot_id, path=file_path)
