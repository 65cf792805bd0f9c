# backend/errors.py


class ScreenshotError(Exception):
    """Base class for every failure the capture pipeline knows about."""


class LaunchFailure(ScreenshotError):
    pass


class BlockerInitFailure(ScreenshotError):
    pass


class NavigationFailure(ScreenshotError):
    pass


class NavigationTimeout(NavigationFailure):
    pass


class HttpFailure(ScreenshotError):
    def __init__(self, status: int, status_text: str = ""):
        self.status = status
        self.status_text = status_text
        super().__init__(f"Page error: {status} {status_text}".rstrip())


class ConsentResolutionError(ScreenshotError):
    pass


class CaptureFailure(ScreenshotError):
    pass


class SessionCloseFailure(ScreenshotError):
    pass
