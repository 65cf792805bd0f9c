# backend/models.py
from dataclasses import dataclass, field
from typing import Optional

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class CaptureRequest:
    url: str
    width: int = 1280
    height: int = 800
    wait_time_ms: int = 1000
    full_page: bool = False
    handle_cookie_banners: bool = True


@dataclass(frozen=True)
class CaptureResult:
    success: bool
    id: Optional[str] = None
    path: Optional[str] = None
    error: Optional[str] = field(default=None)

    @classmethod
    def ok(cls, id: str, path: str) -> "CaptureResult":
        return cls(success=True, id=id, path=path)

    @classmethod
    def failed(cls, error: str) -> "CaptureResult":
        return cls(success=False, error=error)

    def to_dict(self) -> dict:
        if self.success:
            return {"success": True, "id": self.id, "path": self.path}
        return {"success": False, "error": self.error}


# --- HTTP body shape, camelCase keys as the clients send them ---
class ScreenshotForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: AnyHttpUrl
    width: int = Field(1280, ge=320, le=3840)
    height: int = Field(800, ge=240, le=2160)
    wait_time: int = Field(1000, ge=0, le=10000, alias="waitTime")
    full_page: bool = Field(False, alias="fullPage")
    handle_cookie_banners: bool = Field(True, alias="handleCookieBanners")

    def to_request(self) -> CaptureRequest:
        return CaptureRequest(
            url=str(self.url),
            width=self.width,
            height=self.height,
            wait_time_ms=self.wait_time,
            full_page=self.full_page,
            handle_cookie_banners=self.handle_cookie_banners,
        )

    @classmethod
    def from_form(cls, form) -> "ScreenshotForm":
        """Build from form-encoded or multipart fields, which all arrive as strings.

        Blank numbers fall back to their defaults, ``fullPage`` is on only for
        ``"true"`` and ``handleCookieBanners`` is off only for ``"false"``.
        """
        data = {}
        if form.get("url") is not None:
            data["url"] = form.get("url")
        for key in ("width", "height", "waitTime"):
            value = form.get(key)
            if value not in (None, ""):
                data[key] = value
        data["fullPage"] = form.get("fullPage") == "true"
        data["handleCookieBanners"] = form.get("handleCookieBanners") != "false"
        return cls.model_validate(data)
