# backend/main.py
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from backend import config
from backend.capture import ensure_output_dir
from backend.models import ScreenshotForm
from backend.pipeline import take_screenshot

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    output_dir = ensure_output_dir()
    logger.info("Screenshots will be written to %s", output_dir)
    yield


app = FastAPI(lifespan=lifespan)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=400)


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()))
    return f"{field}: {first.get('msg')}" if field else str(first.get("msg"))


@app.get("/")
def index():
    return PlainTextResponse("pageshot is running")


# --- Accepts a JSON object or form fields ---
@app.post("/screenshot")
async def screenshot(request: Request):
    content_type = request.headers.get("content-type", "").lower()
    try:
        if content_type.startswith(FORM_CONTENT_TYPES):
            form = ScreenshotForm.from_form(await request.form())
        else:
            body = await request.json()
            if not isinstance(body, dict):
                return _bad_request("Request body must be an object")
            form = ScreenshotForm.model_validate(body)
    except ValidationError as e:
        return _bad_request(_first_error(e))
    except ValueError:
        return _bad_request("Request body must be JSON or form data")

    result = await take_screenshot(form.to_request())
    if result.success:
        return result.to_dict()
    return JSONResponse(result.to_dict(), status_code=500)


if __name__ == "__main__":
    uvicorn.run("backend.main:app", host=config.HOST, port=config.PORT)
