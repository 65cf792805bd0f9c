# frontend/client.py
import requests


def request_screenshot(backend_url: str, url: str, width: int = 1280, height: int = 800,
                       wait_time: int = 1000, full_page: bool = False,
                       handle_cookie_banners: bool = True, timeout: float = 90) -> dict:
    payload = {
        "url": url,
        "width": width,
        "height": height,
        "waitTime": wait_time,
        "fullPage": full_page,
        "handleCookieBanners": handle_cookie_banners,
    }
    try:
        resp = requests.post(f"{backend_url.rstrip('/')}/screenshot", json=payload, timeout=timeout)
    except requests.RequestException as e:
        return {"success": False, "error": f"Backend unreachable: {e}"}
    try:
        body = resp.json()
    except ValueError:
        return {"success": False, "error": f"Backend error: {resp.status_code} {resp.text}"}
    if "success" not in body:
        body = {"success": False, "error": body.get("error") or f"Backend error: {resp.status_code}"}
    return body
