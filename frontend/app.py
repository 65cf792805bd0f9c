# frontend/app.py
import os

import streamlit as st

from backend.config import BACKEND_URL
from frontend.client import request_screenshot

st.set_page_config(page_title="pageshot", layout="wide")

col1, col2 = st.columns([1, 2])

with col1:
    st.header("Capture")
    url = st.text_input("Page URL", placeholder="https://example.com")
    width = st.number_input("Width", min_value=320, max_value=3840, value=1280, step=10)
    height = st.number_input("Height", min_value=240, max_value=2160, value=800, step=10)
    wait_time = st.slider("Extra wait (ms)", min_value=0, max_value=10000, value=1000, step=250)
    full_page = st.checkbox("Full page", value=False)
    handle_banners = st.checkbox("Dismiss cookie banners", value=True)
    run_btn = st.button("Take screenshot")

with col2:
    st.header("Screenshot")
    if run_btn:
        if not url:
            st.warning("Enter a URL first.")
        else:
            with st.spinner(f"Capturing {url}..."):
                result = request_screenshot(
                    BACKEND_URL,
                    url,
                    width=int(width),
                    height=int(height),
                    wait_time=int(wait_time),
                    full_page=full_page,
                    handle_cookie_banners=handle_banners,
                )
            if result.get("success"):
                st.caption(f"id: {result['id']}")
                # Path is relative to the backend's working directory
                if os.path.exists(result["path"]):
                    st.image(result["path"], use_container_width=True)
                else:
                    st.info(f"Saved to {result['path']}")
            else:
                st.error(result.get("error", "Unknown error"))
    else:
        st.write("The screenshot will appear here.")
