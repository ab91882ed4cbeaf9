# vitals_lab/dashboard/app.py
#
# Vitals Lab – Realtime Health Dashboard
#
# Streamlit UI that:
#   - Polls the latest reading and recent window from the FastAPI service
#   - Flags rows whose heart rate, SpO2 or temperature are not numeric
#   - Shows metric cards and trend charts for the recent window
#   - Toggles the board's LED through the API
#   - Shows the polling status and the latest reading's capture time
#   - Auto-refreshes so updates appear live without manual reloads

import os
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
import requests
import streamlit as st
from streamlit_autorefresh import st_autorefresh

# -------------------------------------------------
# Config
# -------------------------------------------------

API_URL = os.getenv("API_URL", "http://127.0.0.1:8000/api/telemetry")
BASE_API_PREFIX = API_URL.rsplit("/api/telemetry", 1)[0]
LED_URL = os.getenv("LED_API_URL", f"{BASE_API_PREFIX}/api/led")

PAGE_TITLE = "Realtime Health Dashboard"

REFRESH_SECONDS = int(os.getenv("REFRESH_SECONDS", "3"))
CHART_POINTS = int(os.getenv("CHART_POINTS", "60"))

TREND_COLUMNS = ["heartRate", "spo2", "tempC"]


# -------------------------------------------------
# Data access
# -------------------------------------------------


def fetch_telemetry(limit: Optional[int] = None) -> Tuple[Optional[Dict], pd.DataFrame]:
    """Pull the latest reading and the recent window from the API."""
    params = {"limit": limit} if limit is not None else None
    resp = requests.get(API_URL, params=params, timeout=5)
    resp.raise_for_status()
    body = resp.json()
    return body.get("latest"), history_frame(body.get("recent", []))


def fetch_led_state() -> bool:
    resp = requests.get(LED_URL, timeout=5)
    resp.raise_for_status()
    return bool(resp.json().get("state"))


def set_led_state(state: bool) -> bool:
    resp = requests.post(LED_URL, json={"state": state}, timeout=5)
    resp.raise_for_status()
    return bool(resp.json().get("state"))


def history_frame(records: List[Dict]) -> pd.DataFrame:
    """
    Turn API entries into a frame indexed by arrival order, with a tz-naive
    ``timestamp`` column parsed from the server's millisecond timestamps.
    """
    if not records:
        return pd.DataFrame()
    df = pd.DataFrame(records)
    df["timestamp"] = pd.to_datetime(df["serverTimestamp"], unit="ms")
    return df.sort_values("timestamp", kind="stable").reset_index(drop=True)


def add_validation_flags(df: pd.DataFrame) -> pd.DataFrame:
    """Mark rows that are missing any of the charted numeric fields."""
    if df.empty:
        df = df.copy()
        df["data_ok"] = []
        return df

    df = df.copy()
    present = [col for col in TREND_COLUMNS if col in df.columns]
    if len(present) < len(TREND_COLUMNS):
        df["data_ok"] = False
        return df

    numeric = df[TREND_COLUMNS].apply(pd.to_numeric, errors="coerce")
    df["data_ok"] = np.where(numeric.isna().any(axis=1), False, True)
    return df


def _format_metric(value, fmt: str) -> str:
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return "—"
    return fmt.format(value)


def latest_metrics(latest: Optional[Dict]) -> Dict[str, str]:
    """Display strings for the three metric cards."""
    latest = latest or {}
    return {
        "Heart Rate": _format_metric(latest.get("heartRate"), "{:.0f} bpm"),
        "SpO₂": _format_metric(latest.get("spo2"), "{:.0f} %"),
        "Temperature": _format_metric(latest.get("tempC"), "{:.2f} °C"),
    }


def poll_status(latest: Optional[Dict], error: Optional[Exception] = None) -> str:
    if error is not None:
        return "error"
    return "ok" if latest is not None else "idle"


def latest_timestamp_label(latest: Optional[Dict]) -> str:
    """Device capture time of the latest reading, falling back to receipt time."""
    latest = latest or {}
    ts = latest.get("deviceTimestamp")
    if ts is None:
        ts = latest.get("serverTimestamp")
    if ts is None:
        return "—"
    return pd.to_datetime(ts, unit="ms").strftime("%Y-%m-%d %H:%M:%S")


# -------------------------------------------------
# Rendering
# -------------------------------------------------


def render_header(latest: Optional[Dict], status: str) -> None:
    st.set_page_config(page_title=PAGE_TITLE, layout="wide")
    st.title(PAGE_TITLE)
    st.caption(f"Live readings from the MAX30102 pulse oximeter. Status: {status}")
    if latest is not None:
        device = latest.get("device", "unknown device")
        st.caption(f"Device: {device}")


def render_metric_cards(latest: Optional[Dict]) -> None:
    cols = st.columns(3)
    for col, (title, value) in zip(cols, latest_metrics(latest).items()):
        with col:
            st.metric(title, value)


def render_led_controls() -> None:
    st.markdown("### LED")
    try:
        current = fetch_led_state()
    except requests.RequestException as exc:
        st.warning(f"Could not read LED state: {exc}")
        return

    c1, c2, c3 = st.columns([1, 1, 3])
    with c1:
        if st.button("Turn on", disabled=current):
            _toggle_led(True)
    with c2:
        if st.button("Turn off", disabled=not current):
            _toggle_led(False)
    with c3:
        st.metric("LED", "On" if current else "Off")


def _toggle_led(state: bool) -> None:
    try:
        set_led_state(state)
    except requests.RequestException as exc:
        st.error(f"Failed to update LED: {exc}")
        return
    st.rerun()


def render_trends(df: pd.DataFrame) -> None:
    chart_df = df[df["data_ok"]].tail(CHART_POINTS).set_index("timestamp")
    if chart_df.empty:
        st.info("No chartable readings in the recent window.")
        return

    st.markdown("#### Heart rate & SpO₂ (recent)")
    st.line_chart(chart_df[["heartRate", "spo2"]], height=260)

    st.markdown("#### Temperature (recent)")
    st.line_chart(chart_df[["tempC"]], height=220)


def main() -> None:
    st_autorefresh(interval=REFRESH_SECONDS * 1000, key="data_refresh")

    try:
        latest, df_raw = fetch_telemetry()
    except requests.RequestException as exc:
        render_header(None, poll_status(None, exc))
        st.error(f"Error fetching telemetry from API: {exc}")
        return

    render_header(latest, poll_status(latest))

    if latest is None or df_raw.empty:
        st.info("Waiting for readings from the device...")
        render_led_controls()
        st.stop()

    df = add_validation_flags(df_raw)

    render_metric_cards(latest)
    st.markdown("---")
    render_trends(df)
    st.markdown("---")
    render_led_controls()

    st.markdown("#### Raw samples")
    st.dataframe(
        df[["timestamp", "device", "heartRate", "spo2", "tempC", "tempF", "data_ok"]].tail(40),
        hide_index=True,
    )

    skipped = int((~df["data_ok"]).sum())
    st.caption(
        f"Dashboard refreshes every {REFRESH_SECONDS} seconds; "
        f"charts show the last {CHART_POINTS} readings. "
        f"{skipped} reading(s) in the window lack a numeric heart rate, SpO₂ or temperature."
    )
    st.caption(f"Latest timestamp: {latest_timestamp_label(latest)}")


if __name__ == "__main__":
    main()
