"""
SecureScan Streamlit UI
A demo interface for the SecureScan API.
"""

from typing import Optional, Dict, Any

import requests
import streamlit as st


st.set_page_config(
    page_title="SecureScan Demo",
    page_icon="🛡️",
    layout="wide",
)

RESULT_ICONS = {"safe": "🟢", "suspicious": "🟡", "dangerous": "🔴", "unknown": "⚪"}
DEMO_CATEGORIES = [
    "none", "phishing", "malware", "adult", "gambling", "gore", "scam", "drugs", "weapons", "extremism",
]


# ---------- Helpers ----------


def _headers(api_key: Optional[str]) -> Optional[Dict[str, str]]:
    return {"X-API-Key": api_key} if api_key else None


def call_api(
    base_url: str,
    api_key: Optional[str],
    method: str,
    path: str,
    data: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
) -> Any:
    """Call a SecureScan endpoint; form-encoded body for POST."""
    endpoint = base_url.rstrip("/") + path
    resp = requests.request(
        method,
        endpoint,
        data=data,
        params=params,
        headers=_headers(api_key),
        timeout=30,
    )
    resp.raise_for_status()
    return resp.json()


def render_scan(record: Dict[str, Any]):
    """Render one URL scan record."""
    result_type = record.get("result_type", "unknown")
    icon = RESULT_ICONS.get(result_type, "⚪")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Result", f"{icon} {result_type.upper()}")
    with col2:
        st.metric("Category", record.get("category", "none").title())
    with col3:
        st.metric("Source", record.get("source_type", "manual").replace("_", " ").title())

    st.markdown(f"**URL:** `{record.get('url', '')}`")
    st.info(record.get("details", ""))
    tip = record.get("educational_tip")
    if tip:
        st.markdown(f"💡 {tip}")


def render_sms(record: Dict[str, Any]):
    """Render one SMS record."""
    risk_level = record.get("risk_level", "unknown")
    icon = RESULT_ICONS.get(risk_level, "⚪")
    reported = " (reported)" if record.get("is_reported") else ""
    st.markdown(f"{icon} **{record.get('sender', '')}** - {risk_level.upper()}{reported}")
    st.caption(record.get("content", ""))


def run_call(fn):
    """Run an API call and surface errors in the page."""
    try:
        return fn()
    except requests.exceptions.HTTPError as e:
        st.error(f"API Error: {e.response.status_code} - {e.response.text}")
    except requests.exceptions.RequestException as e:
        st.error(f"Error calling backend: {e}")
    return None


# ---------- Sidebar config ----------


st.sidebar.title("⚙️ Settings")

base_url = st.sidebar.text_input(
    "Backend URL",
    value="http://127.0.0.1:8000",
    help="FastAPI server base URL.",
)

api_key = st.sidebar.text_input(
    "API Key (optional)",
    type="password",
    help="If the API is secured with X-API-Key, put it here.",
)

st.sidebar.markdown("---")

if st.sidebar.button("🔌 Check Connection"):
    try:
        resp = requests.get(f"{base_url.rstrip('/')}/health", timeout=5)
        if resp.status_code == 200:
            st.sidebar.success("✅ Backend is online!")
        else:
            st.sidebar.error(f"❌ Backend returned {resp.status_code}")
    except requests.exceptions.RequestException as e:
        st.sidebar.error(f"❌ Cannot connect: {e}")


# ---------- Main UI ----------


st.title("🛡️ SecureScan")
st.markdown("**Check links and text messages before you trust them**")
st.markdown("---")

tabs = st.tabs(["🔗 URL", "✉️ SMS", "📝 Text", "🕘 History"])


# --- URL TAB ---
with tabs[0]:
    st.header("URL Check")

    url_val = st.text_input(
        "Paste a URL",
        placeholder="http://login-secure-verify.com/account",
    )
    from_qr = st.checkbox("This URL came from a QR code")

    if st.button("🔍 Check URL", key="check_url", type="primary"):
        if not url_val.strip():
            st.warning("Please enter a URL.")
        else:
            record = run_call(lambda: call_api(
                base_url, api_key, "POST", "/scan/url",
                data={"url": url_val, "source": "qr_code" if from_qr else "manual"},
            ))
            if record:
                render_scan(record)

    with st.expander("🎓 Demo: see how each category is reported"):
        demo_category = st.selectbox("Category", DEMO_CATEGORIES, index=DEMO_CATEGORIES.index("phishing"))
        if st.button("▶️ Simulate", key="simulate_url"):
            record = run_call(lambda: call_api(
                base_url, api_key, "POST", "/scan/simulate",
                data={
                    "url": url_val.strip() or "https://example.com",
                    "category": demo_category,
                    "source": "qr_code" if from_qr else "manual",
                },
            ))
            if record:
                render_scan(record)


# --- SMS TAB ---
with tabs[1]:
    st.header("SMS Check")

    sender = st.text_input("Sender", placeholder="INFO-BANK")
    content = st.text_area(
        "Message",
        height=150,
        placeholder="Pilne! Twoje konto zostanie zablokowane, kliknij link: http://bit.ly/abc",
    )

    if st.button("🔍 Check SMS", key="check_sms", type="primary"):
        if not sender.strip() or not content.strip():
            st.warning("Please enter both sender and message.")
        else:
            record = run_call(lambda: call_api(
                base_url, api_key, "POST", "/scan/sms",
                data={"sender": sender, "content": content},
            ))
            if record:
                render_sms(record)
                if record.get("risk_level") != "safe":
                    st.session_state["last_sms"] = record

    last_sms = st.session_state.get("last_sms")
    if last_sms and st.button("📢 Report this message", key="report_sms"):
        report = run_call(lambda: call_api(
            base_url, api_key, "POST", "/history/messages/report",
            data={"sender": last_sms["sender"], "content": last_sms["content"]},
        ))
        if report:
            st.success("Message marked as reported.")
            st.code(report.get("report_text", ""))


# --- TEXT TAB ---
with tabs[2]:
    st.header("Links in Text")
    st.markdown("Paste any text; every link in it is checked.")

    text = st.text_area("Text", height=200, key="free_text")

    if st.button("🔍 Check Links", key="check_text", type="primary"):
        if not text.strip():
            st.warning("Please enter some text.")
        else:
            batch = run_call(lambda: call_api(
                base_url, api_key, "POST", "/scan/text", data={"text": text},
            ))
            if batch is not None:
                results = batch.get("results") or []
                if not results:
                    st.info("No links found.")
                else:
                    worst = batch.get("worst_result", "unknown")
                    st.metric("Worst result", f"{RESULT_ICONS.get(worst, '⚪')} {worst.upper()}")
                    for record in results:
                        st.divider()
                        render_scan(record)


# --- HISTORY TAB ---
with tabs[3]:
    st.header("History")

    col_left, col_right = st.columns(2)

    with col_left:
        st.subheader("Recent scans")
        scans = run_call(lambda: call_api(
            base_url, api_key, "GET", "/history/scans/recent",
        )) or []
        if not scans:
            st.caption("No scans yet.")
        for record in scans:
            icon = RESULT_ICONS.get(record.get("result_type"), "⚪")
            st.markdown(f"{icon} `{record.get('url')}` - {record.get('category')}")
        if st.button("🗑️ Clear scans", key="clear_scans"):
            run_call(lambda: call_api(base_url, api_key, "DELETE", "/history/scans"))

    with col_right:
        st.subheader("Messages")
        messages = run_call(lambda: call_api(
            base_url, api_key, "GET", "/history/messages",
        )) or []
        if not messages:
            st.caption("No messages yet.")
        for record in messages:
            render_sms(record)
        if st.button("🗑️ Clear messages", key="clear_messages"):
            run_call(lambda: call_api(base_url, api_key, "DELETE", "/history/messages"))


# --- Footer ---
st.markdown("---")
st.markdown(
    "<div style='text-align: center; color: gray;'>"
    "SecureScan v0.1.0 • Static URL & SMS risk checks"
    "</div>",
    unsafe_allow_html=True,
)
