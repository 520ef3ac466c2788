import os, requests, streamlit as st

from schemas import MenuAnalysisResult
from services.compression import compress_image, detect_media_type, upload_target
from services.errors import CompressionExhausted, InvalidImage
from services.preferences import (
    CUSTOM_PREFERENCES,
    PREFERENCE_SUGGESTIONS,
    SELECTED_PREFERENCES,
    JsonFileStore,
    LearnedPreferences,
    load_list,
    save_list,
)
from services.presentation import BUCKET_TITLES, draw_highlights, group_by_bucket, stars

st.set_page_config(page_title="Menu Diet Analyzer", layout="wide")
st.title("Diet Menu Analyzer")

API_BASE = os.getenv("API_BASE", "http://127.0.0.1:5000")
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(20 * 1024 * 1024)))
PREFERENCES_FILE = os.getenv(
    "PREFERENCES_FILE", os.path.join(os.path.expanduser("~"), ".menu_analyzer", "preferences.json")
)


@st.cache_resource
def get_store():
    return JsonFileStore(PREFERENCES_FILE)


store = get_store()
if "learned" not in st.session_state:
    st.session_state.learned = LearnedPreferences.load(store)
    st.session_state.loading = False
learned: LearnedPreferences = st.session_state.learned


def call_api(image_bytes, media_type, preferences):
    files = {"menu": ("menu", image_bytes, media_type)}
    data = {"dietaryPreferences": ", ".join(preferences), **learned.as_form()}
    r = requests.post(API_BASE + "/api/analyze-menu", files=files, data=data, timeout=180)
    if not r.ok:
        try:
            body = r.json()
        except ValueError:
            body = {}
        raise RuntimeError(body.get("message") or body.get("error") or f"HTTP {r.status_code}")
    return r.json()


def prepare_image(uploaded):
    """Mirror the server's compression so the upload is never rejected for size."""
    raw = uploaded.getvalue()
    if len(raw) > MAX_UPLOAD_BYTES:
        st.error(f"Image size must be less than {MAX_UPLOAD_BYTES // (1024 * 1024)}MB")
        return None
    try:
        result = compress_image(raw, upload_target(), media_type=detect_media_type(raw))
    except (CompressionExhausted, InvalidImage) as e:
        st.error(f"We couldn't prepare this photo ({e.message}). Please try a different image.")
        return None
    return result.data, result.media_type


def feedback_buttons(name, key):
    c1, c2 = st.columns(2)
    status = learned.status(name)
    if c1.button("👍" + (" ✓" if status == "liked" else ""), key=f"like-{key}"):
        learned.toggle_like(name)
        learned.save(store)
        st.rerun()
    if c2.button("👎" + (" ✓" if status == "disliked" else ""), key=f"dislike-{key}"):
        learned.toggle_dislike(name)
        learned.save(store)
        st.rerun()


def render(analysis: MenuAnalysisResult, image_bytes):
    st.subheader("Summary")
    if analysis.summary:
        st.write(analysis.summary)
    if analysis.overallCompatibility is not None:
        st.markdown(f"Overall compatibility: **{stars(analysis.overallCompatibility)}** ({analysis.overallCompatibility:.1f}/5)")
    if analysis.rawResponse:
        st.info("The analysis could not be structured; here is the full response.")
        st.text(analysis.rawResponse)

    overlay = draw_highlights(image_bytes, analysis.all_items())
    st.image(overlay or image_bytes, use_column_width=True)

    if analysis.recommendations:
        st.subheader("Recommendations")
        for rec in analysis.recommendations:
            st.markdown(f"**{rec.name}** {stars(rec.rating)}  \n{rec.reason}")

    for bucket, items in group_by_bucket(analysis).items():
        if not items:
            continue
        st.subheader(BUCKET_TITLES[bucket])
        for n, item in enumerate(items):
            c1, c2 = st.columns([4, 1])
            where = f" _({item.location})_" if item.location else ""
            c1.markdown(f"**{item.name}** {stars(item.rating)}{where}  \n{item.reason}")
            with c2:
                feedback_buttons(item.name, f"{bucket}-{n}")

    if analysis.menuSections:
        st.subheader("Menu sections")
        for sec in analysis.menuSections:
            st.markdown(f"**{sec.section}** {stars(sec.compatibility)}  \n{sec.description}")


# --- Preferences ---------------------------------------------------------
custom = load_list(store, CUSTOM_PREFERENCES)
selected = st.multiselect(
    "Dietary preferences",
    options=PREFERENCE_SUGGESTIONS + [c for c in custom if c not in PREFERENCE_SUGGESTIONS],
    default=[p for p in load_list(store, SELECTED_PREFERENCES) if p in PREFERENCE_SUGGESTIONS or p in custom],
)
new_pref = st.text_input("Add a custom preference")
if st.button("Add") and new_pref.strip():
    if new_pref.strip() not in custom:
        save_list(store, CUSTOM_PREFERENCES, custom + [new_pref.strip()])
    save_list(store, SELECTED_PREFERENCES, selected + [new_pref.strip()])
    st.rerun()
save_list(store, SELECTED_PREFERENCES, selected)

with st.expander(f"Learned preferences ({len(learned.liked)} liked, {len(learned.disliked)} disliked)"):
    if learned.is_empty():
        st.caption("Rate dishes with 👍 / 👎 to teach future analyses what you like.")
    st.write("Liked:", ", ".join(sorted(learned.liked)) or "none")
    st.write("Disliked:", ", ".join(sorted(learned.disliked)) or "none")
    if st.button("Clear learned preferences"):
        learned.clear()
        learned.save(store)
        st.rerun()

# --- Upload + analyze ----------------------------------------------------
uploaded = st.file_uploader("Upload a menu photo", type=["jpg", "jpeg", "png", "webp"])
analyze = st.button("Analyze Menu", disabled=st.session_state.loading or not (uploaded and selected))

if uploaded and analyze:
    prepared = prepare_image(uploaded)
    if prepared:
        st.session_state.loading = True
        try:
            with st.spinner("Analyzing menu..."):
                data = call_api(prepared[0], prepared[1], selected)
            st.session_state.last = (MenuAnalysisResult.model_validate(data["analysis"]), prepared[0])
        except (requests.RequestException, RuntimeError) as e:
            st.error(f"Failed to analyze menu: {e}. Please try again.")
        finally:
            st.session_state.loading = False

if "last" in st.session_state:
    render(*st.session_state.last)
elif not uploaded:
    st.info("Upload a menu photo and choose your preferences to get started.")
