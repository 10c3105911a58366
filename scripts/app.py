#!/usr/bin/env python3
"""
Streamlit playground for the webglue clients.

To run:
1. Install the package with the app extra: pip install -e ".[app]"
2. Run: streamlit run scripts/app.py

API keys are read from the environment, or from a KEY=VALUE file uploaded in the sidebar.
Uploaded keys stay in the visitor's session and are passed to each client call.
"""
import tempfile
import os
from pathlib import Path

import streamlit as st

from webglue import (
    autocomplete,
    cdnjs,
    convertio,
    gan,
    google_answer,
    google_translate,
    grammar,
    html_to_pdf,
    notion,
    pos_tagger,
    quizlet,
    scihub,
    wordtune,
)
from webglue.config import ApiKeys
from webglue.errors import WebglueError
from webglue.polling import PollSettings


def _load_api_keys(uploaded_file) -> ApiKeys:
    """Keys for this browser session: an uploaded KEY=VALUE file, falling back to the environment."""
    if uploaded_file is None:
        st.session_state["api_keys"] = ApiKeys.from_env_or_file()
        return st.session_state["api_keys"]
    with tempfile.NamedTemporaryFile(delete=False, mode="w", suffix=".txt") as f:
        f.write(uploaded_file.getvalue().decode("utf-8"))
        temp_path = Path(f.name)
    try:
        st.session_state["api_keys"] = ApiKeys.from_env_or_file(temp_path)
    finally:
        os.unlink(temp_path)
    return st.session_state["api_keys"]


def _keys() -> ApiKeys:
    return st.session_state.get("api_keys") or ApiKeys.from_env_or_file()


def _run(label: str, fn, *args, **kwargs):
    """Call a client inside a spinner; show errors instead of crashing the page."""
    with st.spinner(label):
        try:
            return fn(*args, **kwargs)
        except WebglueError as e:
            st.error(str(e))
        except ValueError as e:
            st.warning(str(e))
    return None


# --- UI Functions for Each Tab ---

def ui_search():
    st.header("Google")
    query = st.text_input("Query", "height of mount everest", key="g_query")
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Quick Answer", type="primary"):
            answer = _run("Searching...", google_answer.google_answer, query)
            if answer is not None:
                st.success(f"{answer.text}  ({answer.kind})")
            else:
                st.info("No quick answer on the results page.")
    with col2:
        if st.button("Autocomplete"):
            suggestions = _run("Fetching suggestions...", autocomplete.autocomplete, query)
            if suggestions is not None:
                st.write(suggestions)


def ui_language():
    st.header("Language Tools")
    text = st.text_area("Text", "I has a apple and she go to school yesterday.", key="lang_text")

    with st.expander("Translate", expanded=True):
        col1, col2 = st.columns(2)
        with col1:
            source = st.text_input("From", "auto")
        with col2:
            target = st.text_input("To", "fr")
        if st.button("Translate"):
            result = _run("Translating...", google_translate.translate, text, to=target, source=source)
            if result is not None:
                st.write(result.text)
                st.caption(f"Detected source language: {result.source_language}")

    with st.expander("Rewrite (Wordtune)"):
        action = st.selectbox("Action", wordtune.ACTIONS)
        if st.button("Rewrite"):
            suggestions = _run("Rewriting...", wordtune.rewrite, text, action=action)
            for s in suggestions or []:
                st.write(f"- {s}")

    with st.expander("Parts of Speech"):
        if st.button("Tag"):
            words = _run("Tagging...", pos_tagger.tag_parts_of_speech, text)
            if words is not None:
                st.table([{"word": w.word, "tag": w.tag, "description": w.description} for w in words])

    with st.expander("Grammar"):
        engine = st.radio("Checker", ("Ginger", "Cram"), horizontal=True)
        timeout = st.number_input("Cram timeout (seconds)", min_value=5, value=120)
        if st.button("Check Grammar", type="primary"):
            if engine == "Ginger":
                result = _run("Checking...", grammar.ginger_check, text)
            else:
                result = _run("Checking (polling job)...", grammar.cram_check, text, settings=PollSettings(timeout=float(timeout)))
            if result is not None:
                st.write(result.corrected)
                st.json([c.model_dump() for c in result.corrections], expanded=False)


def ui_flashcards():
    st.header("Quizlet Flashcards")
    set_ref = st.text_input("Set ID or URL", help="e.g. https://quizlet.com/123456789/some-set-flash-cards/")
    if st.button("Load Cards", type="primary"):
        if not set_ref:
            st.error("Please provide a set id or URL.")
            return
        cards = _run("Loading cards...", quizlet.quizlet_cards, set_ref)
        if cards is not None:
            st.success(f"{len(cards)} cards")
            st.table([{"term": c.term, "definition": c.definition} for c in cards])


def ui_lookup():
    st.header("Lookups")
    with st.expander("CDNJS", expanded=True):
        q = st.text_input("Library", "lodash")
        limit = st.number_input("Max results", min_value=1, max_value=100, value=10)
        if st.button("Search CDNJS"):
            libs = _run("Searching...", cdnjs.search_cdnjs, q, limit=int(limit))
            if libs is not None:
                st.table([{"name": l.name, "version": l.version, "url": l.url} for l in libs])

    with st.expander("Notion"):
        nq = st.text_input("Search text", key="notion_q")
        if st.button("Search Notion"):
            results = _run(
                "Searching...",
                notion.notion_search,
                nq,
                token_v2=_keys().notion_token_v2,
                space_id=_keys().notion_space_id,
            )
            for r in results or []:
                st.markdown(f"[{r.title or r.id}]({r.url})")
                if r.highlight:
                    st.caption(r.highlight)


def ui_files():
    st.header("Files")
    with st.expander("Convert (Convertio)", expanded=True):
        uploaded = st.file_uploader("File to convert")
        fmt = st.text_input("Output format", "pdf")
        timeout = st.number_input("Timeout (seconds)", min_value=10, value=300, key="conv_timeout")
        if st.button("Convert", type="primary"):
            if uploaded is None:
                st.error("Please upload a file.")
            else:
                settings = PollSettings(interval=1.0, backoff=1.5, max_interval=10.0, timeout=float(timeout))
                content = _run(
                    "Converting...",
                    convertio.convert_file,
                    uploaded.getvalue(),
                    fmt,
                    filename=uploaded.name,
                    api_key=_keys().convertio_api_key,
                    settings=settings,
                )
                if content is not None:
                    out_name = f"{Path(uploaded.name).stem}.{fmt}"
                    st.download_button("Download", content, file_name=out_name)

    with st.expander("HTML to PDF"):
        url = st.text_input("Page URL", "https://example.com")
        if st.button("Render PDF"):
            pdf = _run("Rendering...", html_to_pdf.html_to_pdf, url=url, api_key=_keys().html2pdf_api_key)
            if pdf is not None:
                st.download_button("Download PDF", pdf, file_name="page.pdf", mime="application/pdf")

    with st.expander("Sci-Hub"):
        doi = st.text_input("DOI", "10.1038/nature12373")
        if st.button("Find PDF"):
            pdf_url = _run("Looking up...", scihub.find_scihub_pdf, doi)
            if pdf_url:
                st.markdown(f"[PDF]({pdf_url})")
            elif pdf_url is None:
                st.info("No PDF found on the configured mirrors.")

    with st.expander("Image GAN (DeepAI)"):
        model = st.selectbox("Model", gan.MODELS)
        image_url = st.text_input("Image URL")
        if st.button("Run Model"):
            result = _run("Running model...", gan.run_gan, model, image_url, api_key=_keys().deepai_api_key)
            if result is not None:
                st.image(result.output_url)


# --- Main App ---

def main():
    st.set_page_config(page_title="webglue", layout="wide")
    st.title("webglue playground")

    with st.sidebar:
        keys_file = st.file_uploader("API keys file (KEY=VALUE)", type=["txt", "env"])
        _load_api_keys(keys_file)

    tab1, tab2, tab3, tab4, tab5 = st.tabs([
        "Search",
        "Language",
        "Flashcards",
        "Lookups",
        "Files",
    ])

    with tab1:
        ui_search()

    with tab2:
        ui_language()

    with tab3:
        ui_flashcards()

    with tab4:
        ui_lookup()

    with tab5:
        ui_files()


if __name__ == "__main__":
    main()
