"""Streamlit dashboard for HobbyMe."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import NamedTuple, Optional

import streamlit as st

CURRENT_FILE = Path(__file__).resolve()
for candidate in CURRENT_FILE.parents:
    if (candidate / "pyproject.toml").exists():
        project_root = candidate
        break
else:
    project_root = CURRENT_FILE.parents[3]

project_root_str = str(project_root)
if project_root_str not in sys.path:
    sys.path.insert(0, project_root_str)

from scripts.bootstrap import bootstrap_project, resolve_project_path

PROJECT_ROOT = bootstrap_project()

from hobbyme.config import (
    AppConfig,
    get_default_category,
    get_geocoding_options,
    get_log_level,
    get_radius_miles,
    get_storage_buckets,
    get_supabase_credentials,
    load_config,
)
from hobbyme.core.entities import CATEGORIES, OUTDOOR
from hobbyme.infrastructure.geo.geocoder import GeopyGeocoder
from hobbyme.infrastructure.store.supabase_store import BackendError, SupabaseBackend
from hobbyme.interface.web.formatting import (
    bucket_title,
    messages_table,
    profiles_table,
    suggestions_table,
)
from hobbyme.use_cases.browse_profiles import BrowseProfilesUseCase
from hobbyme.use_cases.chat import ChatUseCase
from hobbyme.use_cases.manage_profile import EDITABLE_FIELDS, ManageProfileUseCase
from hobbyme.use_cases.suggest_matches import SuggestMatchesUseCase
from hobbyme.utils.logger import configure_logging, logger


class UseCases(NamedTuple):
    browse: BrowseProfilesUseCase
    suggest: SuggestMatchesUseCase
    profile: ManageProfileUseCase
    chat: ChatUseCase


@st.cache_data
def load_app_config(path: Path) -> AppConfig:
    return load_config(path)


@st.cache_resource
def load_backend(url: str, key: str) -> SupabaseBackend:
    return SupabaseBackend.from_credentials(url, key)


def create_use_cases(config: AppConfig) -> UseCases:
    url, key = get_supabase_credentials(config)
    backend = load_backend(url, key)
    geocoder = GeopyGeocoder(**get_geocoding_options(config))
    radius = get_radius_miles(config)
    media_bucket, chat_bucket = get_storage_buckets(config)

    return UseCases(
        browse=BrowseProfilesUseCase(backend, radius_miles=radius),
        suggest=SuggestMatchesUseCase(backend, max_distance=radius),
        profile=ManageProfileUseCase(backend, backend, geocoder, media_bucket=media_bucket),
        chat=ChatUseCase(backend, backend, chat_bucket=chat_bucket),
    )


def show_backend_error(action: str, error: BackendError) -> None:
    logger.error("Could not {}: {}", action, error)
    st.error(f"Could not {action} right now. Please try again later.")


def render_category_section(use_cases: UseCases, viewer_id: str, category: str) -> None:
    st.markdown(f"### {category.capitalize()} activities")

    col1, col2 = st.columns(2)
    search_term = col1.text_input(
        "Search by name or hobby...", key=f"search-{category}"
    ).strip()

    try:
        suggestions = use_cases.suggest.execute(viewer_id, category)
        view = use_cases.browse.execute(viewer_id, category, search_term=search_term)
        if category == OUTDOOR:
            location_filter = col2.selectbox(
                "Location",
                options=["All Locations", *view.locations],
                key=f"location-{category}",
            )
            if location_filter != "All Locations":
                view = use_cases.browse.refine(view, location_filter)
    except BackendError as error:
        show_backend_error("load profiles", error)
        return

    if suggestions:
        st.markdown("#### Suggested matches")
        st.dataframe(suggestions_table(suggestions), width="stretch")

    if category == OUTDOOR and view.viewer_coordinates is None:
        st.info("Add a location to your profile to see outdoor matches near you.")

    if view.is_empty:
        st.info("No profiles found. Try adjusting your search or filter criteria.")
        return

    for key, profiles in view.groups.items():
        st.markdown(f"#### {bucket_title(key, len(profiles))}")
        st.dataframe(profiles_table(profiles, category), width="stretch")


def render_profile_section(use_cases: UseCases, viewer_id: str) -> None:
    st.markdown("### Your profile")
    try:
        bundle = use_cases.profile.load(viewer_id)
        hobbies = use_cases.profile.available_hobbies()
    except BackendError as error:
        show_backend_error("load your profile", error)
        return

    if bundle.profile is None:
        st.warning("No profile found for this account.")
        return

    profile = bundle.profile
    st.write(f"**{profile.full_name}** (@{profile.username}) · {profile.location or 'no location'}")
    if profile.bio:
        st.caption(profile.bio)

    with st.form("profile-edit"):
        field_name = st.selectbox("Field", options=sorted(EDITABLE_FIELDS))
        value = st.text_input("New value")
        if st.form_submit_button("Save"):
            try:
                use_cases.profile.update_field(viewer_id, field_name, value.strip())
                st.success(f"Updated {field_name}.")
            except ValueError as error:
                st.error(str(error))
            except BackendError as error:
                show_backend_error(f"update {field_name}", error)

    labels = {hobby.id: f"{hobby.name} ({hobby.category})" for hobby in hobbies}
    current = [membership.hobby.id for membership in bundle.memberships if membership.hobby.id in labels]
    with st.form("hobby-edit"):
        selected = st.multiselect(
            "Hobbies", options=list(labels), default=current, format_func=labels.get
        )
        if st.form_submit_button("Update hobbies"):
            try:
                use_cases.profile.update_hobbies(viewer_id, selected)
                st.success("Hobbies updated.")
            except BackendError as error:
                show_backend_error("update your hobbies", error)

    uploaded = st.file_uploader("Upload an avatar", type=["png", "jpg", "jpeg", "gif"])
    if uploaded is not None and st.button("Save avatar"):
        try:
            use_cases.profile.upload_avatar(
                viewer_id, uploaded.name, uploaded.getvalue(), uploaded.type or "image/png"
            )
            st.success("Avatar updated.")
        except BackendError as error:
            show_backend_error("upload your avatar", error)

    media_file = st.file_uploader(
        "Share a photo or video", type=["png", "jpg", "jpeg", "gif", "mp4", "webm", "mov"]
    )
    if media_file is not None and bundle.memberships:
        hobby_labels = {item.hobby.id: item.hobby.name for item in bundle.memberships}
        with st.form("media-upload", clear_on_submit=True):
            hobby_id = st.selectbox("Hobby", options=list(hobby_labels), format_func=hobby_labels.get)
            caption = st.text_input("Caption")
            if st.form_submit_button("Upload"):
                try:
                    use_cases.profile.upload_media(
                        viewer_id,
                        media_file.name,
                        media_file.getvalue(),
                        media_file.type or "application/octet-stream",
                        hobby_id,
                        caption=caption.strip(),
                    )
                    st.success("Media uploaded.")
                except BackendError as error:
                    show_backend_error("upload your media", error)

    if bundle.media:
        st.markdown("#### Media")
        for item in bundle.media:
            col1, col2 = st.columns([4, 1])
            col1.write(f"{item.hobby_name or 'General'} · {item.caption or item.url}")
            if col2.button("Delete", key=f"delete-{item.id}"):
                try:
                    use_cases.profile.delete_media(item.id)
                except BackendError as error:
                    show_backend_error("delete this media", error)
                else:
                    st.rerun()


def render_chat_section(use_cases: UseCases, viewer_id: str) -> None:
    st.markdown("### Chat")
    recipient_id = st.text_input("Chat with user id", key="chat-recipient").strip()
    if not recipient_id:
        return

    try:
        chat_id = use_cases.chat.open_chat(viewer_id, recipient_id)
        messages = use_cases.chat.history(chat_id)
    except BackendError as error:
        show_backend_error("open this chat", error)
        return

    st.dataframe(messages_table(messages, viewer_id), width="stretch")

    with st.form("chat-send", clear_on_submit=True):
        text = st.text_input("Type a message...")
        if st.form_submit_button("Send") and text.strip():
            try:
                use_cases.chat.send(chat_id, viewer_id, text.strip())
            except BackendError as error:
                show_backend_error("send your message", error)
            else:
                st.rerun()

    recording = st.audio_input("Record a voice message")
    if recording is not None and st.button("Send voice message"):
        try:
            use_cases.chat.send_recording(chat_id, viewer_id, recording.getvalue(), "audio")
        except BackendError as error:
            show_backend_error("send your voice message", error)
        else:
            st.rerun()


def resolve_viewer_id() -> Optional[str]:
    viewer_id = st.query_params.get("user") or st.session_state.get("viewer_id")
    if not viewer_id:
        viewer_id = st.sidebar.text_input("Your user id").strip()
    if viewer_id:
        st.session_state["viewer_id"] = viewer_id
    return viewer_id or None


def main() -> None:
    st.set_page_config(page_title="HobbyMe", layout="wide")
    st.title("HobbyMe: find people who share your hobbies")

    config = load_app_config(resolve_project_path(Path("configs/config.yaml")))
    configure_logging(get_log_level(config))
    use_cases = create_use_cases(config)

    viewer_id = resolve_viewer_id()
    if viewer_id is None:
        st.info("Sign in to see people who share your hobbies.")
        return

    default_category = get_default_category(config)
    ordered = [default_category, *[category for category in CATEGORIES if category != default_category]]
    tabs = st.tabs([*(category.capitalize() for category in ordered), "Profile", "Chat"])

    for tab, category in zip(tabs, ordered):
        with tab:
            render_category_section(use_cases, viewer_id, category)

    with tabs[len(ordered)]:
        render_profile_section(use_cases, viewer_id)

    with tabs[len(ordered) + 1]:
        render_chat_section(use_cases, viewer_id)


if __name__ == "__main__":
    main()
