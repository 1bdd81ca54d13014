"""Tests for the Streamlit view functions with Streamlit itself mocked out."""
from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, Mock

import pytest

from hobbyme.infrastructure.store.supabase_store import BackendError
from hobbyme.interface.web import app
from hobbyme.use_cases.browse_profiles import BrowseProfilesUseCase
from tests.factories import HIKING, LIVERPOOL, MANCHESTER, make_profile


def backend_failure(operation: str) -> BackendError:
    return BackendError(operation, RuntimeError('invalid input syntax for type uuid: "abc"'))


@pytest.fixture
def fake_st(monkeypatch):
    """Replace the ``st`` module used by the dashboard with a recording mock."""
    st = MagicMock()
    st.text_input.return_value = "abc"
    monkeypatch.setattr(app, "st", st)
    return st


def test_chat_with_unknown_user_shows_error(fake_st):
    chat = Mock()
    chat.open_chat.side_effect = backend_failure("find_shared_chat")

    app.render_chat_section(SimpleNamespace(chat=chat), "viewer")

    fake_st.error.assert_called_once()
    chat.history.assert_not_called()
    fake_st.dataframe.assert_not_called()


def test_failed_chat_sends_show_errors_instead_of_rerunning(fake_st):
    chat = Mock()
    chat.open_chat.return_value = "chat-1"
    chat.history.return_value = []
    chat.send.side_effect = backend_failure("insert_message")
    chat.send_recording.side_effect = backend_failure("upload")

    app.render_chat_section(SimpleNamespace(chat=chat), "viewer")

    assert fake_st.error.call_count == 2
    fake_st.rerun.assert_not_called()


def test_profile_load_failure_shows_error(fake_st):
    profile = Mock()
    profile.load.side_effect = backend_failure("fetch_profile")

    app.render_profile_section(SimpleNamespace(profile=profile), "viewer")

    fake_st.error.assert_called_once()
    profile.update_hobbies.assert_not_called()


def test_profile_write_failures_show_errors(fake_st):
    fake_st.file_uploader.return_value = None
    profile = Mock()
    profile.load.return_value = SimpleNamespace(
        profile=make_profile("viewer"), memberships=[], media=[]
    )
    profile.available_hobbies.return_value = [HIKING]
    profile.update_field.side_effect = backend_failure("update_profile")
    profile.update_hobbies.side_effect = backend_failure("delete_memberships")

    app.render_profile_section(SimpleNamespace(profile=profile), "viewer")

    assert fake_st.error.call_count == 2


class CountingSource:
    def __init__(self) -> None:
        self.fetch_calls = 0
        self.viewer = make_profile("viewer", coordinates=LIVERPOOL)
        self.others = [
            make_profile("mia", location="Manchester", coordinates=MANCHESTER, hobbies=(HIKING,)),
            make_profile("liv", location="Liverpool, UK", coordinates=LIVERPOOL, hobbies=(HIKING,)),
        ]

    def fetch_profile(self, profile_id):
        return self.viewer

    def fetch_profiles_with_hobbies(self):
        self.fetch_calls += 1
        return self.others


def test_outdoor_location_filter_reuses_loaded_profiles(fake_st):
    search_column, location_column = MagicMock(), MagicMock()
    search_column.text_input.return_value = ""
    location_column.selectbox.return_value = "Manchester"
    fake_st.columns.return_value = (search_column, location_column)
    source = CountingSource()
    use_cases = SimpleNamespace(
        browse=BrowseProfilesUseCase(source),
        suggest=Mock(execute=Mock(return_value=[])),
    )

    app.render_category_section(use_cases, "viewer", "outdoor")

    assert source.fetch_calls == 1
    assert location_column.selectbox.call_args.kwargs["options"] == [
        "All Locations",
        "Manchester",
        "Liverpool, UK",
    ]
    fake_st.dataframe.assert_called_once()
    fake_st.error.assert_not_called()
