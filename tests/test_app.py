# Page-level tests for the Streamlit front end
from datetime import time as dtime

import prometheus_client
import pytest
from streamlit.testing.v1 import AppTest

from chunk_scheduler.timeline import edit_chunk


THREE = (("09:00", "09:20"), ("09:20", "09:40"), ("09:40", "10:00"))


@pytest.fixture
def app(monkeypatch, schedule_of):
    """The page with an overlapping schedule already loaded."""
    monkeypatch.setattr(prometheus_client, "start_http_server", lambda port: None)
    at = AppTest.from_file("../src/app.py", default_timeout=30)
    at.session_state["schedule"] = edit_chunk(schedule_of(*THREE), "c1", "09:00", "09:50", 0)
    at.run()
    assert not at.exception
    return at


@pytest.mark.unit
class TestEditFeedback:
    def test_rejected_resize_is_shown(self, app):
        app.selectbox(key="pick").set_value("c2")
        app.radio(key="resize_edge").set_value("start")
        app.time_input(key="resize_time").set_value(dtime(9, 30))
        app.button(key="resize").click().run()

        assert any("no room" in e.value for e in app.error)
        assert [c.id for c in app.session_state["schedule"].chunks] == ["c1", "c2", "c3"]

    def test_accepted_delete_reruns_without_error(self, app):
        app.selectbox(key="pick").set_value("c3")
        app.button(key="delete").click().run()

        assert not app.error
        assert [c.id for c in app.session_state["schedule"].chunks] == ["c1", "c2"]
