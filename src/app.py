import streamlit as st
import pandas as pd
import plotly.express as px
from datetime import time as dtime

from streamlit_calendar import calendar
from prometheus_client import start_http_server

from chunk_scheduler.config import METRICS_PORT, configure_logging, load_prefs
from chunk_scheduler.errors import SchedulerError
from chunk_scheduler.models import Break, Task
from chunk_scheduler.nag import ReminderSession
from chunk_scheduler.progress import chunk_countdown, complete_chunk, current_chunk, end_schedule
from chunk_scheduler.scheduler import (
    generate_schedule,
    schedule_to_frame,
    task_allocation_summary,
    validate_breaks,
)
from chunk_scheduler.timeline import (
    check_contiguity,
    delete_chunk,
    edit_chunk,
    move_chunk,
    move_chunk_to_time,
    resize_chunk,
)
from chunk_scheduler.timeutils import format_duration, format_task_time, format_time


PRIORITY_COLORS = {"high": "#d62728", "medium": "#ff7f0e", "low": "#2ca02c"}
BREAK_COLOR = "#7f7f7f"


@st.cache_resource
def start_metrics_server():
    # once per process, shared by every browser session
    start_http_server(METRICS_PORT)
    return True


def hhmm(t: dtime) -> str:
    return t.strftime("%H:%M")


def chunk_label(chunk) -> str:
    done = " ✓" if chunk.completed else ""
    return f"{chunk.start_time}-{chunk.end_time} {chunk.title}{done}"


def apply(edit, *args) -> bool:
    """Run a timeline edit against the active schedule; False when it was rejected."""
    try:
        st.session_state.schedule = edit(st.session_state.schedule, *args)
    except SchedulerError as exc:
        st.error(str(exc))
        return False
    sync_reminders()
    return True


def sync_reminders():
    schedule = st.session_state.schedule
    if schedule is None or not st.session_state.prefs.notifications_enabled:
        st.session_state.reminders.stop()
        return
    log = st.session_state.reminder_log

    def on_reminder(event):
        # runs on a timer thread; the page shows it on the next rerun
        log.append(f"{event.at.strftime('%H:%M')} {event.title}: {event.body}")

    st.session_state.reminders.sync(schedule, pd.Timestamp.now(), on_reminder)


configure_logging()
start_metrics_server()

# Session State Setup
if "prefs" not in st.session_state:
    st.session_state.prefs = load_prefs()

if "tasks" not in st.session_state:
    st.session_state.tasks = []          # list[Task]

if "breaks" not in st.session_state:
    st.session_state.breaks = []         # list[Break]

if "schedule" not in st.session_state:
    st.session_state.schedule = None

if "reminders" not in st.session_state:
    st.session_state.reminders = ReminderSession()

if "reminder_log" not in st.session_state:
    st.session_state.reminder_log = []

prefs = st.session_state.prefs


# Sidebar: Inputs
st.sidebar.title("Chunk Scheduler")

st.sidebar.subheader("Settings")
prefs.default_chunk_minutes = int(st.sidebar.number_input(
    "Chunk size (minutes)", 5, 240, value=prefs.default_chunk_minutes, step=5))
prefs.default_nag_minutes = int(st.sidebar.number_input(
    "Nag interval (minutes, 0 = off)", 0, 120, value=prefs.default_nag_minutes))
prefs.default_break_minutes = int(st.sidebar.number_input(
    "Default break (minutes)", 5, 120, value=prefs.default_break_minutes, step=5))
prefs.notifications_enabled = st.sidebar.checkbox(
    "Reminders", value=prefs.notifications_enabled)
prefs.time_unit = st.sidebar.radio(
    "Show task time in", ["minutes", "hours"],
    index=0 if prefs.time_unit == "minutes" else 1)

st.sidebar.subheader("Add Task")
with st.sidebar.form("task_form"):
    t_title = st.text_input("Title")
    t_priority = st.selectbox("Priority", ["high", "medium", "low"], index=1)
    t_estimate = st.number_input("Estimate (minutes)", min_value=5, max_value=1440, value=60, step=5)
    t_chunk = st.number_input("Chunk size override (0 = default)", 0, 240, value=0, step=5)
    t_nag = st.number_input("Nag interval override (-1 = default)", -1, 120, value=-1)
    if st.form_submit_button("Add Task"):
        if t_title:
            st.session_state.tasks.append(Task(
                id=f"t{len(st.session_state.tasks)}",
                title=t_title,
                priority=t_priority,
                estimated_minutes=int(t_estimate),
                chunk_minutes=int(t_chunk) or None,
                nag_interval_minutes=None if t_nag < 0 else int(t_nag),
                created_at=pd.Timestamp.now().isoformat(),
            ))
        else:
            st.sidebar.error("Please enter a task title.")

st.sidebar.subheader("Window")
w_start = st.sidebar.time_input("Start", value=dtime(9, 0))
w_end = st.sidebar.time_input("End", value=dtime(17, 0))

st.sidebar.subheader("Add Break")
with st.sidebar.form("break_form"):
    b_time = st.time_input("At", value=dtime(12, 0))
    b_minutes = st.number_input("Minutes", 1, 240, value=prefs.default_break_minutes)
    if st.form_submit_button("Add Break"):
        st.session_state.breaks.append(Break(
            id=f"b{len(st.session_state.breaks)}", time=hhmm(b_time), duration_minutes=int(b_minutes)))


# Main: Generate Schedule
st.title("Today's Chunks")

col1, col2 = st.columns(2)
with col1:
    st.markdown("### Tasks")
    if st.session_state.tasks:
        st.dataframe(pd.DataFrame([{
            "title": t.title,
            "priority": t.priority,
            "done": format_task_time(t.completed_minutes, prefs.time_unit),
            "estimate": format_task_time(t.estimated_minutes, prefs.time_unit),
            "progress": f"{t.progress:.0%}",
        } for t in st.session_state.tasks]))
    else:
        st.write("No tasks yet.")

with col2:
    st.markdown("### Breaks")
    if st.session_state.breaks:
        st.dataframe(pd.DataFrame([{
            "at": format_time(b.time), "minutes": b.duration_minutes,
        } for b in st.session_state.breaks]))
    else:
        st.write("No breaks yet.")


if st.button("Generate Schedule"):
    try:
        validate_breaks(hhmm(w_start), hhmm(w_end), st.session_state.breaks)
        st.session_state.schedule = generate_schedule(
            st.session_state.tasks,
            hhmm(w_start),
            hhmm(w_end),
            breaks=st.session_state.breaks,
            prefs=prefs,
        )
    except SchedulerError as exc:
        st.error(str(exc))
    else:
        st.session_state.reminder_log = []
        sync_reminders()

schedule = st.session_state.schedule

if schedule is None:
    st.info("Add some tasks and click **Generate Schedule** to get started.")
    st.stop()

if not schedule.is_active:
    if schedule.ended_early:
        st.warning("Session ended early.")
    else:
        st.success("Every chunk is done. Nice work!")

if not schedule.chunks:
    st.info("Nothing to schedule: every task is already complete or the window is empty.")
    st.stop()

now = pd.Timestamp.now()
frame = schedule_to_frame(schedule)

# Active chunk
active = current_chunk(schedule, now) if schedule.is_active else None
if active is not None:
    remaining, until_nag = chunk_countdown(active, now)
    st.markdown(f"## Now: {active.title}")
    st.write(f"{format_duration(remaining / 60)} left"
             + (f", next nudge in {format_duration(until_nag / 60)}" if until_nag else ""))
    if st.button("Mark current chunk complete"):
        st.session_state.schedule, st.session_state.tasks = complete_chunk(
            schedule, st.session_state.tasks, active.id, now)
        sync_reminders()
        st.rerun()

sync_reminders()
plan = st.session_state.reminders.plan
if plan is not None and plan.next_event is not None:
    st.caption(f"Next reminder at {plan.next_event.at.strftime('%H:%M')}: {plan.next_event.title}")

# Timeline
st.markdown("## Timeline")
chart = frame.copy()
chart["color"] = [
    "break" if kind == "break" else priority
    for kind, priority in zip(chart["type"], chart["priority"])
]
fig = px.timeline(chart, x_start="start", x_end="end", y="label", color="color",
                  color_discrete_map={**PRIORITY_COLORS, "break": BREAK_COLOR})
fig.update_yaxes(autorange="reversed")
st.plotly_chart(fig, use_container_width=True)

events = [{
    "title": row["label"],
    "start": pd.Timestamp(row["start"]).isoformat(),
    "end": pd.Timestamp(row["end"]).isoformat(),
    "id": row["id"],
    "color": BREAK_COLOR if row["type"] == "break" else PRIORITY_COLORS.get(row["priority"]),
} for _, row in frame.iterrows()]
calendar(events=events, options={
    "initialView": "timeGridDay",
    "initialDate": schedule.date,
    "slotMinTime": f"{schedule.start_time}:00",
    "slotMaxTime": f"{schedule.end_time}:00" if schedule.end_time != "24:00" else "24:00:00",
    "allDaySlot": False,
    "nowIndicator": True,
}, key="calendar")

for problem in check_contiguity(schedule):
    st.caption(f"⚠ {problem}")

st.markdown("### Allocation")
st.dataframe(task_allocation_summary(schedule, st.session_state.tasks))

# Edits
st.markdown("---")
st.markdown("## Edit schedule")
chunk_ids = [c.id for c in schedule.chunks]
labels = {c.id: chunk_label(c) for c in schedule.chunks}
pick = st.selectbox("Chunk", chunk_ids, format_func=labels.get, key="pick")
picked = schedule.find_chunk(pick)

tab_move, tab_resize, tab_edit, tab_done = st.tabs(["Move", "Resize", "Edit", "Complete / delete"])

with tab_move:
    target = st.selectbox("Put it where this chunk is", chunk_ids, format_func=labels.get, key="target")
    if st.button("Move onto chunk"):
        if apply(move_chunk, pick, target):
            st.rerun()
    drop = st.time_input("…or drop it at", value=dtime(9, 0), key="drop")
    if st.button("Move to time"):
        if apply(move_chunk_to_time, pick, hhmm(drop)):
            st.rerun()

with tab_resize:
    edge = st.radio("Edge", ["start", "end"], horizontal=True, key="resize_edge")
    new_time = st.time_input("New time", value=dtime(9, 30), key="resize_time")
    if st.button("Resize", key="resize"):
        if apply(resize_chunk, pick, edge, hhmm(new_time)):
            st.rerun()

with tab_edit:
    with st.form("edit_form"):
        e_start = st.text_input("Start (HH:MM)", value=picked.start_time)
        e_end = st.text_input("End (HH:MM)", value=picked.end_time)
        e_nag = st.number_input("Nag interval", 0, 120, value=picked.nag_interval_minutes)
        task_ids = [""] + [t.id for t in st.session_state.tasks]
        titles = {t.id: t.title for t in st.session_state.tasks}
        e_task = st.selectbox("Task", task_ids, format_func=lambda i: titles.get(i, "(unchanged)"))
        if st.form_submit_button("Save"):
            if apply(edit_chunk, pick, e_start, e_end, int(e_nag), e_task or None, st.session_state.tasks):
                st.rerun()

with tab_done:
    if st.button("Mark complete"):
        st.session_state.schedule, st.session_state.tasks = complete_chunk(
            schedule, st.session_state.tasks, pick, pd.Timestamp.now())
        sync_reminders()
        st.rerun()
    if st.button("Delete chunk", key="delete"):
        if apply(delete_chunk, pick):
            st.rerun()

if schedule.is_active and st.button("End session"):
    st.session_state.schedule = end_schedule(schedule)
    st.session_state.reminders.stop()
    st.rerun()

if st.session_state.reminder_log:
    st.markdown("### Reminders")
    for line in reversed(st.session_state.reminder_log[-20:]):
        st.write(line)
