# main.py
import pandas as pd
import matplotlib.pyplot as plt

from chunk_scheduler.config import configure_logging, load_prefs
from chunk_scheduler.models import Break, Task
from chunk_scheduler.nag import compute_nag_schedule
from chunk_scheduler.progress import complete_chunk
from chunk_scheduler.scheduler import generate_schedule, schedule_to_frame, task_allocation_summary
from chunk_scheduler.timeline import delete_chunk, resize_chunk


PRIORITY_COLORS = {"high": "#d62728", "medium": "#ff7f0e", "low": "#2ca02c"}


def main():
    configure_logging()
    prefs = load_prefs()

    tasks = [
        Task(id="report", title="Quarterly report", priority="high",
             estimated_minutes=150, completed_minutes=30),
        Task(id="review", title="Code review", priority="medium",
             estimated_minutes=60, nag_interval_minutes=10),
        Task(id="inbox", title="Inbox zero", priority="low",
             estimated_minutes=45, chunk_minutes=15),
    ]
    breaks = [
        Break(id="coffee", time="10:30", duration_minutes=15),
        Break(id="lunch", time="12:00", duration_minutes=45),
    ]

    schedule = generate_schedule(
        tasks, "09:00", "13:30", breaks=breaks, prefs=prefs, name="Demo day")

    print("=== Schedule ===")
    print(schedule_to_frame(schedule)[["label", "start", "end", "duration_minutes"]])
    print()
    print("=== Allocation ===")
    print(task_allocation_summary(schedule, tasks))

    # Stretch the first chunk, then drop the second one
    first, second = schedule.chunks[0], schedule.chunks[1]
    schedule = resize_chunk(schedule, first.id, "end", "09:40")
    schedule = delete_chunk(schedule, second.id)

    # Work on the first chunk for 35 minutes
    day = pd.Timestamp(schedule.date)
    now = day + pd.Timedelta(hours=9, minutes=35)
    plan = compute_nag_schedule(schedule.chunks[0], day + pd.Timedelta(hours=9))
    print()
    print("=== Reminders for first chunk ===")
    for event in plan.events:
        print(event.at.strftime("%H:%M"), event.kind, event.title)

    schedule, tasks = complete_chunk(schedule, tasks, schedule.chunks[0].id, now)
    print()
    print("=== Task progress ===")
    for t in tasks:
        print(f"{t.title}: {t.completed_minutes}/{t.estimated_minutes} min")

    # Timeline plot
    frame = schedule_to_frame(schedule)
    fig, ax = plt.subplots(figsize=(10, 3))
    for _, row in frame.iterrows():
        color = "#7f7f7f" if row["type"] == "break" else PRIORITY_COLORS.get(row["priority"], "#1f77b4")
        start = row["start"].hour + row["start"].minute / 60
        ax.barh(0, row["duration_minutes"] / 60, left=start, color=color, edgecolor="black")
        ax.text(start + 0.02, 0, row["label"], va="center", fontsize=7, rotation=90)
    ax.set_yticks([])
    ax.set_xlabel("Hour of day")
    ax.set_title(schedule.name or "Schedule")
    plt.tight_layout()
    plt.show()


if __name__ == "__main__":
    main()
