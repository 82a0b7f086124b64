"""Example: drive the service layer directly (no Flask), on the in-memory store.

Walks through one class meeting: open a session, two check-ins, close, and
the absence backfill for the student who never showed up.
"""

from datetime import datetime, time

from src.class_attendance.class_attendance.classes.model import ClassInfo
from src.class_attendance.class_attendance.common.datetime_utils import FixedClock
from src.class_attendance.class_attendance.container import build_container


def main():
    clock = FixedClock(datetime(2026, 3, 2, 9, 5))
    container = build_container(store_backend="memory", clock=clock)
    container.memory_db.add_class(ClassInfo(class_id=1, name="Algorithms", start_time=time(9, 0)))
    container.memory_db.enroll(1, "alice", "bob", "carol")

    session = container.lifecycle.open_session(1, clock.now())
    print("token:", session.token, "expires:", session.expires_at)

    print(container.check_in_service.submit_check_in(session.token, "alice", clock.now()))
    clock.advance(minutes=13)
    print(container.check_in_service.submit_check_in(session.token, "bob", clock.now()))

    closure = container.lifecycle.end_session(session.session_id, clock.now())
    print("absences written:", closure.absences_written)
    for record in container.attendance_repo.list_for_session(session.session_id):
        print(record.student_id, record.status.value)


if __name__ == "__main__":
    main()
