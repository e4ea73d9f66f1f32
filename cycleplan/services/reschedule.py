"""
RescheduleEngine - cascades a moved session to the rest of its cycle.

Moving one planned session by N days moves every later, still-open session
of the same cycle by N days as well. The recurrence is not re-run, so
manually edited and completed sessions survive.
"""

from __future__ import annotations

from datetime import date

from cycleplan.core.logging import get_logger
from cycleplan.schemas.cycle import Cycle
from cycleplan.schemas.datetime import parse_date
from cycleplan.schemas.session import SessionStub

logger = get_logger(__name__)


class RescheduleEngine:
    """Stateless delta propagation over a cycle's sessions."""

    def reschedule_future_sessions(
        self,
        cycle: Cycle,
        edited_session: SessionStub,
        original_date: date,
    ) -> Cycle:
        """
        Shift the sessions that follow an edited session by the same delta.

        Args:
            cycle: Cycle owning the edited session
            edited_session: The session carrying its new date
            original_date: The date the session had before the edit

        Returns:
            New cycle with the edited session stored at its new date and every
            other open session strictly after ``original_date`` shifted
        """
        original = parse_date(original_date)
        delta = (edited_session.date - original).days

        sessions = []
        shifted = 0
        for session in cycle.sessions:
            if session.id == edited_session.id:
                sessions.append(edited_session)
            elif delta and not session.completed and session.date > original:
                sessions.append(session.shifted(delta))
                shifted += 1
            else:
                sessions.append(session)

        logger.info(
            "sessions_rescheduled",
            cycle_id=cycle.id,
            session_id=edited_session.id,
            original_date=original.isoformat(),
            delta_days=delta,
            shifted_count=shifted,
        )
        return cycle.with_fields(sessions=tuple(sessions))


reschedule_engine = RescheduleEngine()
