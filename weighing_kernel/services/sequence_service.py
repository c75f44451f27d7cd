"""
SequenceService -- monotonic sequence allocation via an atomic counter row.

Responsibility:
    Provides strictly increasing sequence numbers, and the zero-padded ticket
    numbers built on them.  Each allocation is one
    ``UPDATE ... SET current_value = current_value + 1 ... RETURNING``
    statement, which takes the row's write lock in every supported backend,
    so two transactions can never read the same value.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by ReportLifecycleService.create() for ticket numbers.

Invariants enforced:
    - Monotonicity: the counter row is the sole source of truth.  Reading the
      latest report and adding one is FORBIDDEN.
    - Transactional: an increment is visible only after the caller commits;
      rollback returns the value.

Failure modes:
    - IntegrityError when two transactions create the same counter on first
      use.  The losing transaction must be retried as a whole (the
      lifecycle's retry loop does this).
"""

from sqlalchemy import BigInteger, String, select, update
from sqlalchemy.orm import Mapped, Session, mapped_column

from weighing_kernel.db.base import Base
from weighing_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row represents a named sequence with its current value.
    """

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )


class SequenceService:
    """
    Service for generating transactional sequence numbers.

    Guarantees:
        - Strictly increasing values per sequence name.
        - No duplicate values under concurrent allocation.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.

    Usage:
        with session.begin():
            seq = sequence_service.next_value("report_ticket")
    """

    REPORT_TICKET = "report_ticket"

    def __init__(self, session: Session):
        self._session = session

    def next_value(self, sequence_name: str) -> int:
        """
        Get the next value for a named sequence.

        Preconditions:
            - ``sequence_name`` is a non-empty string.
            - The caller is within an active database transaction.

        Postconditions:
            - Returns an integer > 0, strictly greater than any value
              previously returned for this sequence name.
        """
        if not sequence_name:
            raise ValueError("sequence_name must be a non-empty string")

        # Atomic increment; the UPDATE holds the row lock until commit.
        value = self._session.execute(
            update(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .values(current_value=SequenceCounter.current_value + 1)
            .returning(SequenceCounter.current_value)
            .execution_options(synchronize_session=False)
        ).scalar_one_or_none()

        if value is None:
            # First use of this sequence
            self._session.add(SequenceCounter(name=sequence_name, current_value=1))
            self._session.flush()
            value = 1
            logger.info(
                "sequence_counter_created",
                extra={"sequence_name": sequence_name},
            )

        if value <= 0:
            raise RuntimeError(
                f"Sequence {sequence_name} produced non-positive value {value}"
            )

        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": value},
        )
        return value

    def current_value(self, sequence_name: str) -> int | None:
        """
        Get the current value of a sequence without incrementing.

        Returns:
            The current value, or None if the sequence has never been used.
        """
        return self._session.execute(
            select(SequenceCounter.current_value)
            .where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()


class TicketSequencer:
    """Formats sequence values as fixed-width, zero-padded ticket numbers."""

    def __init__(
        self,
        sequence_service: SequenceService,
        width: int = 6,
        sequence_name: str = SequenceService.REPORT_TICKET,
    ):
        if width < 1:
            raise ValueError(f"Ticket width must be positive, got {width}")
        self._sequences = sequence_service
        self._width = width
        self._sequence_name = sequence_name

    def next(self) -> str:
        """Allocate the next ticket number, e.g. ``"000042"``."""
        value = self._sequences.next_value(self._sequence_name)
        return str(value).zfill(self._width)
