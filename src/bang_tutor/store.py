"""
Transcript store: session records and their append-only message log.
"""

from uuid import uuid4

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import async_sessionmaker

from .models import Message, MessageRole, Session

logger = structlog.get_logger()


class TranscriptStore:
    """Reads and writes Session and Message rows."""

    def __init__(self, session_maker: async_sessionmaker):
        self._session_maker = session_maker

    async def create_session(self, topic: str) -> Session:
        """Deactivate every session, then insert a new active one."""
        async with self._session_maker() as db:
            await db.execute(
                update(Session).where(Session.is_active == True).values(is_active=False)  # noqa: E712
            )
            session = Session(id=str(uuid4()), topic=topic, is_active=True)
            db.add(session)
            await db.commit()
            await db.refresh(session)

        logger.info("Created session record", session_id=session.id, topic=topic)
        return session

    async def deactivate_session(self, session_id: str) -> None:
        async with self._session_maker() as db:
            await db.execute(
                update(Session).where(Session.id == session_id).values(is_active=False)
            )
            await db.commit()

    async def deactivate_all(self) -> None:
        async with self._session_maker() as db:
            await db.execute(
                update(Session).where(Session.is_active == True).values(is_active=False)  # noqa: E712
            )
            await db.commit()

    async def activate_session(self, session_id: str) -> Session | None:
        """Make ``session_id`` the only active session."""
        async with self._session_maker() as db:
            session = await db.get(Session, session_id)
            if session is None:
                return None
            await db.execute(
                update(Session)
                .where(Session.is_active == True, Session.id != session_id)  # noqa: E712
                .values(is_active=False)
            )
            session.is_active = True
            await db.commit()
            await db.refresh(session)
            return session

    async def get_session(self, session_id: str) -> Session | None:
        async with self._session_maker() as db:
            return await db.get(Session, session_id)

    async def get_active_session(self) -> Session | None:
        """Most recent active session record, if any."""
        async with self._session_maker() as db:
            result = await db.execute(
                select(Session)
                .where(Session.is_active == True)  # noqa: E712
                .order_by(Session.created_at.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def list_sessions(self, limit: int = 20) -> list[Session]:
        async with self._session_maker() as db:
            result = await db.execute(
                select(Session).order_by(Session.created_at.desc()).limit(limit)
            )
            return list(result.scalars().all())

    async def append_message(
        self,
        session_id: str,
        role: MessageRole,
        text: str,
        message_id: str | None = None,
    ) -> Message:
        async with self._session_maker() as db:
            message = Message(
                session_id=session_id,
                role=role.value,
                text=text,
                message_id=message_id or str(uuid4()),
            )
            db.add(message)
            await db.commit()
            await db.refresh(message)
            return message

    async def list_messages(self, session_id: str) -> list[Message]:
        """Messages of a session in insertion order."""
        async with self._session_maker() as db:
            result = await db.execute(
                select(Message)
                .where(Message.session_id == session_id)
                .order_by(Message.id)
            )
            return list(result.scalars().all())
