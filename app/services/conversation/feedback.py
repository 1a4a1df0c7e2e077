import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.feedback import Feedback

logger = logging.getLogger(__name__)


class FeedbackService:
    """Service for storing user feedback and reading it back for moderators."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def add_feedback(
        self,
        user_id: str,
        session_id: Optional[str],
        rating: int,
        comment: Optional[str] = None,
    ) -> Feedback:
        try:
            feedback = Feedback(user_id=user_id, session_id=session_id, rating=rating, comment=comment)
            self.db.add(feedback)
            await self.db.commit()
            await self.db.refresh(feedback)

            logger.info(f"Added feedback {feedback.id} (rating {rating}) from user {user_id}")
            return feedback

        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error adding feedback from user {user_id}: {str(e)}")
            raise

    async def list_feedback(
        self,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> List[Feedback]:
        """Feedback entries, oldest first, optionally narrowed to a session or user."""
        query = select(Feedback).order_by(Feedback.created_at, Feedback.id)
        if session_id is not None:
            query = query.where(Feedback.session_id == session_id)
        if user_id is not None:
            query = query.where(Feedback.user_id == user_id)

        result = await self.db.execute(query)
        return list(result.scalars().all())
