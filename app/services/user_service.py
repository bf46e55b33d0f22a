import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import UserNotFound
from app.models.user import User, UserStatus

logger = logging.getLogger(__name__)


class UserService:

    def create_user(
        self,
        db: Session,
        name: str,
        email: str,
        entry_id: int,
        company: Optional[str] = None,
        status: UserStatus = UserStatus.PENDING
    ) -> User:
        """Create a user. Self-registrations start PENDING, admin-created users APPROVED."""
        user = User(name=name, email=email, company=company, entry_id=entry_id, status=status)
        db.add(user)
        db.commit()
        db.refresh(user)

        logger.info(f"Created user {user.id} for entry {entry_id} with status {status.value}")
        return user

    def get_user(self, db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise UserNotFound(f"User {user_id} not found")
        return user

    def list_users(self, db: Session, status: Optional[UserStatus] = None) -> List[User]:
        """List users, newest first."""
        query = db.query(User)
        if status is not None:
            query = query.filter(User.status == status)
        return query.order_by(User.created_at.desc(), User.id.desc()).all()

    def update_status(self, db: Session, user_id: int, status: UserStatus) -> User:
        user = self.get_user(db, user_id)
        previous = user.status
        user.status = status
        db.commit()
        db.refresh(user)

        logger.info(f"User {user_id} moved from {previous.value} to {status.value}")
        return user

    def delete_user(self, db: Session, user_id: int) -> None:
        user = self.get_user(db, user_id)
        db.delete(user)
        db.commit()
        logger.info(f"Deleted user {user_id}")


user_service_obj = UserService()
