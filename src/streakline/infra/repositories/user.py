"""SQLModel implementation of the user repository."""

from __future__ import annotations

from typing import Optional

from sqlmodel import select

from ...models.user import User
from ..database import SessionFactory


class SQLModelUserRepository:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with self.session_factory() as session:
            obj = session.get(User, user_id)
            if obj:
                session.expunge(obj)
            return obj

    def get_by_username(self, username: str) -> Optional[User]:
        with self.session_factory() as session:
            obj = session.exec(select(User).where(User.username == username)).first()
            if obj:
                session.expunge(obj)
            return obj

    def create(self, user: User) -> User:
        with self.session_factory(write=True) as session:
            session.add(user)
            session.commit()
            session.refresh(user)
            session.expunge(user)
            return user

    def update(self, user: User) -> User:
        with self.session_factory(write=True) as session:
            merged = session.merge(user)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged
