import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ.pop("JWT_AUDIENCE", None)

from datetime import datetime
from typing import AsyncGenerator, Dict, Iterable, Optional
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.main import app
from app.auth.models import AdminUser, AuthIdentity, StudentUser, TeacherUser
from app.auth.security import create_access_token
from app.core.models import ClassEnrollment, SchoolClass
from app.db.session import Base, get_db


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def auth_headers(user_id: UUID) -> Dict[str, str]:
    token = create_access_token(subject={"sub": str(user_id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
async def engine():
    """One in-memory database per test; StaticPool keeps every session on the same connection."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app; each request gets its own session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


class Seeder:
    """Inserts directory rows straight into the database, bypassing the API."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self.session_factory = session_factory

    async def _identity(self, session: AsyncSession, email: str) -> UUID:
        identity = AuthIdentity(id=uuid4(), email=email, password_hash="not-a-real-hash")
        session.add(identity)
        await session.flush()
        return identity.id

    async def admin(self, full_name: str = "Ada Admin") -> UUID:
        async with self.session_factory() as session:
            user_id = await self._identity(session, f"admin-{uuid4().hex[:8]}@school.example.com")
            session.add(AdminUser(user_id=user_id, full_name=full_name, role="owner"))
            await session.commit()
            return user_id

    async def teacher(self, full_name: str = "Tom Teacher", email: Optional[str] = None) -> UUID:
        async with self.session_factory() as session:
            email = email or f"teacher-{uuid4().hex[:8]}@school.example.com"
            user_id = await self._identity(session, email)
            session.add(
                TeacherUser(
                    user_id=user_id,
                    full_name=full_name,
                    email=email,
                    languages_taught=["English"],
                    status="Active",
                )
            )
            await session.commit()
            return user_id

    async def student(self, full_name: str = "Sam Student", language: str = "English", level: str = "A1") -> UUID:
        async with self.session_factory() as session:
            email = f"student-{uuid4().hex[:8]}@school.example.com"
            user_id = await self._identity(session, email)
            session.add(
                StudentUser(
                    user_id=user_id,
                    full_name=full_name,
                    email=email,
                    language=language,
                    level=level,
                    status="Active",
                )
            )
            await session.commit()
            return user_id

    async def school_class(
        self,
        name: str = "English A1 Morning",
        max_students: int = 10,
        teacher_id: Optional[UUID] = None,
        status: str = "Active",
    ) -> UUID:
        async with self.session_factory() as session:
            obj = SchoolClass(
                name=name,
                language="English",
                level="A1",
                max_students=max_students,
                current_students=0,
                status=status,
                teacher_id=teacher_id,
            )
            session.add(obj)
            await session.commit()
            return obj.id

    async def enroll(self, class_id: UUID, student_ids: Iterable[UUID], status: str = "active") -> None:
        """Write enrollment rows directly and set the cached counter to match."""
        async with self.session_factory() as session:
            now = datetime.utcnow()
            ids = list(student_ids)
            for sid in ids:
                session.add(
                    ClassEnrollment(class_id=class_id, student_id=sid, status=status, created_at=now, updated_at=now)
                )
            school_class = await session.get(SchoolClass, class_id)
            if status == "active":
                school_class.current_students = (school_class.current_students or 0) + len(ids)
            await session.commit()


@pytest.fixture()
def seed(session_factory) -> Seeder:
    return Seeder(session_factory)


@pytest.fixture()
async def admin_headers(seed) -> Dict[str, str]:
    return auth_headers(await seed.admin())


@pytest.fixture()
def headers_for():
    """Bearer headers for any user id: headers_for(teacher_id)."""
    return auth_headers
