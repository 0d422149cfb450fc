"""
EcoWasteConnect - Test Configuration and Fixtures
"""
import os
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test_wasteconnect.db'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['LOG_LEVEL'] = 'WARNING'

from app.main import app
from app.core.database import Base, get_db
from app.core.security import get_password_hash, create_user_token
from app.domain.pickup_lifecycle import WasteType
from app.models.community import Community, default_community_settings, default_pickup_schedule
from app.models.route import Route
from app.models.user import User, UserRole, default_preferences

fake = Faker()

TEST_PASSWORD = 'testpassword123'

ADDRESS = {
    'street': '1 River Rd',
    'city': 'Springfield',
    'state': 'IL',
    'zipCode': '62701',
    'country': 'USA',
}

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test_wasteconnect.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


def tomorrow_iso(days: int = 1) -> str:
    """ISO timestamp `days` ahead, at 10:00 UTC"""
    moment = datetime.now(timezone.utc) + timedelta(days=days)
    return moment.replace(hour=10, minute=0, second=0, microsecond=0).isoformat()


def pickup_payload(**overrides) -> dict:
    payload = {
        'scheduledDate': tomorrow_iso(),
        'timeSlot': 'morning',
        'wasteType': 'recyclable',
        'address': dict(ADDRESS),
        'estimatedWeight': 12.5,
    }
    payload.update(overrides)
    return payload


def issue_payload(**overrides) -> dict:
    payload = {
        'type': 'missed_pickup',
        'title': 'Bin was not collected',
        'description': 'The recycling bin was left full on the curb all day.',
        'location': {'address': '1 River Rd'},
    }
    payload.update(overrides)
    return payload


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


async def make_community(db_session: AsyncSession, name: str) -> Community:
    community = Community(
        name=name,
        description=fake.sentence(),
        address=dict(ADDRESS),
        pickup_schedule=default_pickup_schedule(),
        settings=default_community_settings(),
    )
    db_session.add(community)
    await db_session.commit()
    await db_session.refresh(community)
    return community


async def make_user(
    db_session: AsyncSession,
    role: UserRole = UserRole.USER,
    community: Community = None,
    email: str = None,
) -> User:
    user = User(
        email=email or fake.unique.email(),
        name=fake.name(),
        hashed_password=get_password_hash(TEST_PASSWORD),
        role=role,
        community_id=community.id if community else None,
        address=dict(ADDRESS),
        preferences=default_preferences(),
        is_active=True,
        is_email_verified=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def community(db_session: AsyncSession) -> Community:
    return await make_community(db_session, 'Green Valley')


@pytest.fixture
async def other_community(db_session: AsyncSession) -> Community:
    return await make_community(db_session, 'Hill Side')


@pytest.fixture
async def test_user(db_session: AsyncSession, community: Community) -> User:
    """A resident of `community`"""
    return await make_user(db_session, community=community)


@pytest.fixture
async def other_user(db_session: AsyncSession, community: Community) -> User:
    """Another resident of the same community"""
    return await make_user(db_session, community=community)


@pytest.fixture
async def outsider(db_session: AsyncSession, other_community: Community) -> User:
    return await make_user(db_session, community=other_community)


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, role=UserRole.ADMIN, email=f"{fake.user_name()}@admin.com")


@pytest.fixture
async def community_admin(db_session: AsyncSession, community: Community) -> User:
    return await make_user(db_session, role=UserRole.COMMUNITY_ADMIN, community=community)


@pytest.fixture
async def route(db_session: AsyncSession, community: Community) -> Route:
    """Runs every day for every waste type in `community`"""
    route = Route(
        name='Daily Route',
        community_ids=[str(community.id)],
        schedule={
            'days': ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday'],
            'startTime': '08:00',
            'endTime': '16:00',
            'estimatedDuration': 480,
        },
        waste_types=[w.value for w in WasteType],
        waypoints=[],
        max_pickups_per_day=2,
    )
    db_session.add(route)
    await db_session.commit()
    await db_session.refresh(route)
    return route


@pytest.fixture
def headers_for() -> Callable[[User], dict]:
    """Build bearer headers for any user"""
    def _headers(user: User) -> dict:
        return {'Authorization': f'Bearer {create_user_token(user)}'}
    return _headers


@pytest.fixture
def auth_headers(test_user: User, headers_for) -> dict:
    """Generate authentication headers for test user"""
    return headers_for(test_user)


@pytest.fixture
def admin_auth_headers(admin_user: User, headers_for) -> dict:
    """Generate authentication headers for admin user"""
    return headers_for(admin_user)


@pytest.fixture
def pickup_data() -> Callable[..., dict]:
    return pickup_payload


@pytest.fixture
def issue_data() -> Callable[..., dict]:
    return issue_payload
