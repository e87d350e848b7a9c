"""
Shared fixtures.

Environment is set before anything from storefront is imported so the
settings module picks up test values instead of the local .env.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SESSION_TTL_SECONDS"] = "3600"

from decimal import Decimal
import time

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from storefront.api import deps
from storefront.data.database import build_engine, get_db, init_db
from storefront.data.models.item import ItemModel
from storefront.data.models.user import UserModel
from storefront.main import create_app
from storefront.services.catalog import CatalogItem
from storefront.services.revocation_registry import RevocationRegistry
from storefront.services.token_service import TokenService
from storefront.utils.security import hash_password


class FakeClock:
    def __init__(self, start: float | None = None):
        self.now = float(int(start or time.time()))

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeCatalog:
    """
    In-memory catalog. ``on_lookup`` is called once before the next lookup,
    tests use it to interleave a second request inside the first one.
    """

    def __init__(self):
        self.items: dict[int, CatalogItem] = {}
        self.lookups = 0
        self.on_lookup = None

    def add(self, item_id: int, name: str, price, stock: int) -> CatalogItem:
        item = CatalogItem(
            id=item_id,
            name=name,
            price=Decimal(str(price)),
            stock=stock,
            image_url=f"https://img.test/{item_id}.png",
        )
        self.items[item_id] = item
        return item

    def set_price(self, item_id: int, price):
        old = self.items[item_id]
        self.add(item_id, old.name, price, old.stock)

    def set_stock(self, item_id: int, stock: int):
        old = self.items[item_id]
        self.add(item_id, old.name, old.price, stock)

    def remove(self, item_id: int):
        self.items.pop(item_id, None)

    def find_by_id(self, item_id: int) -> CatalogItem | None:
        self.lookups += 1
        if self.on_lookup is not None:
            hook, self.on_lookup = self.on_lookup, None
            hook()
        return self.items.get(item_id)


class FakeImageStorage:
    def __init__(self):
        self.uploads = []
        self.fail = None

    def upload(self, data: bytes, filename: str, content_type: str) -> dict:
        if self.fail:
            raise self.fail
        public_id = f"items/{len(self.uploads) + 1}"
        self.uploads.append((public_id, data, filename, content_type))
        return {"url": f"https://img.test/{public_id}.png", "public_id": public_id}


@pytest.fixture
def engine(tmp_path):
    # file backed so separate sessions get separate connections
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def registry(redis_client):
    return RevocationRegistry(redis_client)


@pytest.fixture
def token_service():
    return TokenService(secret="test-secret", algorithm="HS256", ttl_seconds=3600)


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def user(db):
    u = UserModel(
        first_name="Ada",
        last_name="Lovelace",
        email="ada@example.com",
        password_hash=hash_password("secret123"),
        role="user",
    )
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def image_storage():
    return FakeImageStorage()


@pytest.fixture
def cleaned_images():
    return []


@pytest.fixture
def app(session_factory, redis_client, token_service, image_storage, cleaned_images):
    app = create_app(redis_client=redis_client)

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[deps.get_token_service] = lambda: token_service
    app.dependency_overrides[deps.get_image_storage] = lambda: image_storage
    app.dependency_overrides[deps.get_image_cleanup] = lambda: cleaned_images.append
    return app


@pytest.fixture
def test_client(app):
    return TestClient(app)


@pytest.fixture
def make_item(db):
    def _make(name="Widget", price="10.00", stock=5, category="Other"):
        item = ItemModel(
            name=name,
            description=f"{name} description",
            price=Decimal(price),
            category=category,
            stock=stock,
            image_url="https://via.placeholder.com/150",
        )
        db.add(item)
        db.commit()
        db.refresh(item)
        return item
    return _make


def register(client: TestClient, email="ada@example.com", password="secret123"):
    return client.post(
        "/user/register",
        json={"first_name": "Ada", "last_name": "Lovelace", "email": email, "password": password},
    )


@pytest.fixture
def auth_client(test_client):
    """Client holding the session cookie of a freshly registered user."""
    response = register(test_client)
    assert response.status_code == 201
    return test_client


@pytest.fixture
def admin_client(app, db):
    client = TestClient(app)
    response = register(client, email="admin@example.com")
    assert response.status_code == 201

    admin = db.query(UserModel).filter(UserModel.email == "admin@example.com").one()
    admin.role = "admin"
    db.commit()
    return client
