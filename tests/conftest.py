import mongomock
import pytest
from fastapi.testclient import TestClient

from database import create_document, get_db
from main import create_app
from schemas import Category

PRODUCTS = "/api/v1/products"
USERS = "/api/v1/users"
SECRET = "test-secret"

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


@pytest.fixture
def db():
    return mongomock.MongoClient()["catalog_test"]


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def app(db, upload_dir):
    app = create_app(secret=SECRET, upload_dir=str(upload_dir), api_prefix="/api/v1", auth_enabled=False)
    app.dependency_overrides[get_db] = lambda: db
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def category_id(db):
    return create_document(db, "category", Category(name="Phones", icon="phone", color="#333"))


@pytest.fixture
def product_fields(category_id):
    return {
        "name": "Pixel 7A",
        "description": "Android phone",
        "long_description": "<p>Powerful camera</p>",
        "brand": "Google",
        "price": "349.99",
        "category": category_id,
        "count_in_stock": "25",
        "rating": "4.4",
        "num_reviews": "12",
        "is_featured": "true",
    }


@pytest.fixture
def make_product(client, product_fields):
    def _make(**overrides):
        fields = {**product_fields, **overrides}
        res = client.post(f"{PRODUCTS}/", data=fields, files={"image": ("phone photo.png", PNG, "image/png")})
        assert res.status_code == 200, res.text
        return res.json()
    return _make


@pytest.fixture
def user_body():
    return {
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "password": "s3cret-pass",
        "phone": "+44 1234",
        "is_admin": True,
        "street": "1 Analytical Way",
        "apartment": "2B",
        "zip": "NW1",
        "city": "London",
        "country": "UK",
    }
