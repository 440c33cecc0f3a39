"""
Shared fixtures: every test runs against a fresh in-memory Firestore
"""
import os

os.environ.setdefault("USE_MOCK_FIREBASE", "true")
os.environ.setdefault("MOCK_FIREBASE_SEED", "false")

import pytest
from werkzeug.security import generate_password_hash

from rentcar.core.firebase import Collections, MockFirestoreClient, create_document
from rentcar.services.inventory.quantity import SessionRegistry

TEST_DEBOUNCE_SECONDS = 0.05


@pytest.fixture
def db():
    return MockFirestoreClient(seed=False)


@pytest.fixture
def make_car(db):
    def _make_car(car_id, quantity=5, available=None, **fields):
        data = {
            'name': fields.pop('name', car_id.replace('-', ' ').title()),
            'model': '2024',
            'image': 'https://example.com/car.jpg',
            'price_per_hour': 300.0,
            'description': '',
            'category': 'sedan',
            'transmission': 'Automatic',
            'seats': 5,
            'features': [],
            'quantity': quantity,
            'available': quantity if available is None else available,
        }
        data.update(fields)
        return create_document(db, Collections.CARS, data, doc_id=car_id)
    return _make_car


@pytest.fixture
def make_booking(db):
    def _make_booking(car_id, status='pending', user_id='user-1', total_amount=100.0, **fields):
        data = {
            'user_id': user_id,
            'car_id': car_id,
            'start_date': '2024-06-01',
            'end_date': '2024-06-02',
            'start_time': '10:00',
            'end_time': '12:00',
            'total_amount': total_amount,
            'need_driver': False,
            'driver_contact': None,
            'status': status,
        }
        data.update(fields)
        return create_document(db, Collections.BOOKINGS, data)
    return _make_booking


@pytest.fixture
def make_user(db):
    def _make_user(email, role='user', status='active', password='secret123', name='Test User'):
        return create_document(db, Collections.USERS, {
            'name': name,
            'email': email,
            'password_hash': generate_password_hash(password),
            'phone': None,
            'role': role,
            'status': status,
        })
    return _make_user


@pytest.fixture
def registry():
    return SessionRegistry(debounce_seconds=TEST_DEBOUNCE_SECONDS)


@pytest.fixture
def client(db, registry):
    from fastapi.testclient import TestClient

    from rentcar.api.v1.admin import get_session_registry
    from rentcar.core.firebase import get_db
    from rentcar.main import app

    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_session_registry] = lambda: registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Bearer headers carrying a freshly minted token for a user id"""
    from rentcar.core.firebase import create_login_token

    def _auth_headers(user_id):
        return {'Authorization': f'Bearer {create_login_token(user_id)}'}
    return _auth_headers
