"""
Firebase integration for RentCar
Firestore client setup plus thin document helpers used by the services
"""
import copy
import json
import logging
import os
import secrets
import uuid
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

import firebase_admin
from firebase_admin import auth, credentials, firestore
from google.api_core.exceptions import NotFound
from google.cloud.firestore_v1 import FieldFilter

from rentcar.core.config import settings

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class MockFirestoreClient:
    """In-memory Firestore stand-in for development and tests"""

    def __init__(self, seed: bool = True):
        self._data: Dict[str, Dict[str, dict]] = {}
        if seed:
            self._initialize_mock_data()
        logger.info("🔧 Using Mock Firestore Client for development")

    def _initialize_mock_data(self):
        """Initialize with a small sample fleet"""
        now = utcnow()

        self._data['cars'] = {
            'toyota-camry': {
                'name': 'Toyota Camry',
                'model': '2024',
                'image': 'https://images.unsplash.com/photo-1621007947382-bb3c3994e3fb?w=800',
                'price_per_hour': 450.0,
                'description': 'Comfortable midsize sedan for city and highway trips.',
                'category': 'sedan',
                'transmission': 'Automatic',
                'seats': 5,
                'features': ['Bluetooth', 'Backup Camera', 'Cruise Control'],
                'quantity': 4,
                'available': 4,
                'created_at': now,
                'updated_at': now
            },
            'toyota-rav4': {
                'name': 'Toyota RAV4',
                'model': '2024',
                'image': 'https://images.unsplash.com/photo-1519641471654-76ce0107ad1b?w=800',
                'price_per_hour': 600.0,
                'description': 'Hybrid SUV with room for the whole family.',
                'category': 'suv',
                'transmission': 'Automatic',
                'seats': 7,
                'features': ['AWD', 'Third Row', '360 Camera'],
                'quantity': 3,
                'available': 3,
                'created_at': now,
                'updated_at': now
            },
            'suzuki-swift': {
                'name': 'Suzuki Swift',
                'model': '2023',
                'image': 'https://images.unsplash.com/photo-1605559424843-9e4c228bf1c2?w=800',
                'price_per_hour': 250.0,
                'description': 'Compact hatchback, easy to park.',
                'category': 'compact',
                'transmission': 'Manual',
                'seats': 5,
                'features': ['USB Ports', 'Keyless Entry'],
                'quantity': 6,
                'available': 6,
                'created_at': now,
                'updated_at': now
            }
        }

    def collection(self, name: str):
        """Return a mock collection"""
        return MockCollection(name, self._data)

    def document(self, path: str):
        """Return a mock document"""
        collection_name, doc_id = path.split('/', 1)
        return MockDocument(collection_name, doc_id, self._data)


def _matches(data: dict, field: str, op: str, value: Any) -> bool:
    current = data.get(field)
    if op == '==':
        return current == value
    if op == '!=':
        return current != value
    if op == 'in':
        return current in value
    if op == 'not-in':
        return current not in value
    if op == '<':
        return current is not None and current < value
    if op == '<=':
        return current is not None and current <= value
    if op == '>':
        return current is not None and current > value
    if op == '>=':
        return current is not None and current >= value
    raise ValueError(f"Unsupported mock operator: {op}")


class MockCollection:
    """Mock Firestore collection / query"""

    def __init__(self, name: str, data_store: dict, filters: Optional[List[Tuple[str, str, Any]]] = None):
        self.name = name
        self._data = data_store
        self._filters = filters or []
        self._data.setdefault(name, {})

    def document(self, doc_id: Optional[str] = None):
        """Return a mock document (auto id when omitted)"""
        return MockDocument(self.name, doc_id or uuid.uuid4().hex, self._data)

    def where(self, field_path: Optional[str] = None, op_string: Optional[str] = None,
              value: Any = None, *, filter: Optional[FieldFilter] = None):
        """Return a filtered query"""
        if filter is not None:
            field_path, op_string, value = filter.field_path, filter.op_string, filter.value
        return MockCollection(self.name, self._data, self._filters + [(field_path, op_string, value)])

    def stream(self):
        """Return snapshots for every document matching the filters"""
        docs = []
        for doc_id, doc_data in list(self._data[self.name].items()):
            if all(_matches(doc_data, f, op, v) for f, op, v in self._filters):
                docs.append(MockDocumentSnapshot(doc_id, doc_data, MockDocument(self.name, doc_id, self._data)))
        return docs

    def get(self):
        return self.stream()

    def add(self, data: dict):
        """Add a document with a generated id"""
        ref = self.document()
        ref.set(data)
        return (utcnow(), ref)


class MockDocument:
    """Mock Firestore document reference"""

    def __init__(self, collection_name: str, doc_id: str, data_store: dict):
        self.collection_name = collection_name
        self.id = doc_id
        self.path = f"{collection_name}/{doc_id}"
        self._data = data_store

    def get(self):
        data = self._data.get(self.collection_name, {}).get(self.id)
        return MockDocumentSnapshot(self.id, data, self)

    def set(self, data: dict, merge: bool = False):
        collection = self._data.setdefault(self.collection_name, {})
        if merge and self.id in collection:
            collection[self.id].update(copy.deepcopy(data))
        else:
            collection[self.id] = copy.deepcopy(data)

    def update(self, data: dict):
        collection = self._data.setdefault(self.collection_name, {})
        if self.id not in collection:
            raise NotFound(f"No document to update: {self.path}")
        collection[self.id].update(copy.deepcopy(data))

    def delete(self):
        self._data.get(self.collection_name, {}).pop(self.id, None)


class MockDocumentSnapshot:
    """Mock document snapshot"""

    def __init__(self, doc_id: str, data: Optional[dict], reference: Optional[MockDocument] = None):
        self.id = doc_id
        self._data = data
        self.reference = reference

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class MockAuth:
    """
    Mock Firebase Auth for development and tests

    Custom tokens double as ID tokens: there is no client SDK to exchange
    them, so a minted token is accepted directly until the process exits.
    Unknown tokens are rejected.
    """

    def __init__(self):
        self._tokens: Dict[str, Dict[str, Any]] = {}

    def create_custom_token(self, uid: str, developer_claims: Optional[Dict[str, Any]] = None) -> bytes:
        token = secrets.token_urlsafe(32)
        self._tokens[token] = {'uid': uid, **(developer_claims or {})}
        return token.encode()

    def verify_id_token(self, token: str) -> Dict[str, Any]:
        claims = self._tokens.get(token)
        if claims is None:
            raise auth.InvalidIdTokenError("Invalid ID token")
        return dict(claims)


class FirebaseClient:
    """Firebase Admin SDK client singleton"""

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(FirebaseClient, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._initialize_firebase()
            self._initialized = True

    def _initialize_firebase(self):
        """
        Initialize Firebase Admin SDK
        Supports three modes:
        1. Mock mode (USE_MOCK_FIREBASE=True) - in-memory database for development
        2. GOOGLE_APPLICATION_CREDENTIALS env var pointing to a JSON key file
        3. FIREBASE_CREDENTIALS_JSON env var with an inline JSON string
        """
        if settings.USE_MOCK_FIREBASE:
            logger.warning("🔧 Running in MOCK mode - using in-memory database (no real Firebase)")
            self._db = MockFirestoreClient(seed=settings.MOCK_FIREBASE_SEED)
            self._auth_client = MockAuth()
            self._mock_mode = True
            return

        try:
            google_creds_path = os.getenv('GOOGLE_APPLICATION_CREDENTIALS')

            if google_creds_path:
                logger.info(f"Loading Firebase credentials from GOOGLE_APPLICATION_CREDENTIALS: {google_creds_path}")
                cred = credentials.Certificate(google_creds_path)
            else:
                firebase_creds_json = os.getenv('FIREBASE_CREDENTIALS_JSON')

                if firebase_creds_json:
                    logger.info("Loading Firebase credentials from FIREBASE_CREDENTIALS_JSON environment variable")
                    cred = credentials.Certificate(json.loads(firebase_creds_json))
                else:
                    raise ValueError(
                        "Firebase credentials not found. Please set either:\n"
                        "  - USE_MOCK_FIREBASE=True (for development), or\n"
                        "  - GOOGLE_APPLICATION_CREDENTIALS=/path/to/firebase-key.json, or\n"
                        "  - FIREBASE_CREDENTIALS_JSON='{...}' (inline JSON string)"
                    )

            firebase_admin.initialize_app(cred)
            self._db = firestore.client()
            self._auth_client = auth
            self._mock_mode = False

            logger.info("✅ Firebase initialized successfully")

        except Exception as e:
            logger.error(f"❌ Failed to initialize Firebase: {e}")
            raise

    @property
    def db(self):
        """Get Firestore client instance"""
        return self._db

    @property
    def auth_client(self):
        """Firebase Auth module, or MockAuth in mock mode"""
        return self._auth_client

    @property
    def mock_mode(self) -> bool:
        return self._mock_mode


@lru_cache()
def get_firebase_client() -> FirebaseClient:
    return FirebaseClient()


def get_db():
    """FastAPI dependency returning the shared Firestore client"""
    return get_firebase_client().db


# ==================== Collection References ====================
class Collections:
    """Firestore collection names"""
    USERS = "users"
    CARS = "cars"
    BOOKINGS = "bookings"
    JOB_RUNS = "job_runs"


# ==================== Authentication Functions ====================

def create_login_token(uid: str, claims: Optional[Dict[str, Any]] = None) -> str:
    """
    Mint a Firebase custom token for a user who passed the password check.

    The client exchanges it for an ID token (signInWithCustomToken) and sends
    that as "Authorization: Bearer <id_token>". In mock mode the custom token
    is accepted as the ID token.
    """
    token = get_firebase_client().auth_client.create_custom_token(uid, claims)
    return token.decode() if isinstance(token, bytes) else token


def verify_id_token(token: str) -> Dict[str, Any]:
    """
    Verify Firebase ID token and return decoded claims.

    Raises:
        ValueError: If token is invalid or expired
    """
    try:
        return get_firebase_client().auth_client.verify_id_token(token)
    except auth.ExpiredIdTokenError:
        raise ValueError("Token has expired")
    except auth.InvalidIdTokenError:
        raise ValueError("Invalid ID token")
    except Exception as e:
        logger.error(f"Token verification error: {e}")
        raise ValueError(f"Token verification failed: {str(e)}")


# ==================== Firestore Helper Functions ====================

def get_document(db, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
    """Get a document by ID, or None when it does not exist"""
    doc = db.collection(collection).document(doc_id).get()
    if not doc.exists:
        return None
    data = doc.to_dict()
    data['id'] = doc.id
    return data


def list_documents(
    db,
    collection: str,
    filters: Optional[List[Tuple[str, str, Any]]] = None
) -> List[Dict[str, Any]]:
    """
    Fetch documents from a collection.

    Args:
        db: Firestore client
        collection: Collection name
        filters: Optional list of (field, operator, value) tuples

    Returns:
        List of documents with their id merged in
    """
    query = db.collection(collection)
    for field, operator, value in filters or []:
        query = query.where(filter=FieldFilter(field, operator, value))

    results = []
    for doc in query.stream():
        data = doc.to_dict()
        data['id'] = doc.id
        results.append(data)
    return results


def create_document(db, collection: str, data: Dict[str, Any], doc_id: Optional[str] = None) -> str:
    """Create a document and return its ID"""
    now = utcnow()
    data = {**data, 'created_at': data.get('created_at') or now, 'updated_at': now}
    data.pop('id', None)

    try:
        if doc_id:
            db.collection(collection).document(doc_id).set(data)
            return doc_id
        _, doc_ref = db.collection(collection).add(data)
        return doc_ref.id
    except Exception as e:
        logger.error(f"Error creating document in {collection}: {e}")
        raise


def update_document(db, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
    """Partially merge fields into an existing document"""
    try:
        db.collection(collection).document(doc_id).update({**data, 'updated_at': utcnow()})
    except Exception as e:
        logger.error(f"Error updating document {collection}/{doc_id}: {e}")
        raise


def delete_document(db, collection: str, doc_id: str) -> None:
    """Delete a document"""
    try:
        db.collection(collection).document(doc_id).delete()
    except Exception as e:
        logger.error(f"Error deleting document {collection}/{doc_id}: {e}")
        raise
