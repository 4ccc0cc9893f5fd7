import mongomock
import pytest
from fastapi.testclient import TestClient

from config import Settings
from database import Store
from errors import UpstreamFailure
from gateway import IntentSnapshot
from main import create_app


class FakeGateway:
    """In-memory stand-in for StripeGateway."""

    def __init__(self):
        self.intents = {}
        self.created = []

    def add_intent(self, intent_id, status="succeeded", amount=1500, currency="usd"):
        self.intents[intent_id] = IntentSnapshot(id=intent_id, status=status, amount=amount, currency=currency)
        return self.intents[intent_id]

    def create_intent(self, amount, currency, description, metadata):
        intent_id = f"pi_test_{len(self.created) + 1}"
        self.created.append(
            {"amount": amount, "currency": currency, "description": description, "metadata": metadata}
        )
        return IntentSnapshot(
            id=intent_id,
            status="requires_payment_method",
            amount=amount,
            currency=currency,
            client_secret=f"{intent_id}_secret",
        )

    def retrieve_intent(self, payment_intent_id):
        if payment_intent_id not in self.intents:
            raise UpstreamFailure("Cannot verify Stripe PaymentIntent")
        return self.intents[payment_intent_id]


@pytest.fixture
def store():
    return Store(mongomock.MongoClient()["life-insurance-test"])


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def settings(tmp_path):
    s = Settings()
    s.UPLOAD_DIR = str(tmp_path / "uploads")
    return s


@pytest.fixture
def client(settings, store, gateway):
    return TestClient(create_app(settings, store, gateway))


@pytest.fixture
def make_policy(store):
    def _make(**fields):
        doc = {"title": "Term Life", "category": "Term", "policyType": "Term", "popularity": 0}
        doc.update(fields)
        return store.policies.insert_one(doc).inserted_id
    return _make


@pytest.fixture
def make_application(store):
    def _make(**fields):
        doc = {"fullName": "Jane Doe", "email": "jane@example.com", "status": "Pending"}
        doc.update(fields)
        return store.applications.insert_one(doc).inserted_id
    return _make
