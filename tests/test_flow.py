"""
End-to-end dealer onboarding, through the services and through the web app.
"""

from fastapi.testclient import TestClient

from matlynx.auth import AuthSessionManager
from matlynx.contracts.records import User
from matlynx.contracts.types import UserRole
from matlynx.gate import GateDecision, check
from matlynx.web import create_app


def test_dealer_onboarding_services(store, profiles, clock):
    auth = AuthSessionManager(store)
    user = auth.register(User(
        name="A",
        email="a@x.com",
        password="secret1",
        phone="9876543210",
        role=UserRole.DEALER,
        created_at=clock(),
    ))
    assert profiles.has_complete_profile(user.email) is False
    assert check(auth, profiles, "/dealer") == GateDecision.redirect("/profile-setup")

    address = {
        "street": "1 Main Rd",
        "area": "Jayanagar",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560041",
    }
    profiles.save_profile(user, {"full_name": "A Kumar", "phone": "9876543210", "address": address})
    assert profiles.has_complete_profile(user.email) is False
    assert check(auth, profiles, "/dealer") == GateDecision.redirect("/profile-setup")

    profile = profiles.save_profile(user, {"shop_name": "A Hardware", "address": address})
    assert profile.is_complete is True
    assert check(auth, profiles, "/dealer") == GateDecision.render("/dealer")


def test_dealer_onboarding_web(store, clock):
    client = TestClient(create_app(store=store, clock=clock), follow_redirects=False)

    client.post("/auth/register", data={
        "name": "A",
        "email": "a@x.com",
        "phone": "9876543210",
        "password": "secret1",
        "role": "dealer",
    })
    assert client.get("/dealer").headers["location"] == "/profile-setup"

    profile_form = {
        "full_name": "A Kumar",
        "phone": "9876543210",
        "street": "1 Main Rd",
        "area": "Jayanagar",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560041",
    }
    rejected = client.post("/profile-setup", data=profile_form)
    assert rejected.status_code == 400
    assert client.get("/dealer").headers["location"] == "/profile-setup"

    saved = client.post("/profile-setup", data={**profile_form, "shop_name": "A Hardware"})
    assert saved.headers["location"] == "/dealer"

    dashboard = client.get("/dealer")
    assert dashboard.status_code == 200
    assert dashboard.json()["page"] == "dealer"
