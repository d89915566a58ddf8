"""Определение роли пользователя (Customer / Driver / Owner)."""

import pytest

from app.errors import NotFound
from app.models.user import Role
from app.services.actors import (
    CustomerActor, DriverActor, OwnerActor, resolve_actor, actor_to_dict,
)
from conftest import add_profile


class TestResolveActor:
    def test_customer_profile(self, db):
        add_profile(db, "u1", Role.CUSTOMER, full_name="Asha")
        actor = resolve_actor(db, "u1")
        assert isinstance(actor, CustomerActor)
        assert actor.id == "u1"
        assert actor.role == Role.CUSTOMER

    def test_driver_profile(self, db):
        add_profile(db, "u2", Role.DRIVER, driving_license="MH1420110023456")
        assert isinstance(resolve_actor(db, "u2"), DriverActor)

    def test_owner_profile_in_profiles_table(self, db):
        add_profile(db, "u3", Role.OWNER, company_name="Fleet Co", truck_count=4)
        actor = resolve_actor(db, "u3")
        assert isinstance(actor, OwnerActor)
        assert actor.company_name == "Fleet Co"
        assert actor_to_dict(actor)["total_trucks"] == 4

    def test_falls_back_to_owners_table(self, owner):
        assert isinstance(owner, OwnerActor)
        assert owner.full_name == "Kiran"
        data = actor_to_dict(owner)
        assert data["role"] == "Owner"
        assert data["total_trucks"] == 3

    def test_missing_profile_is_not_found(self, db):
        with pytest.raises(NotFound):
            resolve_actor(db, "nobody")

    def test_display_name_defaults_to_email_local_part(self, db):
        add_profile(db, "u4", Role.CUSTOMER)
        assert resolve_actor(db, "u4").full_name == "u4"
