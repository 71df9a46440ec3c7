import pytest
from sqlalchemy.exc import IntegrityError

from models import storage
from models.subscription import Subscription
from models.user import User


def test_to_dict_never_exposes_secrets(make_user):
    user = make_user("ada")
    user.refresh_token = "opaque"

    d = user.to_dict()

    assert d["username"] == "ada"
    assert d["__class__"] == "User"
    assert "password_hash" not in d
    assert "refresh_token" not in d
    assert "opaque" not in str(user)


def test_password_is_write_only(make_user):
    user = make_user("ada")
    with pytest.raises(AttributeError):
        user.password


def test_duplicate_subscription_rejected(make_user):
    ada = make_user("ada")
    grace = make_user("grace")
    storage.new(Subscription(channel_id=ada.id, subscriber_id=grace.id))
    storage.save()

    storage.new(Subscription(channel_id=ada.id, subscriber_id=grace.id))
    with pytest.raises(IntegrityError):
        storage.save()


def test_deleting_user_cascades_to_subscriptions(make_user):
    ada = make_user("ada")
    grace = make_user("grace")
    storage.new(Subscription(channel_id=ada.id, subscriber_id=grace.id))
    storage.save()

    storage.delete(storage.get(User, ada.id))
    storage.save()

    assert storage.get_session().query(Subscription).count() == 0
