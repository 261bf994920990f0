import pytest

import errors, models, permissions


def _user(user_id):
    return models.User(id=user_id, email=f"{user_id}@example.com", password_hash="x", created_at="2024-01-01")


def _book(owner_id):
    return models.Book(
        id="book-1",
        title="T",
        author="A",
        genre="G",
        published_year=2020,
        user_id=owner_id,
        created_at="2024-01-01",
    )


def test_owner_can_mutate():
    assert permissions.can_mutate(_user("u1"), _book("u1")) is True


def test_other_user_cannot_mutate():
    assert permissions.can_mutate(_user("u2"), _book("u1")) is False


@pytest.mark.parametrize("action", ["update", "delete"])
def test_ensure_can_mutate_message(action):
    with pytest.raises(errors.AuthorizationError) as exc_info:
        permissions.ensure_can_mutate(_user("u2"), _book("u1"), action)
    assert exc_info.value.status_code == 403
    assert exc_info.value.message == f"You can only {action} your own books"


def test_ensure_can_mutate_allows_owner():
    permissions.ensure_can_mutate(_user("u1"), _book("u1"), "update")
