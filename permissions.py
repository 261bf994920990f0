import errors, models


def can_mutate(identity: models.User, resource) -> bool:
    return resource.user_id == identity.id


def ensure_can_mutate(identity: models.User, resource, action: str) -> None:
    if not can_mutate(identity, resource):
        raise errors.AuthorizationError(f"You can only {action} your own books")
