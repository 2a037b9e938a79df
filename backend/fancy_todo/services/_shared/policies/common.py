def is_owner(*, actor, owner) -> bool:
    """Return True if the actor owns the resource.

    An unresolved actor (``None``) never owns anything.
    """
    if actor is None or owner is None:
        return False
    return str(actor) == str(owner)
