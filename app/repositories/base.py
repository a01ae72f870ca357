from sqlalchemy import false


def active(model):
    """Soft-delete predicate every repository query applies explicitly."""
    return model.is_deleted == false()
