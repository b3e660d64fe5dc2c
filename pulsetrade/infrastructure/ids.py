import uuid


def generate_order_id() -> str:
    """Return a process-unique order id."""
    return str(uuid.uuid4())
