from datetime import datetime
from typing import Optional

from ..crds.myapp import MyApp
from .conditions import conditions_from_status, conditions_to_status, set_condition
from .store import Store


def update_status_condition(
    store: Store,
    app: MyApp,
    type: str,
    status: str,
    reason: str,
    message: str = "",
    now: Optional[datetime] = None,
) -> MyApp:
    """
    Set a condition on the MyApp and persist it through the status subresource.

    No write is issued when the condition is already current. Returns the
    fresh copy from the store, or `app` itself when nothing changed. Store
    errors propagate to the caller.
    """
    current = conditions_from_status(app.status)
    updated = set_condition(current, type, status, reason, message, now=now)
    if updated == current:
        return app
    return store.update_app_status(app.with_conditions(conditions_to_status(updated)))
