# NOTE: This is what registers our operator's functions with kopf so that
#       `kopf run -m myapp.operator` can work. If you add more handlers
#       to the operator, you must add them here.
# flake8: noqa: F401
from .operator import on_startup
from .operator import reconcile_myapp
from .operator import resync_myapp
