"""Request-scoped FastAPI dependencies.

WHAT: Builds the per-request API client and the navigation gate used by the
broker, admin and student routers.
WHEN: Resolved by FastAPI for every route that declares them.
HOW: ``api.get_api_client`` wraps the cookie tokens; ``ui_auth`` decodes them
and applies the role rules from ``services.navigation``.
"""
