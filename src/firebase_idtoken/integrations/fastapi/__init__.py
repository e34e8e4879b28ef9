from __future__ import annotations

from .deps import FastAPIAuthorization
from .security import DEFAULT_COOKIE_NAME, bearer_scheme, extract_token_from_request
from ..common.auth_factory import (
    AuthDependencies,
    create_auth_dependencies_from_env,
    create_auth_dependencies_from_firebase,
)


def create_fastapi_auth(
    *,
    project_id: str | None = None,
    cookie_name: str = DEFAULT_COOKIE_NAME,
    **overrides,
) -> FastAPIAuthorization:
    """
    High-level helper for FastAPI apps:

    - Creates AuthDependencies from a Firebase project id
      (or from FIREBASE_* env vars when project_id is omitted)
    - Wraps them in FastAPIAuthorization, exposing dependencies like:

        fastapi_auth.get_current_user
        fastapi_auth.get_optional_user
        fastapi_auth.get_verified_claims

      and a lifespan hook:

        app = FastAPI(lifespan=fastapi_auth.lifespan)
    """
    if project_id is None:
        auth = create_auth_dependencies_from_env()
    else:
        auth = create_auth_dependencies_from_firebase(project_id=project_id, **overrides)
    return FastAPIAuthorization(auth=auth, cookie_name=cookie_name)


__all__ = [
    "FastAPIAuthorization",
    "bearer_scheme",
    "create_fastapi_auth",
    "extract_token_from_request",
]
