from functools import wraps
import inspect
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from auth.models import ClientIdentity
from common.logging import client_id_var, get_logger
from common.middleware import client_ip
from dependencies import AuthenticatorDep, SettingsDep

logger = get_logger("auth")
security = HTTPBearer(auto_error=False)


def authorize(admin_required: bool = False, admin_setting: Optional[str] = None):
    """
    Authentication decorator for route handlers.

    `admin_required` always demands the admin key; `admin_setting` names a
    boolean Settings field that decides it at request time.

    Usage:
    @authorize()
    async def my_endpoint(pdf_id: str, current_client: ClientIdentity = None):
        # current_client is injected after the bearer token is validated
        pass
    """
    def create_dependency():
        async def auth_dependency(
            request: Request,
            authenticator: AuthenticatorDep,
            settings: SettingsDep,
            credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
        ) -> ClientIdentity:
            needs_admin = admin_required or bool(admin_setting and getattr(settings, admin_setting))
            token = credentials.credentials if credentials else None

            identity = authenticator.authenticate(token, admin_required=needs_admin, ip_address=client_ip(request))

            request.state.client_id = identity.id
            client_id_var.set(identity.id)
            logger.debug(f"Authenticated client {identity.id} for {request.method} {request.url.path}")
            return identity

        return auth_dependency

    def decorator(func):
        sig = inspect.signature(func)
        expects_current_client = 'current_client' in sig.parameters

        dependency = Depends(create_dependency())

        if expects_current_client:
            @wraps(func)
            async def wrapper(*args, current_client: ClientIdentity = dependency, **kwargs):
                if inspect.iscoroutinefunction(func):
                    return await func(*args, current_client=current_client, **kwargs)
                return func(*args, current_client=current_client, **kwargs)

            # Replace only the `current_client` parameter with the dependency
            new_params = []
            for name, p in sig.parameters.items():
                if name == 'current_client':
                    p = p.replace(default=dependency, annotation=ClientIdentity)
                new_params.append(p)
            wrapper.__signature__ = sig.replace(parameters=tuple(new_params))
            return wrapper

        # Inject the dependency without exposing it to the handler
        @wraps(func)
        async def wrapper(*args, _current_client: ClientIdentity = dependency, **kwargs):
            if inspect.iscoroutinefunction(func):
                return await func(*args, **kwargs)
            return func(*args, **kwargs)

        params = list(sig.parameters.values())
        var_kw_index = next((i for i, p in enumerate(params) if p.kind == inspect.Parameter.VAR_KEYWORD), None)
        hidden_param = inspect.Parameter(
            name="_current_client",
            kind=inspect.Parameter.KEYWORD_ONLY,
            default=dependency,
            annotation=ClientIdentity,
        )
        if var_kw_index is not None:
            params.insert(var_kw_index, hidden_param)
        else:
            params.append(hidden_param)
        wrapper.__signature__ = sig.replace(parameters=tuple(params))
        return wrapper

    return decorator
