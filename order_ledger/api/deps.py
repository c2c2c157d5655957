from fastapi import Depends, HTTPException, Request
from order_ledger.auth_local import Principal, Role, decode_access_token
from shared.core import set_request_context

BEARER_PREFIX = "Bearer "

async def get_current_principal(request: Request) -> Principal:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        raise HTTPException(status_code=401, detail="Missing token")
    principal = decode_access_token(auth_header.split(" ", 1)[1])
    if not principal:
        raise HTTPException(status_code=401, detail="Invalid token")
    set_request_context(user_id=str(principal.user_id))
    return principal

def require_roles(*roles: Role):
    """Dependency factory that admits only the given roles."""
    def checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in roles:
            raise HTTPException(status_code=403, detail=f"{' or '.join(r.value for r in roles)} access required")
        return principal
    return checker
