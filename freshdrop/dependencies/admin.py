from fastapi import Depends, HTTPException

from freshdrop.models.profile import Profile, ProfileRole
from freshdrop.utils.token import Principal, get_current_principal, get_current_user


def require_admin(current_user: Profile = Depends(get_current_user)):
    if current_user.role != ProfileRole.admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user


def require_admin_or_service(principal: Principal = Depends(get_current_principal)):
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return principal


def require_operator(current_user: Profile = Depends(get_current_user)):
    if current_user.role not in (ProfileRole.operator, ProfileRole.admin):
        raise HTTPException(status_code=403, detail="Operator access required")
    return current_user
