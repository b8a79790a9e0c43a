from fastapi import APIRouter, Depends

from marketplace.db.deps import get_current_user, get_user_directory
from marketplace.schemas.user import ProfileUpdate, UserOut
from marketplace.services.user_directory import UserDirectory

router = APIRouter()


@router.get("/user", response_model=UserOut)
def read_current_user(user: UserOut = Depends(get_current_user)):
    return user


@router.put("/user", response_model=UserOut)
def update_current_user(
    data: ProfileUpdate,
    user: UserOut = Depends(get_current_user),
    directory: UserDirectory = Depends(get_user_directory),
):
    return directory.update_profile(user.id, data)
