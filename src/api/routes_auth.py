"""
认证 API：注册、登录、查看/修改本人资料。
"""

from fastapi import APIRouter, Depends

from src.api.deps import get_auth_service, get_current_requester
from src.api.schemas import (
    LoginRequest,
    LoginResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    RegisterResponse,
    UserProfile,
)
from src.auth.service import AuthService
from src.papers import Requester

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(
    body: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
) -> RegisterResponse:
    """新建作者账号；邮箱已存在时返回 400。"""
    user_id = auth.register(
        name=body.name,
        email=body.email,
        password=body.password,
        role=body.role,
        department_id=body.department_id,
        faculty_id=body.faculty_id,
        designation=body.designation,
    )
    return RegisterResponse(id=user_id)


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """邮箱+密码登录，返回 token 与用户信息（不含密码哈希）。"""
    result = auth.login(body.email, body.password)
    return LoginResponse(token=result["token"], user=UserProfile(**result["user"]))


@router.get("/profile", response_model=UserProfile)
def get_profile(
    requester: Requester = Depends(get_current_requester),
    auth: AuthService = Depends(get_auth_service),
) -> UserProfile:
    return UserProfile(**auth.get_profile(requester.id))


@router.put("/profile", response_model=UserProfile)
def update_profile(
    body: ProfileUpdateRequest,
    requester: Requester = Depends(get_current_requester),
    auth: AuthService = Depends(get_auth_service),
) -> UserProfile:
    """修改姓名/院系/学院/身份；邮箱不可修改。"""
    profile = auth.update_profile(
        requester.id,
        name=body.name,
        department_id=body.department_id,
        faculty_id=body.faculty_id,
        designation=body.designation,
    )
    return UserProfile(**profile)
