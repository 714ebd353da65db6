"""
API 请求/响应 Pydantic 模型

必填项在 service 层统一校验（返回 400 + {"error": ...}），
所以这里大多数字段声明为 Optional。
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


# ── 认证 ──

class RegisterRequest(BaseModel):
    name: Optional[str] = Field(None, description="显示名")
    email: Optional[str] = Field(None, description="登录邮箱，全局唯一")
    password: Optional[str] = Field(None, description="明文密码，仅用于哈希")
    role: Optional[str] = Field(None, description="角色: author | admin，默认 author")
    department_id: Optional[int] = Field(None, description="所属院系 ID")
    faculty_id: Optional[int] = Field(None, description="所属学院 ID")
    designation: Optional[str] = Field(None, description="身份: student | faculty，默认 student")


class RegisterResponse(BaseModel):
    message: str = "User registered successfully"
    id: int


class LoginRequest(BaseModel):
    email: Optional[str] = Field(None, description="登录邮箱")
    password: Optional[str] = Field(None, description="密码")


class UserProfile(BaseModel):
    id: int
    name: str
    email: str
    role: str
    designation: str
    department_id: Optional[int] = None
    faculty_id: Optional[int] = None
    department_name: Optional[str] = None
    faculty_name: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


class LoginResponse(BaseModel):
    message: str = "Login successful"
    token: str = Field(..., description="Bearer token，24 小时有效")
    user: UserProfile


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    department_id: Optional[int] = None
    faculty_id: Optional[int] = None
    designation: Optional[str] = Field(None, description="student | faculty")


# ── 论文 ──

class CoAuthorItem(BaseModel):
    name: str
    order: Optional[int] = Field(None, description="显示顺序，正整数，可重复/不连续")


class PaperUpdateRequest(BaseModel):
    """只覆盖请求中出现的字段；status 不可通过此接口修改。"""

    title: Optional[str] = None
    abstract: Optional[str] = None
    keywords: Optional[str] = Field(None, description="逗号分隔关键词")
    category: Optional[str] = None
    corresponding_author: Optional[str] = None
    supervisor: Optional[str] = None
    co_supervisor: Optional[str] = None
    department_id: Optional[int] = None
    publication_date: Optional[str] = Field(None, description="YYYY-MM-DD")
    doi: Optional[str] = None
    co_authors: Optional[Union[List[CoAuthorItem], str]] = Field(
        None,
        description="传入时整体替换共同作者列表；可为 JSON 字符串",
    )


class PaperCreatedResponse(BaseModel):
    message: str = "Paper submitted successfully and pending approval"
    id: int
    fileUrl: str


class MessageResponse(BaseModel):
    message: str


class PaperUpdatedResponse(BaseModel):
    message: str = "Paper updated successfully"
    paper: Dict[str, Any]


# ── 审核 ──

class StatusUpdateRequest(BaseModel):
    status: Optional[str] = Field(None, description="approved | rejected")
    admin_notes: Optional[str] = Field(None, description="审核备注；不传则保留原备注，传 null 则清空")


class StatusUpdateResponse(BaseModel):
    message: str
    id: int
    status: str
    previous_status: str
    admin_notes: Optional[str] = None


class PendingCountResponse(BaseModel):
    count: int


# ── 参考数据与统计 ──

class StatsResponse(BaseModel):
    papers: int = 0
    authors: int = 0
    departments: int = 0
    years: int = 0
