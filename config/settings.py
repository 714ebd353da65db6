"""
统一配置模块
- 配置文件: config/repo_config.json（可调参数）
- 本地覆盖: config/repo_config.local.json（本地私密配置，不入库）
- 环境变量优先覆盖敏感项（JWT secret、上传目录等）
"""

import os
import json
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Dict, Any
from dotenv import load_dotenv

load_dotenv()

_CONFIG_PATH = Path(__file__).parent / "repo_config.json"
_LOCAL_CONFIG_PATH = Path(__file__).parent / "repo_config.local.json"

DEFAULT_SECRET = "change-me-in-local"


def _load_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


_RAW_CONFIG: Dict[str, Any] = _load_json(_CONFIG_PATH)
if _LOCAL_CONFIG_PATH.exists():
    _RAW_CONFIG = _deep_merge(_RAW_CONFIG, _load_json(_LOCAL_CONFIG_PATH))


def _section(name: str) -> Dict[str, Any]:
    return (_RAW_CONFIG.get(name) or {})


@dataclass
class ApiSettings:
    """API 服务配置"""
    host: str = os.getenv("API_HOST", "127.0.0.1")
    port: int = int(os.getenv("API_PORT", "5000"))
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class AuthSettings:
    """认证配置：签名密钥、token 有效期、bcrypt cost、首个管理员账号（敏感项放 .local.json）"""
    secret_key: str = DEFAULT_SECRET
    token_expire_hours: float = 24.0
    bcrypt_rounds: int = 10
    admin_email: str = "admin@bracu.ac.bd"
    admin_name: str = "System Administrator"
    admin_default_password: str = "admin123"


@dataclass
class UploadSettings:
    """论文 PDF 上传：存放目录、大小上限、允许的 MIME 类型"""
    upload_dir: Path = field(default_factory=lambda: Path(__file__).parent.parent / "data" / "uploads")
    max_file_size: int = 10 * 1024 * 1024
    allowed_content_types: List[str] = field(default_factory=lambda: ["application/pdf"])
    url_prefix: str = "/uploads"
    filename_prefix: str = "paper"


@dataclass
class StatsSettings:
    """首页统计：建校年份，聚合失败时的回退院系数"""
    founding_year: int = 2001
    fallback_departments: int = 8


@dataclass
class PathSettings:
    base: Path = field(default_factory=lambda: Path(__file__).parent.parent)


def _resolve_upload_dir(raw: Any, base: Path) -> Path:
    p = Path(os.getenv("UPLOAD_PATH") or raw or (base / "data" / "uploads"))
    if not p.is_absolute():
        p = (base / p).resolve()
    return p


class Settings:
    def __init__(self):
        self.env = os.getenv("REPO_ENV", "dev")
        self.path = PathSettings()

        a = _section("api")
        origins = a.get("cors_origins") or os.getenv("CORS_ORIGIN") or ["*"]
        if isinstance(origins, str):
            origins = [x.strip() for x in origins.split(",") if x.strip()]
        self.api = ApiSettings(
            host=str(a.get("host", os.getenv("API_HOST", "127.0.0.1"))),
            port=int(a.get("port", os.getenv("API_PORT", "5000"))),
            cors_origins=origins,
        )

        au = _section("auth")
        self.auth = AuthSettings(
            secret_key=os.getenv("JWT_SECRET") or str(au.get("secret_key", DEFAULT_SECRET)),
            token_expire_hours=float(au.get("token_expire_hours", 24)),
            bcrypt_rounds=int(au.get("bcrypt_rounds", 10)),
            admin_email=str(au.get("admin_email", "admin@bracu.ac.bd")),
            admin_name=str(au.get("admin_name", "System Administrator")),
            admin_default_password=str(au.get("admin_default_password", "admin123")),
        )

        up = _section("upload")
        allowed = up.get("allowed_content_types") or ["application/pdf"]
        if isinstance(allowed, str):
            allowed = [x.strip() for x in allowed.split(",") if x.strip()]
        self.upload = UploadSettings(
            upload_dir=_resolve_upload_dir(up.get("upload_dir"), self.path.base),
            max_file_size=int(os.getenv("MAX_FILE_SIZE") or up.get("max_file_size", 10 * 1024 * 1024)),
            allowed_content_types=list(allowed),
            url_prefix=str(up.get("url_prefix", "/uploads")).rstrip("/") or "/uploads",
            filename_prefix=str(up.get("filename_prefix", "paper")),
        )

        st = _section("stats")
        self.stats = StatsSettings(
            founding_year=int(st.get("founding_year", 2001)),
            fallback_departments=int(st.get("fallback_departments", 8)),
        )

    @property
    def is_prod(self) -> bool:
        return self.env == "prod"


# 全局单例
settings = Settings()
