"""
共享 Fixtures: 临时 SQLite 数据库 / 上传目录 / 种子院系学院 / 账号 / TestClient。
"""

import io
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from config.settings import settings
from src.auth.service import AuthService
from src.auth.session import create_token
from src.db import Database
from src.papers import PaperService, PaperUpload, Requester
from src.reference import ReferenceService
from src.storage import FileStore

MB = 1024 * 1024


def pdf_bytes(size: int = 2048) -> bytes:
    """假 PDF：只有文件头，内容不校验"""
    head = b"%PDF-1.4\n"
    return head + b"0" * max(0, size - len(head))


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """测试里用最低 cost，避免每次注册耗时"""
    monkeypatch.setattr(settings.auth, "bcrypt_rounds", 4)


@pytest.fixture
def db(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'test.db'}")
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def files(tmp_path):
    return FileStore(tmp_path / "uploads", max_file_size=10 * MB)


@pytest.fixture
def reference(db):
    """两个院系、两个学院"""
    svc = ReferenceService(db, founding_year=2001, fallback_departments=8)
    svc.seed(
        departments=[
            ("Department of Computer Science and Engineering (CSE)", "School of Data & Sciences"),
            ("Department of Pharmacy", "School of Pharmacy"),
        ],
        faculties=[
            ("School of Data & Sciences", "Computer Science, Mathematics, and Data Sciences"),
            ("School of Pharmacy", "Pharmaceutical sciences and practice"),
        ],
    )
    depts = {d["name"]: d["id"] for d in svc.list_departments()}
    facs = {f["name"]: f["id"] for f in svc.list_faculties()}
    return {
        "service": svc,
        "cse": depts["Department of Computer Science and Engineering (CSE)"],
        "pharmacy": depts["Department of Pharmacy"],
        "data_sciences": facs["School of Data & Sciences"],
        "pharmacy_school": facs["School of Pharmacy"],
    }


def _make_account(db, reference, name, email, role="author"):
    auth = AuthService(db)
    if role == "admin":
        user_id = auth.create_admin(name, email, "secret123")
    else:
        user_id = auth.register(
            name, email, "secret123",
            department_id=reference["cse"],
            faculty_id=reference["data_sciences"],
        )
    return Requester(id=user_id, role=role, email=email, name=name)


@pytest.fixture
def author(db, reference):
    return _make_account(db, reference, "Alice Rahman", "alice@example.edu")


@pytest.fixture
def other_author(db, reference):
    return _make_account(db, reference, "Bob Karim", "bob@example.edu")


@pytest.fixture
def admin(db, reference):
    return _make_account(db, reference, "Admin", "admin@example.edu", role="admin")


def bearer(requester: Requester) -> dict:
    return {"Authorization": "Bearer " + create_token(requester.id, requester.email, requester.role, requester.name)}


@pytest.fixture
def auth_headers():
    """Requester → Authorization header"""
    return bearer


@pytest.fixture
def papers(db, files):
    return PaperService(db, files)


@pytest.fixture
def submit_paper(papers, reference):
    """直接走 service 提交一篇论文，返回 id；关键字参数覆盖默认元数据"""

    def _submit(requester, co_authors=None, **overrides):
        metadata = {
            "title": "Deep Learning for Crop Disease Detection",
            "abstract": "We train convolutional networks on leaf images.",
            "keywords": "deep learning, agriculture",
            "category": "Machine Learning",
            "department_id": reference["cse"],
            "publication_date": "2023-05-10",
            "corresponding_author": requester.name,
            "co_authors": co_authors,
        }
        metadata.update(overrides)
        upload = PaperUpload(stream=io.BytesIO(pdf_bytes()), filename="paper.pdf", content_type="application/pdf")
        return papers.create_paper(requester, metadata, upload)["id"]

    return _submit


@pytest.fixture
def client(db, files):
    from fastapi.testclient import TestClient
    from src.api.server import create_app

    with TestClient(create_app(db, files)) as c:
        yield c
