"""
上传文件存储：校验 PDF 类型与大小，按 时间戳+随机后缀 生成唯一文件名，
写入上传目录，并按 url_prefix 生成对外访问路径。

文件先于数据库行写入；插入失败时由调用方调用 delete() 补偿。
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, Optional

from src.errors import UploadError
from src.log import get_logger

logger = get_logger(__name__)

CHUNK_SIZE = 1024 * 1024


@dataclass
class StoredFile:
    name: str           # generated name inside the upload dir
    path: Path
    url: str            # public path, e.g. /uploads/paper-1700000000000-42.pdf
    original_name: str
    size: int


class FileStore:
    def __init__(
        self,
        root: Path,
        url_prefix: str = "/uploads",
        max_file_size: int = 10 * 1024 * 1024,
        allowed_content_types: Iterable[str] = ("application/pdf",),
        filename_prefix: str = "paper",
    ):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_file_size = max_file_size
        self.allowed_content_types = set(allowed_content_types)
        self.filename_prefix = filename_prefix

    @classmethod
    def from_settings(cls) -> "FileStore":
        from config.settings import settings
        up = settings.upload
        return cls(
            root=up.upload_dir,
            url_prefix=up.url_prefix,
            max_file_size=up.max_file_size,
            allowed_content_types=up.allowed_content_types,
            filename_prefix=up.filename_prefix,
        )

    @property
    def max_file_size_mb(self) -> int:
        return max(1, self.max_file_size // (1024 * 1024))

    def generate_name(self, original_name: str) -> str:
        ext = Path(original_name or "").suffix.lower()
        unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10 ** 9)}"
        return f"{self.filename_prefix}-{unique_suffix}{ext}"

    def url_for(self, name: str) -> str:
        return f"{self.url_prefix}/{name}"

    def path_for(self, name: str) -> Path:
        safe = Path(name).name
        if not safe or safe != name:
            raise ValueError(f"invalid stored file name: {name!r}")
        return self.root / safe

    def validate(self, content_type: Optional[str], declared_size: Optional[int] = None) -> None:
        """Reject wrong MIME types and, when the client declared a size, oversize files."""
        if (content_type or "").split(";")[0].strip().lower() not in self.allowed_content_types:
            raise UploadError("Only PDF files are allowed.")
        if declared_size is not None and declared_size > self.max_file_size:
            raise UploadError(f"File too large. Maximum size is {self.max_file_size_mb}MB.")

    def save(
        self,
        stream: BinaryIO,
        original_name: str,
        content_type: Optional[str],
        declared_size: Optional[int] = None,
    ) -> StoredFile:
        """Validate and copy *stream* into the upload dir.

        The size limit is enforced while copying, so a lying Content-Length
        cannot get past it; the partial file is removed on rejection.
        """
        self.validate(content_type, declared_size)

        name = self.generate_name(original_name)
        dest = self.path_for(name)
        written = 0
        try:
            with open(dest, "wb") as out:
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_file_size:
                        raise UploadError(f"File too large. Maximum size is {self.max_file_size_mb}MB.")
                    out.write(chunk)
        except BaseException:
            dest.unlink(missing_ok=True)
            raise

        logger.info("stored upload %s (%d bytes) as %s", original_name, written, name)
        return StoredFile(
            name=name,
            path=dest,
            url=self.url_for(name),
            original_name=original_name,
            size=written,
        )

    def delete(self, name: str) -> bool:
        """Remove a stored file. Failures are logged, never raised."""
        if not name:
            return False
        try:
            self.path_for(name).unlink()
            return True
        except FileNotFoundError:
            logger.warning("stored file already gone: %s", name)
            return False
        except (OSError, ValueError) as e:
            logger.error("failed to delete stored file %s: %s", name, e)
            return False

    def exists(self, name: str) -> bool:
        try:
            return self.path_for(name).is_file()
        except ValueError:
            return False
