#!/usr/bin/env python3
"""
初始化数据：空库时写入默认院系/学院与首个管理员账号。

表结构由 alembic 负责，先执行:
    alembic upgrade head
再执行:
    python scripts/01_bootstrap.py
    python scripts/01_bootstrap.py --email admin@example.edu --password mypass
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from sqlalchemy import func
from sqlmodel import select

from config.settings import settings
from src.auth.service import AuthService
from src.db import Database
from src.db.models import User
from src.errors import RepositoryError
from src.reference import ReferenceService

DEFAULT_DEPARTMENTS = [
    ("Department of Architecture", "School of Architecture & Design"),
    ("Department of Computer Science and Engineering (CSE)", "School of Data & Sciences"),
    ("Department of Economics and Social Sciences (ESS)", "School of Humanities & Social Sciences"),
    ("Department of Electrical & Electronic Engineering (EEE)", "BSRM School of Engineering"),
    ("Department of English and Humanities (ENH)", "School of Humanities & Social Sciences"),
    ("Department of Law (LLB)", "School of Law"),
    ("Department of Mathematics & Natural Sciences (MNS)", "School of Data & Sciences"),
    ("Department of Pharmacy", "School of Pharmacy"),
]

DEFAULT_FACULTIES = [
    ("School of Architecture & Design", "Architecture, Urban Planning, and Design disciplines"),
    ("School of Data & Sciences", "Computer Science, Mathematics, and Data Sciences"),
    ("School of Humanities & Social Sciences", "Economics, English, Humanities, and Social Sciences"),
    ("BSRM School of Engineering", "Engineering disciplines including EEE"),
    ("School of Law", "Legal studies and jurisprudence"),
    ("School of Pharmacy", "Pharmaceutical sciences and practice"),
]


def main():
    parser = argparse.ArgumentParser(description="Seed reference data and the first admin account")
    parser.add_argument("--email", default=None, help="Admin e-mail (default: from config)")
    parser.add_argument("--password", default=None, help="Admin password (default: from config)")
    parser.add_argument("--skip-reference", action="store_true", help="Do not seed departments/faculties")
    args = parser.parse_args()

    db = Database()
    try:
        if not args.skip_reference:
            added = ReferenceService(db).seed(DEFAULT_DEPARTMENTS, DEFAULT_FACULTIES)
            print(f"Reference data: +{added['departments']} departments, +{added['faculties']} faculties")

        with db.session() as session:
            user_count = session.exec(select(func.count()).select_from(User)).one()
        if user_count:
            print(f"Users already exist ({user_count}). Skipping admin creation.")
            return

        email = args.email or settings.auth.admin_email
        password = args.password or settings.auth.admin_default_password
        try:
            user_id = AuthService(db).create_admin(settings.auth.admin_name, email, password)
        except RepositoryError as e:
            print(f"Error: {e.message}")
            sys.exit(1)
        print(f"Created admin user #{user_id}: {email}")
        print('Login: POST /api/auth/login with body {"email": "%s", "password": "..."}' % email)
    finally:
        db.dispose()


if __name__ == "__main__":
    main()
