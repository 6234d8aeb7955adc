"""Flat-file user store.

Passwords are stored and compared as plain text. This is a stand-in for a
real identity service and must not guard anything that matters.
"""
import logging
from datetime import date
from pathlib import Path
from typing import Optional

import pandas as pd

from tracker.domain import User
from tracker.storage import new_id

log = logging.getLogger(__name__)

USER_COLUMNS = ["id", "email", "password", "name", "createdAt"]


class RegistrationError(ValueError):
    pass


class EmailTakenError(RegistrationError):
    pass


def _to_user(row: dict) -> User:
    return User(id=row["id"], email=row["email"], name=row["name"], created_at=row["createdAt"])


class UserStore:
    def __init__(self, path: Path):
        self.path = Path(path)
        self._cache: Optional[list[dict]] = None
        self._stamp: Optional[tuple] = None

    def _file_stamp(self) -> Optional[tuple]:
        try:
            st = self.path.stat()
        except FileNotFoundError:
            return None
        return st.st_mtime_ns, st.st_size

    def _rows(self) -> list[dict]:
        # other sessions append to the same file; reload when it changes
        stamp = self._file_stamp()
        if stamp is None:
            return []
        if self._cache is not None and stamp == self._stamp:
            return self._cache
        try:
            frame = pd.read_csv(self.path, dtype=str, keep_default_na=False)
        except pd.errors.EmptyDataError:
            return []
        except (OSError, pd.errors.ParserError) as e:
            log.error("Failed to load users from %s: %s", self.path, e)
            return []
        self._cache = [{k: str(v).strip() for k, v in row.items()} for row in frame.to_dict("records")]
        self._stamp = stamp
        return self._cache

    def login(self, email: str, password: str) -> Optional[User]:
        wanted = (email or "").strip().lower()
        for row in self._rows():
            if row.get("email", "").lower() == wanted and row.get("password") == password:
                return _to_user(row)
        log.info("Failed login for %s", wanted)
        return None

    def register(self, email: str, password: str, name: str) -> User:
        email, name = (email or "").strip(), (name or "").strip()
        if not email or not password or not name:
            raise RegistrationError("Missing required fields")
        if not self.is_email_available(email):
            raise EmailTakenError("Email already registered")

        row = {
            "id": new_id("user"),
            "email": email,
            "password": password,
            "name": name,
            "createdAt": date.today().isoformat(),
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        write_header = not self.path.exists() or self.path.stat().st_size == 0
        pd.DataFrame([row], columns=USER_COLUMNS).to_csv(self.path, mode="a", header=write_header, index=False)
        # next lookup must see the new row
        self._cache = None
        log.info("Registered user %s", row["id"])
        return _to_user(row)

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        row = next((r for r in self._rows() if r.get("id") == user_id), None)
        return _to_user(row) if row else None

    def is_email_available(self, email: str) -> bool:
        wanted = (email or "").strip().lower()
        return not any(r.get("email", "").lower() == wanted for r in self._rows())
