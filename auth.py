from dataclasses import dataclass, field
from functools import wraps

from flask import current_app, flash, g, redirect, session, url_for
from werkzeug.security import generate_password_hash, check_password_hash


def hash_password(pw: str) -> str:
    return generate_password_hash(pw)


def verify_password(pw: str, pw_hash: str) -> bool:
    return check_password_hash(pw_hash, pw)


@dataclass
class AdminAccess:
    """What the signed-in user may manage: every location, or just their own."""
    user_id: int
    is_super_admin: bool = False
    locations: list = field(default_factory=list)

    @property
    def location_ids(self) -> set:
        return {loc.id for loc in self.locations}

    def can_manage(self, location_id) -> bool:
        if location_id is None:
            return False
        return self.is_super_admin or location_id in self.location_ids

    def select_location(self, requested_id=None):
        """The requested location if manageable, else the first one."""
        for loc in self.locations:
            if requested_id is not None and loc.id == requested_id:
                return loc
        return self.locations[0] if self.locations else None


def load_access(store, user_id: int) -> AdminAccess:
    is_super = store.is_super_admin(user_id)
    return AdminAccess(
        user_id=user_id,
        is_super_admin=is_super,
        locations=store.managed_locations(user_id, is_super),
    )


def current_access() -> AdminAccess | None:
    user_id = session.get("user_id")
    if not user_id:
        return None
    if "access" not in g:
        g.access = load_access(current_app.extensions["store"], user_id)
    return g.access


def sign_in(user) -> None:
    session.clear()
    session["user_id"] = user.id
    session["email"] = user.email


def sign_out() -> None:
    session.clear()


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not session.get("user_id"):
            flash("Please login first.")
            return redirect(url_for("web.login"))
        return fn(*args, **kwargs)
    return wrapper


def admin_required(fn):
    """Signed in and managing at least one location."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        access = current_access()
        if access is None or not (access.is_super_admin or access.locations):
            flash("Admin access required.")
            return redirect(url_for("web.index"))
        return fn(*args, **kwargs)
    return wrapper
