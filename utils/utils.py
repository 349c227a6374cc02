from functools import wraps
from flask import request, g
from models import db, Course
from models.users import PLATFORM_ADMIN_ROLES
from utils.tokens import decode_jwt
from utils.errors import Unauthorized, Forbidden, NotFound


def _read_token():
    token = request.cookies.get("access_token")
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return None


def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _read_token()
        if not token:
            raise Unauthorized()

        decoded = decode_jwt(token)
        if not decoded or not decoded.get("user_id"):
            raise Unauthorized()

        g.user = decoded
        return f(*args, **kwargs)

    return decorated_function


def roles_required(*roles):
    """Allow the wrapped view only for callers whose role is in ``roles``. Use below ``login_required``."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if g.user.get("role") not in roles:
                raise Forbidden()
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def ensure_org_access(caller, organization_id):
    """Organization admins may only act on their own organization; platform admins on any."""
    role = caller.get("role")
    if role in PLATFORM_ADMIN_ROLES:
        return
    if role == "organization_admin":
        if caller.get("organization_id") and caller.get("organization_id") == organization_id:
            return
    raise Forbidden()


def get_course_or_404(course_id):
    course = db.session.get(Course, course_id)
    if not course:
        raise NotFound("Course not found.")
    return course


def ensure_course_visible(caller, course):
    """Platform admins see every course; everyone else only their organization's."""
    if caller.get("role") in PLATFORM_ADMIN_ROLES:
        return
    if not caller.get("organization_id") or caller.get("organization_id") != course.organization_id:
        raise Forbidden()
