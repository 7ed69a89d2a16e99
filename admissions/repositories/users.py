# repositories/users.py
from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite

from admissions.models import StudentProfile, User

_UPSERT_INSERTS = {
    'postgresql': postgresql.insert,
    'sqlite': sqlite.insert,
}


def find_user_by_email(session, email):
    """Case-insensitive lookup; email is expected to be normalized already."""
    stmt = select(User).where(func.lower(User.email) == email).limit(1)
    return session.execute(stmt).scalars().first()


def set_user_as_student(session, user_id):
    stmt = (
        update(User)
        .where(User.id == user_id)
        .values(is_student=True)
        .execution_options(synchronize_session='fetch')
    )
    session.execute(stmt)


def create_student_user(session, email, phone, password):
    """Insert an active student user. Only the hash of password is stored."""
    user = User(email=email, phone=phone, is_student=True, is_active=True)
    user.set_password(password)
    session.add(user)
    session.flush()
    return user


def create_admin_user(session, email, password, is_super_admin=False):
    user = User(email=email, is_admin=True, is_super_admin=is_super_admin, is_active=True)
    user.set_password(password)
    session.add(user)
    session.flush()
    return user


def upsert_student_profile(session, user_id, full_name):
    """
    Insert a profile for user_id, or update only its full_name if one exists.
    Other profile fields are never touched by this upsert.
    """
    dialect = session.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect)

    if insert is None:
        # Portable fallback for dialects without ON CONFLICT
        profile = session.execute(
            select(StudentProfile).where(StudentProfile.user_id == user_id).with_for_update()
        ).scalars().first()
        if profile is None:
            session.add(StudentProfile(user_id=user_id, full_name=full_name))
        else:
            profile.full_name = full_name
        session.flush()
        return

    stmt = insert(StudentProfile).values(user_id=user_id, full_name=full_name)
    stmt = stmt.on_conflict_do_update(
        index_elements=[StudentProfile.user_id],
        set_={'full_name': stmt.excluded.full_name, 'updated_at': func.now()}
    )
    session.execute(stmt)


def get_student_profile(session, user_id):
    stmt = select(StudentProfile).where(StudentProfile.user_id == user_id)
    return session.execute(stmt).scalars().first()


def list_admin_user_ids(session):
    stmt = select(User.id).where(User.is_admin.is_(True), User.is_active.is_(True)).order_by(User.id)
    return list(session.execute(stmt).scalars())
