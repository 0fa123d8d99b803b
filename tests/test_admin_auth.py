import datetime

import pytest
from sqlalchemy import update
from sqlalchemy.future import select

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD
from insurfi.core.exceptions import AuthenticationError, ValidationError
from insurfi.models.admin import AdminRole, AdminSession, AdminUser
from insurfi.models.audit import AdminActivity
from insurfi.services.admin_auth import AdminAuthService, hash_password, verify_password


def test_password_hashing():
    hashed = hash_password("s3cret")
    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret", "not-a-bcrypt-hash")


@pytest.mark.asyncio
async def test_login_issues_session(db, admin):
    auth = AdminAuthService(db)
    logged_in, token, expires_at = await auth.login(ADMIN_EMAIL, ADMIN_PASSWORD, ip_address="10.0.0.1")

    assert logged_in.id == admin.id
    assert len(token) == 64
    assert expires_at - logged_in.last_login == datetime.timedelta(hours=24)
    assert (await auth.resolve(token)).id == admin.id

    result = await db.execute(select(AdminActivity).where(AdminActivity.admin_id == admin.id))
    entries = result.scalars().all()
    assert [(e.action, e.resource_type, e.ip_address) for e in entries] == [("login", "session", "10.0.0.1")]


@pytest.mark.asyncio
@pytest.mark.parametrize("email,password", [(ADMIN_EMAIL, "wrong"), ("nobody@insurfi.io", ADMIN_PASSWORD)])
async def test_login_rejects_bad_credentials(db, admin, email, password):
    with pytest.raises(AuthenticationError):
        await AdminAuthService(db).login(email, password)


@pytest.mark.asyncio
async def test_login_requires_both_fields(db, admin):
    with pytest.raises(ValidationError):
        await AdminAuthService(db).login(ADMIN_EMAIL, "")


@pytest.mark.asyncio
async def test_inactive_admin_cannot_log_in(db, admin):
    await db.execute(update(AdminUser).where(AdminUser.id == admin.id).values(is_active=False))
    await db.commit()
    with pytest.raises(AuthenticationError):
        await AdminAuthService(db).login(ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.mark.asyncio
async def test_expired_session_is_rejected(db, admin):
    auth = AdminAuthService(db)
    _, token, _ = await auth.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    past = datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(minutes=1)
    await db.execute(update(AdminSession).where(AdminSession.session_token == token).values(expires_at=past))
    await db.commit()

    with pytest.raises(AuthenticationError):
        await auth.resolve(token)


@pytest.mark.asyncio
async def test_logout_ends_session(db, admin):
    auth = AdminAuthService(db)
    _, token, _ = await auth.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    await auth.logout(token, admin.id)

    with pytest.raises(AuthenticationError):
        await auth.resolve(token)


@pytest.mark.asyncio
@pytest.mark.parametrize("token", [None, "", "deadbeef"])
async def test_resolve_unknown_token(db, admin, token):
    with pytest.raises(AuthenticationError):
        await AdminAuthService(db).resolve(token)


@pytest.mark.asyncio
async def test_create_admin(db):
    created = await AdminAuthService(db).create_admin("mod@insurfi.io", "pw", "Moderator", AdminRole.MODERATOR)
    assert created.id is not None
    assert created.role == AdminRole.MODERATOR
    assert verify_password("pw", created.password_hash)
