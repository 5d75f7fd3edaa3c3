#!/usr/bin/env python

"""
    API routes for BorrowTrack,
    borrowing records, availability, settings and sessions.

    :copyright: (c) 2015 by AUTHORS
    :license: see LICENSE for more details
"""

from datetime import date
from typing import Optional
from fastapi import (
    APIRouter,
    Depends,
    Request,
    Response,
    Cookie,
    Query,
    status,
)
from borrowtrack import configs, core
from borrowtrack.core import auth
from borrowtrack.core.availability import available_items, is_available
from borrowtrack.core.exceptions import AuthenticationError
from borrowtrack.core.lifecycle import BorrowingLedger, derive_status
from borrowtrack.schemas.record import BorrowingChanges, BorrowingDraft, BorrowingRecord
from borrowtrack.schemas.settings import DefaultSettings
from borrowtrack.routes.schemas import (
    ExtendRequest,
    ReturnRequest,
    LoginRequest,
    PasswordChangeRequest,
    CatalogEntry,
)

COOKIES_MAX_AGE = auth.COOKIE_TTL

router = APIRouter()


async def get_ledger() -> BorrowingLedger:
    await core.ledger.ensure_loaded()
    return core.ledger


def get_settings_store():
    return core.settings


def get_identity():
    return core.identity


async def current_user(request: Request, session: Optional[str] = Cookie(None),
                       identity=Depends(get_identity)):
    """The signed-in profile, or None when sessions are not enforced."""
    if not session:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            session = auth_header.split(" ")[1]
    uid = auth.verify_session_cookie(session)
    profile = await identity.get_profile(uid) if uid else None
    if profile is None and configs.AUTH_REQUIRED:
        raise AuthenticationError("Sign in required")
    return profile


def serialize(record: BorrowingRecord, today: Optional[date] = None) -> dict:
    data = record.model_dump(mode="json", by_alias=True)
    data["displayStatus"] = derive_status(record, today).value
    return data


@router.get("/records", dependencies=[Depends(current_user)])
async def list_records(q: Optional[str] = None,
                       status_filter: str = Query("all", alias="status"),
                       refresh: bool = False,
                       ledger: BorrowingLedger = Depends(get_ledger)):
    if refresh:
        await ledger.load()
    return {
        "records": [serialize(r) for r in ledger.search(q or "", status_filter)],
        "summary": ledger.summary(),
    }


@router.post("/records", status_code=status.HTTP_201_CREATED, dependencies=[Depends(current_user)])
async def create_record(draft: BorrowingDraft, ledger: BorrowingLedger = Depends(get_ledger)):
    return serialize(await ledger.create(draft))


@router.get("/records/{record_id}", dependencies=[Depends(current_user)])
async def get_record(record_id: str, ledger: BorrowingLedger = Depends(get_ledger)):
    return serialize(ledger.get(record_id))


@router.patch("/records/{record_id}", dependencies=[Depends(current_user)])
async def edit_record(record_id: str, changes: BorrowingChanges,
                      ledger: BorrowingLedger = Depends(get_ledger)):
    return serialize(await ledger.edit(record_id, changes))


@router.post("/records/{record_id}/extend", dependencies=[Depends(current_user)])
async def extend_record(record_id: str, body: ExtendRequest,
                        ledger: BorrowingLedger = Depends(get_ledger)):
    return serialize(await ledger.extend(record_id, body.due_date))


@router.post("/records/{record_id}/return", dependencies=[Depends(current_user)])
async def return_record(record_id: str, body: ReturnRequest,
                        ledger: BorrowingLedger = Depends(get_ledger)):
    return serialize(await ledger.return_item(record_id, body.returned_by))


@router.delete("/records/{record_id}", dependencies=[Depends(current_user)])
async def delete_record(record_id: str, ledger: BorrowingLedger = Depends(get_ledger)):
    record = await ledger.delete(record_id)
    return {"deleted": record.id}


@router.get("/availability", dependencies=[Depends(current_user)])
async def availability(borrow_date: str = Query(..., alias="borrowDate"),
                       item_name: Optional[str] = Query(None, alias="itemName"),
                       exclude: Optional[str] = None,
                       ledger: BorrowingLedger = Depends(get_ledger),
                       store=Depends(get_settings_store)):
    unavailable = sorted(ledger.unavailable_items(borrow_date, exclude))
    catalog = (await store.get(configs.SETTINGS_KEY)).item_names
    result = {
        "borrowDate": borrow_date,
        "unavailable": unavailable,
        "availableItems": available_items(catalog, ledger.records, borrow_date),
    }
    if item_name is not None:
        result["itemName"] = item_name
        result["available"] = is_available(ledger.records, item_name, borrow_date, exclude)
    return result


@router.get("/summary", dependencies=[Depends(current_user)])
async def summary(limit: int = 5, ledger: BorrowingLedger = Depends(get_ledger)):
    return {
        "counts": ledger.summary(),
        "recent": [serialize(r) for r in ledger.recent(limit)],
    }


@router.get("/settings", dependencies=[Depends(current_user)])
async def get_settings(store=Depends(get_settings_store)):
    settings = await store.get(configs.SETTINGS_KEY)
    return settings.model_dump(mode="json", by_alias=True)


@router.put("/settings", dependencies=[Depends(current_user)])
async def save_settings(settings: DefaultSettings, store=Depends(get_settings_store)):
    doc_id = await store.put(settings, configs.SETTINGS_KEY)
    return {"id": doc_id, **settings.model_dump(mode="json", by_alias=True, exclude={"updated_at"})}


@router.post("/settings/catalog", dependencies=[Depends(current_user)])
async def add_catalog_entries(entry: CatalogEntry, store=Depends(get_settings_store)):
    settings = (await store.get(configs.SETTINGS_KEY)).with_entries(
        item=entry.item, location=entry.location,
        department=entry.department, image_url=entry.image_url)
    await store.put(settings, configs.SETTINGS_KEY)
    return settings.model_dump(mode="json", by_alias=True, exclude={"updated_at"})


@router.delete("/settings/catalog", dependencies=[Depends(current_user)])
async def remove_catalog_entries(item: Optional[str] = None, location: Optional[str] = None,
                                 department: Optional[str] = None,
                                 store=Depends(get_settings_store)):
    settings = (await store.get(configs.SETTINGS_KEY)).without_entries(
        item=item, location=location, department=department)
    await store.put(settings, configs.SETTINGS_KEY)
    return settings.model_dump(mode="json", by_alias=True, exclude={"updated_at"})


@router.post("/auth/login")
async def login(body: LoginRequest, response: Response, identity=Depends(get_identity)):
    profile = await identity.sign_in(body.login, body.password)
    response.set_cookie(
        key="session",
        value=auth.create_session_cookie(profile.uid),
        max_age=COOKIES_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=configs.SCHEME == "https",
    )
    return profile.model_dump(by_alias=True)


@router.post("/auth/logout")
async def logout(response: Response):
    response.delete_cookie(key="session")
    return {"logged_in": False}


@router.get("/auth/me")
async def me(profile=Depends(current_user)):
    return {
        "logged_in": profile is not None,
        "profile": profile.model_dump(by_alias=True) if profile else None,
    }


@router.post("/auth/password")
async def change_password(body: PasswordChangeRequest, profile=Depends(current_user),
                          identity=Depends(get_identity)):
    if profile is None:
        raise AuthenticationError("No authenticated user")
    await identity.change_password(profile.uid, body.current_password, body.new_password)
    return {"changed": True}
