import logging
from typing import List

from bson import ObjectId
from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr
from pymongo.errors import PyMongoError

from auth import AuthService, get_auth, require_admin
from database import create_document, get_db, parse_object_id, serialize_doc
from errors import NotFoundError, StoreFault
from schemas import User as UserSchema

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])
admin = [Depends(require_admin)]

PUBLIC_PROJECTION = {"password_hash": 0}


class UserCreateBody(BaseModel):
    name: str
    email: EmailStr
    password: str
    phone: str
    is_admin: bool = False
    street: str = ""
    apartment: str = ""
    zip: str = ""
    city: str = ""
    country: str = ""


class LoginBody(BaseModel):
    email: EmailStr
    password: str


def create_user(body: UserCreateBody, db, auth: AuthService) -> dict:
    """Hash the password and persist the user. Backs both create and register."""
    fields = body.model_dump(exclude={"password"})
    user = UserSchema(**fields, password_hash=auth.hash_password(body.password))
    user_id = create_document(db, "user", user)
    logger.info("Created user %s (%s)", user_id, body.email)
    return serialize_doc(db["user"].find_one({"_id": ObjectId(user_id)}))


@router.get("/", dependencies=admin)
def list_users(db=Depends(get_db)) -> List[dict]:
    return [serialize_doc(u) for u in db["user"].find({}, PUBLIC_PROJECTION)]


@router.get("/get/count", dependencies=admin)
def count_users(db=Depends(get_db)):
    return {"count": db["user"].count_documents({})}


@router.get("/{user_id}", dependencies=admin)
def get_user(user_id: str, db=Depends(get_db)):
    oid = parse_object_id(user_id, "Invalid user id!")
    user = db["user"].find_one({"_id": oid}, PUBLIC_PROJECTION)
    if not user:
        raise NotFoundError("User not found!")
    return serialize_doc(user)


@router.delete("/{user_id}", dependencies=admin)
def delete_user(user_id: str, db=Depends(get_db)):
    oid = parse_object_id(user_id, "Invalid user id!")
    try:
        user = db["user"].find_one_and_delete({"_id": oid})
    except PyMongoError as e:
        logger.exception("Deleting user %s failed", user_id)
        raise StoreFault(str(e), status_code=400)
    if not user:
        raise NotFoundError("User not found!")
    logger.info("Deleted user %s", user_id)
    return {"success": True, "message": "User deleted!"}


@router.post("/", dependencies=admin)
def create_user_route(body: UserCreateBody, db=Depends(get_db), auth: AuthService = Depends(get_auth)):
    return create_user(body, db, auth)


@router.post("/register")
def register(body: UserCreateBody, db=Depends(get_db), auth: AuthService = Depends(get_auth)):
    return create_user(body, db, auth)


@router.post("/login")
def login(body: LoginBody, db=Depends(get_db), auth: AuthService = Depends(get_auth)):
    user, token = auth.login(db["user"], body.email, body.password)
    return {"user": user["email"], "token": token}
