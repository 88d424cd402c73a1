"""
User administration endpoints. Every route is restricted to teachers.
"""

import logging
from typing import Dict

import redis.asyncio as redis
from fastapi import APIRouter, Depends

from weather_api.modules.api.dependencies import (
    get_authenticator,
    get_user_store,
    store_operation,
)
from weather_api.modules.api.models import (
    Credentials,
    DateRangeRequest,
    Role,
    RoleUpdateRequest,
    UserRecord,
    UserReplaceRequest,
    UserResponse,
    users_payload,
)
from weather_api.modules.auth import Authenticator, Conflict, NotFound
from weather_api.modules.middleware import require_roles
from weather_api.modules.users import UserStore

logger = logging.getLogger(__name__)


def create_users_router() -> APIRouter:
    """
    Create the user administration router.

    Returns:
        FastAPI router mounted at /users, guarded for the teacher role
    """
    router = APIRouter(
        prefix="/users",
        tags=["Users"],
        dependencies=[Depends(require_roles(Role.TEACHER))],
    )

    @router.get("")
    async def list_users(users: UserStore = Depends(get_user_store)) -> Dict:
        with store_operation("Failed to retrieve all users"):
            records = await users.list_all()

        return {
            "status": 200,
            "message": "Successfully retrieved all users",
            "users": users_payload(records),
        }

    @router.get("/key/{authentication_key}")
    async def get_user_by_key(
        authentication_key: str,
        users: UserStore = Depends(get_user_store),
    ) -> Dict:
        with store_operation("Failed to retrieve user by authentication key"):
            record = await users.find_by_token(authentication_key)

        if record is None:
            raise NotFound("No user found with that authentication key")

        return {
            "status": 200,
            "message": "Successfully retrieved user by authentication key",
            "user": UserResponse.from_record(record),
        }

    @router.get("/{user_id}")
    async def get_user(user_id: str, users: UserStore = Depends(get_user_store)) -> Dict:
        with store_operation("Failed to retrieve user"):
            record = await users.find_by_id(user_id)

        if record is None:
            raise NotFound("No user found with that ID")

        return {
            "status": 200,
            "message": "Successfully retrieved user",
            "user": UserResponse.from_record(record),
        }

    @router.post("")
    async def create_user(
        credentials: Credentials,
        authenticator: Authenticator = Depends(get_authenticator),
    ) -> Dict:
        """Create a user. Same rules as registration: the role is always student."""
        with store_operation("Failed to create user."):
            record = await authenticator.register(credentials.email, credentials.password)

        return {
            "status": 200,
            "message": "User created successfully.",
            "user": UserResponse.from_record(record),
        }

    @router.put("/{user_id}")
    async def replace_user(
        user_id: str,
        body: UserReplaceRequest,
        users: UserStore = Depends(get_user_store),
        authenticator: Authenticator = Depends(get_authenticator),
    ) -> Dict:
        """
        Replace a user wholesale.

        The password is hashed unless it already is a bcrypt hash. Fields
        left out of the body are cleared, except creation_date which is
        kept from the stored record.

        Returns:
            200: Replaced
            404: No such user
            409: Email or authentication key belongs to another user
        """
        with store_operation("Failed to update the entire user"):
            existing = await users.find_by_id(user_id)
            if existing is None:
                raise NotFound("User not found")

            owner = await users.find_by_email(body.email)
            if owner and owner.id != user_id:
                raise Conflict()

            if body.authentication_key:
                holder = await users.find_by_token(body.authentication_key)
                if holder and holder.id != user_id:
                    raise Conflict("The provided authentication key belongs to another account.")

            hasher = authenticator.hasher
            if hasher.looks_hashed(body.password):
                password_hash = body.password
            else:
                password_hash = await hasher.hash_async(body.password)

            record = UserRecord(
                id=user_id,
                email=body.email,
                password_hash=password_hash,
                role=body.role,
                authentication_key=body.authentication_key,
                creation_date=body.creation_date or existing.creation_date,
                last_login=body.last_login,
            )
            matched = await users.replace(user_id, record)

        if matched == 0:
            raise NotFound("User not found")

        return {
            "status": 200,
            "message": "Successfully updated the entire user",
            "user": UserResponse.from_record(record),
        }

    @router.patch("/updateUserRoles")
    async def update_user_roles(
        body: RoleUpdateRequest,
        users: UserStore = Depends(get_user_store),
    ) -> Dict:
        """Change the role of every user created within a date range."""
        with store_operation("Failed to update user roles."):
            modified = await users.update_roles_created_between(
                body.start_date, body.end_date, body.new_role
            )

        if modified == 0:
            raise NotFound("No users found within the specified date range")

        return {
            "status": 200,
            "message": "Updated user roles successfully.",
            "modifiedCount": modified,
        }

    @router.delete("/delete/students")
    async def delete_inactive_students(
        body: DateRangeRequest,
        users: UserStore = Depends(get_user_store),
    ) -> Dict:
        """Delete students whose last login falls within a date range."""
        with store_operation("Failed to delete students."):
            deleted = await users.delete_students_last_login_between(body.start_date, body.end_date)

        if deleted == 0:
            raise NotFound("Users with the student role not found between the given dates")

        return {
            "status": 200,
            "message": "The users have been removed successfully.",
            "deletedCount": deleted,
        }

    @router.delete("/{user_id}")
    async def delete_user(user_id: str, users: UserStore = Depends(get_user_store)) -> Dict:
        """
        Archive a user to the changelog, then delete it.

        The two writes are independent: a failed archive is logged and the
        deletion still goes ahead.
        """
        with store_operation("Failed to delete the user"):
            record = await users.find_by_id(user_id)
            if record is None:
                raise NotFound("No user found with that ID")

            try:
                await users.archive(record)
            except redis.RedisError as e:
                logger.warning(f"Failed to archive user {user_id} before deletion: {e}")

            deleted = await users.delete(user_id)

        if deleted == 0:
            raise NotFound("User not found with that ID")

        logger.info(f"Deleted user {user_id}")
        return {"status": 200, "message": "The user has been removed successfully."}

    return router
