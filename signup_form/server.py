"""
Availability Service (development stand-in)
Handles: username availability lookups, username registration
Port: 8080

Serves the contract the signup form consumes:
  GET /isUserNameAvailable?userName=<v>  -> {"isAvailable": bool, "userName": str}
  validation failures                    -> 400 {"error": true, "reason": str}
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from signup_form.config import AVAILABILITY_SERVICE_PORT
from signup_form.database import add_username, init_db, username_exists
from signup_form.models import UserNameAvailableMessage
from signup_form.validators import MIN_USERNAME_LENGTH, is_username_valid


class UsernameValidationException(Exception):
    def __init__(self, reason: str):
        self.reason = reason


class UserRegister(BaseModel):
    userName: str


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Availability Service", version="1.0.0", lifespan=lifespan)


@app.exception_handler(UsernameValidationException)
async def validation_error(request: Request, exc: UsernameValidationException):
    return JSONResponse(status_code=400, content={"error": True, "reason": exc.reason})


def _validate_username(username: Optional[str]) -> str:
    if not username:
        raise UsernameValidationException("userName is required")
    if not is_username_valid(username):
        raise UsernameValidationException(f"userName must be at least {MIN_USERNAME_LENGTH} characters")
    return username


# ── Endpoints ─────────────────────────────────────────────────────────────────

@app.get("/isUserNameAvailable", response_model=UserNameAvailableMessage)
async def is_username_available(userName: Optional[str] = None):
    username = _validate_username(userName)
    return UserNameAvailableMessage(isAvailable=not username_exists(username), userName=username)


@app.post("/users", status_code=201)
async def register_username(user: UserRegister):
    username = _validate_username(user.userName)
    if not add_username(username):
        raise UsernameValidationException("This username is already taken")
    return {"message": "Username registered", "userName": username}


@app.get("/health")
async def health():
    return {"status": "ok", "service": "availability"}


if __name__ == "__main__":
    import uvicorn
    print(f"[availability-service] Starting on port {AVAILABILITY_SERVICE_PORT}")
    uvicorn.run("signup_form.server:app", host="0.0.0.0", port=AVAILABILITY_SERVICE_PORT, reload=True)
