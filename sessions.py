"""Credential store and session manager.

Passwords are stored as werkzeug salted hashes; the cost is controlled by
``config.PASSWORD_HASH_METHOD``. A session is a signed JWT that is also
persisted on the user row: signing in rotates it, signing out clears it, and
a token is only accepted while it is the one stored for its user.
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache

import jwt as pyjwt
from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

import config
from db import board_columns, boards, get_engine, row_to_dict, users
from errors import BadParams, DuplicateEmail, InvalidCredentials, NotFound, Unauthenticated
from hierarchy import populate_board
from ordering import IdOrder

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = (
    ("Wish List", "orange"),
    ("Applied", "yellow"),
    ("Phone Screen", "green"),
    ("Interview", "blue"),
    ("Offer", "purple"),
)


def hash_password(password):
    return generate_password_hash(password, method=config.PASSWORD_HASH_METHOD)


@lru_cache(maxsize=None)
def _dummy_hash(method):
    return generate_password_hash(secrets.token_hex(16), method=method)


def create_token(user_id):
    payload = {
        "user_id": user_id,
        "jti": secrets.token_hex(16),
        "exp": datetime.now(timezone.utc) + timedelta(days=config.TOKEN_EXPIRY_DAYS),
    }
    return pyjwt.encode(payload, config.SECRET_KEY, algorithm="HS256")


def public_user(row, include_token=False):
    user = row_to_dict(row)
    user.pop("password_hash", None)
    token = user.pop("session_token", None)
    if include_token:
        user["token"] = token
    return user


def _require_strings(*values):
    for value in values:
        if value is not None and not isinstance(value, str):
            raise BadParams("Credentials must be strings")


def _normalize_email(email):
    return (email or "").strip().lower()


def sign_up(email, password, password_confirmation):
    """Register a user together with their board and its default columns."""
    _require_strings(email, password, password_confirmation)
    email = _normalize_email(email)
    if not email or not password or password != password_confirmation:
        raise BadParams()

    password_hash = hash_password(password)
    try:
        with get_engine().begin() as conn:
            existing = conn.execute(select(users.c.id).where(users.c.email == email)).first()
            if existing is not None:
                raise DuplicateEmail()
            user_id = conn.execute(
                insert(users).values(email=email, password_hash=password_hash)
            ).inserted_primary_key[0]
            board_id = conn.execute(
                insert(boards).values(owner_id=user_id, column_order=[])
            ).inserted_primary_key[0]

            column_order = IdOrder()
            for title, color in DEFAULT_COLUMNS:
                column_id = conn.execute(
                    insert(board_columns).values(
                        owner_id=user_id, title=title, color=color, cell_order=[]
                    )
                ).inserted_primary_key[0]
                column_order.append(column_id)
            conn.execute(
                update(boards)
                .where(boards.c.id == board_id)
                .values(column_order=column_order.to_list())
            )
            user = conn.execute(select(users).where(users.c.id == user_id)).mappings().one()
    except IntegrityError:
        with get_engine().connect() as conn:
            taken = conn.execute(select(users.c.id).where(users.c.email == email)).first()
        if taken is None:
            raise
        # Lost a race with a concurrent sign-up for the same email.
        raise DuplicateEmail()

    logger.info("Signed up user %s with board %s", user_id, board_id)
    return public_user(user)


def sign_in(email, password):
    """Check credentials and start a new session.

    Returns ``(user, board)``; ``user`` carries the new token and ``board`` is
    fully populated. Any previous token for the user stops working.
    """
    _require_strings(email, password)
    email = _normalize_email(email)
    password = password or ""
    with get_engine().begin() as conn:
        user = conn.execute(select(users).where(users.c.email == email)).mappings().first()
        if user is None:
            # Same hashing work as a real check so timing does not reveal unknown emails.
            check_password_hash(_dummy_hash(config.PASSWORD_HASH_METHOD), password)
            logger.warning("Failed sign-in attempt")
            raise InvalidCredentials()
        if not check_password_hash(user["password_hash"], password):
            logger.warning("Failed sign-in attempt for user %s", user["id"])
            raise InvalidCredentials()

        token = create_token(user["id"])
        conn.execute(update(users).where(users.c.id == user["id"]).values(session_token=token))
        user = conn.execute(select(users).where(users.c.id == user["id"])).mappings().one()

        board = conn.execute(select(boards).where(boards.c.owner_id == user["id"])).mappings().first()
        if board is None:
            raise NotFound("Board not found")
        board = populate_board(conn, board)

    logger.info("User %s signed in", user["id"])
    return public_user(user, include_token=True), board


def change_password(user_id, old_password, new_password):
    _require_strings(old_password, new_password)
    with get_engine().begin() as conn:
        user = conn.execute(
            select(users).where(users.c.id == user_id).with_for_update()
        ).mappings().first()
        if user is None:
            raise NotFound("User not found")
        if not new_password or not check_password_hash(user["password_hash"], old_password or ""):
            raise BadParams("Old password is wrong or new password is empty")
        conn.execute(
            update(users)
            .where(users.c.id == user_id)
            .values(password_hash=hash_password(new_password))
        )
    logger.info("User %s changed password", user_id)


def sign_out(user_id):
    with get_engine().begin() as conn:
        conn.execute(update(users).where(users.c.id == user_id).values(session_token=None))
    logger.info("User %s signed out", user_id)


def authenticate(token):
    """Return the user holding ``token`` or raise Unauthenticated."""
    if not token:
        raise Unauthenticated()
    try:
        payload = pyjwt.decode(token, config.SECRET_KEY, algorithms=["HS256"])
    except pyjwt.ExpiredSignatureError:
        raise Unauthenticated("Token expired")
    except pyjwt.InvalidTokenError:
        raise Unauthenticated("Invalid token")

    with get_engine().connect() as conn:
        user = conn.execute(
            select(users).where(
                users.c.id == payload.get("user_id"),
                users.c.session_token == token,
            )
        ).mappings().first()
    if user is None:
        raise Unauthenticated("Session is no longer valid")
    return public_user(user)
