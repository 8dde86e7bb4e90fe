import logging
from functools import wraps

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

import config
import hierarchy
import reorder
import sessions
from db import create_schema
from errors import BadParams, JobBoardError, Unauthenticated

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["SECRET_KEY"] = config.SECRET_KEY


def strip_blank_fields(data):
    """Drop empty-string fields from a (possibly nested) JSON body."""
    if isinstance(data, dict):
        return {
            key: strip_blank_fields(value)
            for key, value in data.items()
            if not (isinstance(value, str) and not value.strip())
        }
    if isinstance(data, list):
        return [strip_blank_fields(item) for item in data]
    return data


def remove_blanks(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        request.body = strip_blank_fields(request.get_json(silent=True) or {})
        return f(*args, **kwargs)

    return decorated


def require_auth(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            raise Unauthenticated()
        user = sessions.authenticate(auth_header[7:])
        request.user_id = user["id"]
        return f(*args, **kwargs)

    return decorated


def json_body():
    body = getattr(request, "body", None)
    if body is None:
        body = request.get_json(silent=True) or {}
    if not isinstance(body, dict):
        raise BadParams("Request body must be a JSON object")
    return body


def section(body, name, required=True):
    value = body.get(name)
    if value is None and not required:
        return {}
    if not isinstance(value, dict):
        raise BadParams(f"'{name}' must be an object")
    return value


def int_param(value, name):
    if isinstance(value, bool):
        raise BadParams(f"'{name}' must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadParams(f"'{name}' must be an integer")


@app.errorhandler(JobBoardError)
def handle_board_error(error):
    return jsonify({"error": error.message}), error.status_code


@app.errorhandler(404)
def handle_not_found(error):
    return jsonify({"error": "Not found"}), 404


@app.errorhandler(HTTPException)
def handle_http_error(error):
    return jsonify({"error": error.description or error.name}), error.code


@app.cli.command("init-db")
def init_db():
    """Create all tables without running migrations."""
    create_schema()
    logger.info("Schema created")


@app.route("/health")
def health():
    return jsonify({"message": "OK"})


# ---- Auth ----


@app.route("/sign-up", methods=["POST"])
def sign_up():
    credentials = section(json_body(), "credentials")
    sessions.sign_up(
        credentials.get("email"),
        credentials.get("password"),
        credentials.get("password_confirmation"),
    )
    return "", 201


@app.route("/sign-in", methods=["POST"])
def sign_in():
    credentials = section(json_body(), "credentials")
    user, board = sessions.sign_in(credentials.get("email"), credentials.get("password"))
    return jsonify({"user": user, "board": board}), 201


@app.route("/change-password", methods=["PATCH"])
@require_auth
def change_password():
    passwords = section(json_body(), "passwords")
    sessions.change_password(request.user_id, passwords.get("old"), passwords.get("new"))
    return "", 204


@app.route("/sign-out", methods=["DELETE"])
@require_auth
def sign_out():
    sessions.sign_out(request.user_id)
    return "", 204


# ---- Board ----


@app.route("/board", methods=["GET"])
@require_auth
def get_board():
    return jsonify({"board": hierarchy.get_board(request.user_id)})


# ---- Columns ----


@app.route("/column", methods=["POST"])
@require_auth
@remove_blanks
def create_column():
    body = json_body()
    board_id = int_param(body.get("elementId"), "elementId")
    column = hierarchy.create_column(board_id, request.user_id, section(body, "form"))
    return jsonify({"column": column}), 201


@app.route("/column", methods=["PUT"])
@require_auth
@remove_blanks
def move_cell():
    body = json_body()
    source = section(body, "source")
    destination = section(body, "destination")
    reorder.move_cell(
        request.user_id,
        int_param(source.get("droppableId"), "source.droppableId"),
        int_param(source.get("index"), "source.index"),
        int_param(destination.get("droppableId"), "destination.droppableId"),
        int_param(destination.get("index"), "destination.index"),
    )
    return "", 204


@app.route("/column/<int:column_id>", methods=["PATCH"])
@require_auth
@remove_blanks
def update_column(column_id):
    form = section(json_body(), "form", required=False)
    hierarchy.update_column(column_id, request.user_id, form)
    return "", 204


@app.route("/column/<int:column_id>", methods=["DELETE"])
@require_auth
def delete_column(column_id):
    hierarchy.delete_column(column_id, request.user_id)
    return "", 204


# ---- Cells ----


@app.route("/cell", methods=["POST"])
@require_auth
@remove_blanks
def create_cell():
    body = json_body()
    column_id = int_param(body.get("elementId"), "elementId")
    cell = hierarchy.create_cell(column_id, request.user_id, section(body, "form"))
    return jsonify({"cell": cell}), 201


@app.route("/cell/<int:cell_id>", methods=["PATCH"])
@require_auth
@remove_blanks
def update_cell(cell_id):
    form = section(json_body(), "form", required=False)
    hierarchy.update_cell(cell_id, request.user_id, form)
    return "", 204


@app.route("/cell/<int:cell_id>", methods=["DELETE"])
@require_auth
def delete_cell(cell_id):
    hierarchy.delete_cell(cell_id, request.user_id)
    return "", 204
