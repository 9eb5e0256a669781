"""
REST API for the book tracker.

    GET    /health
    GET    /api/books?status=&search=&sort=&page=&pageSize=
    POST   /api/books
    PATCH  /api/books/<id>
    DELETE /api/books/<id>

Run with `python api.py` (port from PORT, default 3001).
"""

import logging
from typing import Optional

from flask import Blueprint, Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException
from werkzeug.wrappers import Response

import config
from books import ById
from db import init_db
from logger import setup_logger
from store import BookStore, SqlBookStore
from validators import ValidationError, parse_list_query, validate_create, validate_update

bp = Blueprint("books", __name__, url_prefix="/api/books")
logger = logging.getLogger(__name__)

STORE_KEY = "book_store"


def _store() -> BookStore:
    return current_app.extensions[STORE_KEY]


def _identity(book_id: str) -> ById:
    return ById(int(book_id) if book_id.isdigit() else book_id)


def _not_found() -> tuple[Response, int]:
    return jsonify({"message": "Book not found"}), 404


# ----------------------------------------------------------------------
# BOOKS
# ----------------------------------------------------------------------
@bp.route("", methods=["GET"])
def list_books_view() -> Response:
    """Filtered, searched, sorted page of books plus pagination meta."""
    query = parse_list_query(request.args, current_app.config["PAGE_SIZE"])
    result = _store().query(query)
    return jsonify(
        {
            "data": [b.to_dict() for b in result.items],
            "meta": {
                "page": result.safe_page,
                "pageSize": query.page_size,
                "total": result.total,
                "totalPages": result.total_pages,
            },
        }
    )


@bp.route("", methods=["POST"])
def create_book_view() -> tuple[Response, int]:
    fields = validate_create(request.get_json(silent=True))
    created = _store().insert(fields)
    return jsonify(created.to_dict()), 201


@bp.route("/<book_id>", methods=["PATCH"])
def update_book_view(book_id: str) -> Response | tuple[Response, int]:
    book_id = book_id.strip()
    if not book_id:
        return jsonify({"message": "id is required"}), 400

    updates = validate_update(request.get_json(silent=True))
    updated = _store().update(_identity(book_id), updates)
    if updated is None:
        return _not_found()
    return jsonify(updated.to_dict())


@bp.route("/<book_id>", methods=["DELETE"])
def delete_book_view(book_id: str) -> Response | tuple[Response, int]:
    book_id = book_id.strip()
    if not book_id:
        return jsonify({"message": "id is required"}), 400

    if not _store().delete(_identity(book_id)):
        return _not_found()
    return Response(status=204)


@bp.errorhandler(ValidationError)
def validation_error_view(error: ValidationError) -> tuple[Response, int]:
    return jsonify({"message": str(error)}), 400


# ----------------------------------------------------------------------
# APP
# ----------------------------------------------------------------------
def create_app(store: Optional[BookStore] = None, cors_origin: Optional[str] = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        store: Record store to serve; defaults to the configured database
        cors_origin: Comma-separated allowed origins; defaults to CORS_ORIGIN
    """
    setup_logger("", config.LOG_LEVEL)

    if store is None:
        init_db()
        store = SqlBookStore()

    app = Flask(__name__)
    app.config["PAGE_SIZE"] = config.PAGE_SIZE
    app.json.sort_keys = False
    app.extensions[STORE_KEY] = store

    allowed_origins = [
        origin.strip()
        for origin in (config.CORS_ORIGIN if cors_origin is None else cors_origin).split(",")
        if origin.strip()
    ]

    @app.route("/health", methods=["GET"])
    def health() -> Response:
        return jsonify({"ok": True})

    app.register_blueprint(bp)

    @app.after_request
    def add_headers(response: Response) -> Response:
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        origin = request.headers.get("Origin")
        if origin and origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PATCH, DELETE, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers.add("Vary", "Origin")
        elif origin:
            logger.warning("CORS blocked origin: %s", origin)
        return response

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException) -> tuple[Response, int]:
        return jsonify({"message": error.description or error.name}), error.code

    @app.errorhandler(Exception)
    def internal_error(error: Exception) -> tuple[Response, int]:
        logger.error("Unhandled error on %s %s", request.method, request.path, exc_info=error)
        return jsonify({"message": "Internal Server Error"}), 500

    logger.info("API ready (store=%s, origins=%s)", type(store).__name__, allowed_origins)
    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=config.PORT, debug=config.DEBUG)
