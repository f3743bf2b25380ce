"""
API Routes for the Auction Results Tracker

Provides REST API endpoints for:
- Triggering scrapes (background or synchronous)
- Auction result listings with filters
- Suburb statistics, suburb detail and weekly trends
- Scrape run history and health checks
"""

from typing import Optional

from flask import Blueprint, jsonify, request

from auctionresults.config import get_config
from auctionresults.core.constants import SOURCES
from auctionresults.core.database import get_connection
from auctionresults.core.queries import (
    list_auctions,
    list_suburb_statistics,
    recent_run_logs,
    suburb_detail,
    trends,
)
from auctionresults.exceptions import ValidationError
from auctionresults.logging_config import get_logger
from auctionresults.utils.date_parser import parse_iso_date
from auctionresults.api.auth import require_api_key
from auctionresults.api.jobs import ScrapeAlreadyRunning, run_scrape, start_scrape

logger = get_logger(__name__)

# Create blueprint
api = Blueprint("api", __name__, url_prefix="/api")

SCRAPE_SOURCES = SOURCES + ("all",)

# Scraper service instance (lazy loaded)
_service = None


def get_service():
    """Lazy-load the scraper service."""
    global _service
    if _service is None:
        from auctionresults.scraper.service import ScraperService
        _service = ScraperService()
    return _service


def _optional_int(name: str) -> Optional[int]:
    value = request.args.get(name)
    if value in (None, ""):
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer", name, value) from None


# Health
@api.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    try:
        with get_connection() as conn:
            logs = recent_run_logs(conn, limit=1)
        return jsonify({
            "status": "healthy",
            "last_run": logs[0] if logs else None,
        })
    except Exception as e:
        logger.warning("Health check failed: %s", e)
        return jsonify({"status": "unhealthy", "error": str(e)}), 503


# Scraping
@api.route("/scrape", methods=["POST"])
@require_api_key
def trigger_scrape():
    """Start a scrape for "domain", "rea" or "all".

    Body: ``{"source": ..., "date": "YYYY-MM-DD", "wait": false}``. With
    ``wait`` the request blocks until the run finishes and returns its run
    logs.
    """
    data = request.get_json(silent=True) or {}
    source = data.get("source")

    if source not in SCRAPE_SOURCES:
        return jsonify({"error": "Invalid source specified"}), 400

    try:
        auction_date = parse_iso_date(data.get("date"), "date")
    except ValidationError as e:
        return jsonify({"error": e.message}), 400

    try:
        if data.get("wait"):
            logs = run_scrape(get_service(), source, auction_date)
            return jsonify({
                "success": all(log.succeeded for log in logs),
                "runs": [log.to_dict() for log in logs],
            })

        start_scrape(get_service(), source, auction_date)
        return jsonify({
            "success": True,
            "message": f"{source} scraper started successfully",
        })
    except ScrapeAlreadyRunning as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        logger.error("Scrape API error: %s", e)
        return jsonify({"error": "Failed to start scraper"}), 500


@api.route("/scrape-logs", methods=["GET"])
def get_scrape_logs():
    """Recent scrape runs, newest first."""
    try:
        limit = request.args.get("limit", 20, type=int)
        source = request.args.get("source")
        with get_connection() as conn:
            logs = recent_run_logs(conn, source=source, limit=limit)
        return jsonify({"data": logs, "count": len(logs)})
    except Exception as e:
        logger.error("Error fetching scrape logs: %s", e)
        return jsonify({"error": "Failed to fetch scrape logs"}), 500


# Auctions
@api.route("/auctions", methods=["GET"])
def get_auctions():
    """Auction results with search, filters, sorting and pagination."""
    try:
        args = request.args
        date_from = parse_iso_date(args.get("date_from"), "date_from")
        date_to = parse_iso_date(args.get("date_to"), "date_to")

        with get_connection() as conn:
            page = list_auctions(
                conn,
                search=args.get("search"),
                suburb=args.get("suburb"),
                state=args.get("state"),
                result=args.get("result"),
                property_type=args.get("property_type"),
                date_from=date_from.isoformat() if date_from else None,
                date_to=date_to.isoformat() if date_to else None,
                min_price=_optional_int("min_price"),
                max_price=_optional_int("max_price"),
                sort_by=args.get("sort_by"),
                sort_order=args.get("sort_order"),
                page=_optional_int("page"),
                limit=_optional_int("limit"),
            )
        return jsonify(page)
    except ValidationError as e:
        return jsonify({"error": e.message}), 400
    except Exception as e:
        logger.error("Error fetching auctions: %s", e)
        return jsonify({"error": "Failed to fetch auctions"}), 500


# Suburbs
@api.route("/suburbs", methods=["GET"])
def get_suburbs():
    """Suburb statistics with filters, sorting and pagination."""
    try:
        args = request.args
        on_date = parse_iso_date(args.get("date"), "date")

        with get_connection() as conn:
            page = list_suburb_statistics(
                conn,
                state=args.get("state"),
                on_date=on_date.isoformat() if on_date else None,
                search=args.get("search"),
                sort_by=args.get("sort_by"),
                sort_order=args.get("sort_order"),
                page=_optional_int("page"),
                limit=_optional_int("limit"),
            )
        return jsonify(page)
    except ValidationError as e:
        return jsonify({"error": e.message}), 400
    except Exception as e:
        logger.error("Error fetching suburbs: %s", e)
        return jsonify({"error": "Failed to fetch suburbs"}), 500


@api.route("/suburbs/<path:suburb>", methods=["GET"])
def get_suburb(suburb: str):
    """Latest statistics, recent auctions and history for one suburb."""
    try:
        with get_connection() as conn:
            detail = suburb_detail(conn, suburb, state=request.args.get("state"))

        if detail is None:
            return jsonify({"error": "Suburb not found"}), 404
        return jsonify(detail)
    except Exception as e:
        logger.error("Error fetching suburb %s: %s", suburb, e)
        return jsonify({"error": "Failed to fetch suburb details"}), 500


# Trends
@api.route("/trends", methods=["GET"])
def get_trends():
    """Weekly clearance and price trends for a period."""
    try:
        with get_connection() as conn:
            data = trends(
                conn,
                suburb=request.args.get("suburb"),
                state=request.args.get("state"),
                period=request.args.get("period"),
            )
        return jsonify(data)
    except ValidationError as e:
        return jsonify({"error": e.message}), 400
    except Exception as e:
        logger.error("Error fetching trends: %s", e)
        return jsonify({"error": "Failed to fetch trends"}), 500


def register_routes(app):
    """Register API routes with Flask app."""
    app.register_blueprint(api)

    logger.info("API routes registered (auth %s)",
                "enforced" if get_config().api.require_auth else "disabled")
