from flask import Flask, request
import os
import secrets
import logging
from dotenv import load_dotenv
from models import db, League, Team, TeamAvailability, Match
from round_robin import create_round_robin_pairings, InvalidInput
from calendar_generator import (
    CalendarError,
    generate_calendar,
    get_calendar,
    delete_calendar,
    assign_match_date,
    update_league_dates,
)
from notifications import notify_calendar_generated
from utils import normalize_team_name, parse_iso_date, parse_availability

load_dotenv()

app = Flask(__name__)

# Production-ready secret key (set SECRET_KEY in environment variables)
app.secret_key = os.environ.get("SECRET_KEY", secrets.token_hex(32))

# Supports both DATABASE_URL (Render/Heroku) and DATABASE_URI (legacy)
database_url = os.environ.get("DATABASE_URL") or os.environ.get("DATABASE_URI")

if not database_url:
    # Relative SQLite paths resolve inside the Flask instance folder
    database_url = "sqlite:///league.db"
    logging.warning("No DATABASE_URL found, using SQLite fallback")

# Fix for Render: postgres:// -> postgresql://
if database_url.startswith("postgres://"):
    database_url = database_url.replace("postgres://", "postgresql://", 1)

app.config["SQLALCHEMY_DATABASE_URI"] = database_url
app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
if database_url.startswith("postgresql://"):
    app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_recycle": 300,     # Recycle connections after 5 minutes
        "pool_size": 3,
        "max_overflow": 2,
        "pool_timeout": 30,
        "connect_args": {"connect_timeout": 10},
    }

app.config["SEND_CALENDAR_EMAILS"] = os.environ.get("SEND_CALENDAR_EMAILS", "true").lower() == "true"

db.init_app(app)


def error_response(message, status):
    return {"error": message}, status


def serialize_calendar_result(result):
    matches = []
    for item in result["matches"]:
        data = dict(item)
        data["match_date"] = item["match_date"].isoformat() if item["match_date"] else None
        matches.append(data)

    return {
        "matches": matches,
        "byes": result["byes"],
        "total_weeks": result["total_weeks"],
        "start_date": result["start_date"].isoformat(),
        "end_date": result["end_date"].isoformat(),
    }


@app.route("/health")
def health():
    """Fast health check endpoint for deployment monitoring"""
    return {"status": "ok"}, 200


@app.route("/admin/leagues", methods=["POST"])
def create_league():
    body = request.get_json(silent=True) or {}
    name = (body.get("name") or "").strip()
    if not name:
        return error_response("League name is required", 400)

    league = League(name=name)
    db.session.add(league)
    db.session.commit()
    app.logger.info(f"Created league {league.id} ({league.name})")
    return {"league": league.to_dict(), "message": "League created successfully"}, 201


@app.route("/admin/leagues/<int:league_id>")
def league_detail(league_id):
    league = db.session.get(League, league_id)
    if not league:
        return error_response("League not found", 404)

    teams = Team.query.filter_by(league_id=league_id).order_by(Team.id).all()
    data = league.to_dict()
    data["teams"] = [t.to_dict() for t in teams]
    return {"league": data}


@app.route("/admin/leagues/<int:league_id>/teams", methods=["POST"])
def add_team(league_id):
    league = db.session.get(League, league_id)
    if not league:
        return error_response("League not found", 404)

    body = request.get_json(silent=True) or {}
    team_name = (body.get("team_name") or "").strip()
    if not team_name:
        return error_response("Team name is required", 400)

    canonical = normalize_team_name(team_name)
    duplicate = Team.query.filter_by(league_id=league_id, team_name_canonical=canonical).first()
    if duplicate:
        return error_response(f"A team named '{duplicate.team_name}' is already registered in this league", 400)

    availability, errors = parse_availability(body.get("availability"))
    if errors:
        return error_response("; ".join(errors), 400)

    team = Team(
        league_id=league_id,
        team_name=team_name,
        team_name_canonical=canonical,
        player1_name=body.get("player1_name"),
        player1_email=body.get("player1_email"),
        player2_name=body.get("player2_name"),
        player2_email=body.get("player2_email"),
    )
    for entry in availability:
        team.availability.append(TeamAvailability(**entry))

    db.session.add(team)
    db.session.commit()
    app.logger.info(f"Registered team {team.id} ({team.team_name}) in league {league_id}")
    return {"team": team.to_dict(), "message": "Team registered successfully"}, 201


@app.route("/admin/round-robin", methods=["POST"])
def round_robin_preview():
    """Preview round-robin pairings for an ordered list of team ids without saving anything"""
    body = request.get_json(silent=True) or {}
    team_ids = body.get("team_ids")
    if not isinstance(team_ids, list):
        return error_response("team_ids must be a list", 400)

    try:
        pairings = create_round_robin_pairings(team_ids)
    except InvalidInput as e:
        return error_response(str(e), 400)
    except TypeError:
        return error_response("team_ids must contain strings or numbers", 400)

    return {
        "pairings": pairings,
        "total_rounds": len(team_ids) - 1,
        "matches_per_round": len(team_ids) // 2,
    }


@app.route("/admin/leagues/<int:league_id>/generate-calendar", methods=["POST"])
def generate_calendar_route(league_id):
    body = request.get_json(silent=True) or {}
    if not body.get("start_date"):
        return error_response("Start date is required", 400)

    start_date = parse_iso_date(body.get("start_date"))
    if start_date is None:
        return error_response("Invalid start date format", 400)

    league = db.session.get(League, league_id)
    if not league:
        return error_response("League not found", 404)

    try:
        result = generate_calendar(league_id, start_date)
    except (CalendarError, InvalidInput) as e:
        app.logger.warning(f"Calendar generation rejected for league {league_id}: {e}")
        return error_response(str(e), 400)

    if app.config["SEND_CALENDAR_EMAILS"]:
        notify_calendar_generated(league, result)

    response = serialize_calendar_result(result)
    response["message"] = "Calendar generated successfully"
    return response, 201


@app.route("/admin/leagues/<int:league_id>/calendar")
def league_calendar(league_id):
    league = db.session.get(League, league_id)
    if not league:
        return error_response("League not found", 404)

    calendar = get_calendar(league_id)
    calendar["league"] = league.to_dict()
    calendar["message"] = "Calendar retrieved successfully"
    return calendar


@app.route("/admin/leagues/<int:league_id>/calendar", methods=["DELETE"])
def reset_calendar(league_id):
    league = db.session.get(League, league_id)
    if not league:
        return error_response("League not found", 404)

    deleted = delete_calendar(league_id)
    return {"deleted_matches": deleted, "message": "Calendar deleted successfully"}


@app.route("/admin/leagues/<int:league_id>/dates", methods=["PUT"])
def update_league_dates_route(league_id):
    body = request.get_json(silent=True) or {}
    if not body.get("start_date") or not body.get("end_date"):
        return error_response("Start date and end date are required", 400)

    start_date = parse_iso_date(body.get("start_date"))
    end_date = parse_iso_date(body.get("end_date"))
    if start_date is None or end_date is None:
        return error_response("Invalid date format", 400)

    league = db.session.get(League, league_id)
    if not league:
        return error_response("League not found", 404)

    try:
        update_league_dates(league, start_date, end_date)
    except CalendarError as e:
        return error_response(str(e), 400)

    return {"league": league.to_dict(), "message": "League dates updated successfully"}


@app.route("/admin/leagues/<int:league_id>/matches/<int:match_id>/date", methods=["PUT"])
def assign_match_date_route(league_id, match_id):
    body = request.get_json(silent=True) or {}
    if not body.get("match_date") or not body.get("match_time"):
        return error_response("Match date and time are required", 400)

    match_date = parse_iso_date(body.get("match_date"))
    if match_date is None:
        return error_response("Invalid match date format", 400)

    league = db.session.get(League, league_id)
    if not league:
        return error_response("League not found", 404)

    match = Match.query.filter_by(id=match_id, league_id=league_id).first()
    if not match:
        return error_response("Match not found", 404)

    try:
        assign_match_date(league, match, match_date, body.get("match_time"))
    except CalendarError as e:
        return error_response(str(e), 400)

    return {"match": match.to_dict(), "message": "Match date assigned successfully"}


# Error Handlers for Production
@app.errorhandler(404)
def page_not_found(e):
    """Handle 404 errors"""
    return error_response("Not found", 404)


@app.errorhandler(500)
def internal_server_error(e):
    """Handle 500 errors"""
    db.session.rollback()
    return error_response("Internal server error", 500)


def setup_production():
    """Setup production-specific configurations"""
    if not app.debug:
        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        )
        app.logger.setLevel(logging.INFO)
        app.logger.info('Padel League Calendar startup')


setup_production()


def init_db():
    """Create database tables if needed (safe for existing databases)"""
    from sqlalchemy import inspect
    from sqlalchemy.exc import SQLAlchemyError

    try:
        existing_tables = inspect(db.engine).get_table_names()
        if not existing_tables:
            db.create_all()
            app.logger.info("Database tables created")
        else:
            app.logger.info(f"Database already initialized with {len(existing_tables)} tables")
        return True
    except SQLAlchemyError as e:
        app.logger.error(f"Database initialization failed: {e}")
        app.logger.error("Application will continue but database features may not work")
        return False


# Initialize DB on first request (non-blocking for health checks)
_db_initialized = False
_db_available = True


@app.before_request
def ensure_db_initialized():
    """Ensure database is initialized before processing requests"""
    global _db_initialized, _db_available

    # Health check must work without database
    if request.endpoint == 'health':
        return

    if not _db_initialized:
        _db_available = init_db()
        _db_initialized = True

        if not _db_available:
            app.logger.warning("Database not available - some features will not work")


if __name__ == "__main__":
    # Development mode only
    port = int(os.environ.get("PORT") or 5000)
    debug = os.environ.get("FLASK_ENV") == "development"
    app.run(host="0.0.0.0", port=port, debug=debug)
