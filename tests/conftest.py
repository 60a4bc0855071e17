import os

# Must be set before the app module is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEND_CALENDAR_EMAILS"] = "false"
os.environ.pop("DATABASE_URI", None)

import pytest

from app import app as flask_app
from models import db, League, Team, TeamAvailability


@pytest.fixture
def app():
    flask_app.config["TESTING"] = True
    with flask_app.app_context():
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_league(app):
    def _make_league(name="Spring League"):
        league = League(name=name)
        db.session.add(league)
        db.session.commit()
        return league
    return _make_league


@pytest.fixture
def make_team(app):
    def _make_team(league, name, days=("saturday",), start_time="09:00:00", end_time="18:00:00",
                   email=None):
        team = Team(league_id=league.id, team_name=name, team_name_canonical=name.lower(),
                    player1_name=f"{name} P1", player1_email=email)
        for day in days:
            team.availability.append(TeamAvailability(
                day_of_week=day, is_available=True, start_time=start_time, end_time=end_time,
            ))
        db.session.add(team)
        db.session.commit()
        return team
    return _make_team
