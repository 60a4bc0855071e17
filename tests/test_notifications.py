from datetime import date

import pytest

import notifications
from models import League
from notifications import format_fixture_line, notify_calendar_generated, send_email_notification


@pytest.fixture
def smtp_env(monkeypatch):
    monkeypatch.setenv("SMTP_SERVER", "smtp.example.com")
    monkeypatch.setenv("SMTP_USERNAME", "league@example.com")
    monkeypatch.setenv("SMTP_PASSWORD", "secret")
    monkeypatch.delenv("TESTING_MODE", raising=False)


class FakeSMTP:
    sent = []

    def __init__(self, server, port):
        self.server = server
        self.port = port

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, username, password):
        pass

    def send_message(self, msg):
        FakeSMTP.sent.append(msg)


def test_skipped_without_smtp_config(monkeypatch):
    for key in ["SMTP_SERVER", "SMTP_USERNAME", "SMTP_PASSWORD", "TESTING_MODE"]:
        monkeypatch.delenv(key, raising=False)
    assert send_email_notification("player@example.com", "Hi", "Body") is False


def test_skipped_without_recipient(smtp_env):
    assert send_email_notification("", "Hi", "Body") is False


def test_sends_with_smtp(smtp_env, monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(notifications.smtplib, "SMTP", FakeSMTP)

    assert send_email_notification("player@example.com", "Fixtures", "See you on court") is True
    assert FakeSMTP.sent[0]["To"] == "player@example.com"
    assert FakeSMTP.sent[0]["Subject"] == "Fixtures"


def test_testing_mode_redirects(smtp_env, monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(notifications.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setenv("TESTING_MODE", "true")
    monkeypatch.setenv("TEST_EMAIL", "qa@example.com")

    assert send_email_notification("player@example.com", "Fixtures", "Body") is True
    assert FakeSMTP.sent[0]["To"] == "qa@example.com"


def test_smtp_failure_returns_false(smtp_env, monkeypatch):
    class BrokenSMTP(FakeSMTP):
        def login(self, username, password):
            raise notifications.smtplib.SMTPAuthenticationError(535, b"bad credentials")

    monkeypatch.setattr(notifications.smtplib, "SMTP", BrokenSMTP)
    assert send_email_notification("player@example.com", "Fixtures", "Body") is False


def test_format_fixture_line():
    match = {
        "week_number": 2, "home_team_id": 1, "away_team_id": 2,
        "home_team_name": "Smashers", "away_team_name": "Lobbers",
        "match_date": date(2030, 1, 19), "match_time": "10:00:00",
    }
    assert format_fixture_line(match, 1) == "Week 2: vs Lobbers (Home) - Sat Jan 19 at 10:00"
    assert format_fixture_line(dict(match, match_date=None, match_time=None), 2) == (
        "Week 2: vs Smashers (Away) - date to be confirmed"
    )


def test_notify_calendar_generated(monkeypatch):
    calls = []
    monkeypatch.setattr(
        notifications, "send_email_notification",
        lambda to, subject, body: calls.append((to, subject, body)) or True,
    )

    league = League(id=7, name="Winter League")
    teams = [
        {"team_id": 1, "team_name": "Smashers", "emails": ["a@example.com", "b@example.com"]},
        {"team_id": 2, "team_name": "Lobbers", "emails": []},
        {"team_id": 3, "team_name": "Volleys", "emails": ["c@example.com"]},
    ]
    result = {
        "matches": [{
            "week_number": 1, "home_team_id": 1, "away_team_id": 2,
            "home_team_name": "Smashers", "away_team_name": "Lobbers",
            "match_date": date(2030, 1, 12), "match_time": "10:00:00",
        }],
        "byes": [{"week_number": 1, "team_id": 3, "team_name": "Volleys"}],
        "start_date": date(2030, 1, 7),
        "end_date": date(2030, 1, 19),
    }

    assert notify_calendar_generated(league, result, teams) == 3
    recipients = [c[0] for c in calls]
    assert recipients == ["a@example.com", "b@example.com", "c@example.com"]
    assert "vs Lobbers (Home)" in calls[0][2]
    assert "Week 1: bye" in calls[2][2]
    assert calls[0][1] == "Winter League - your match calendar"


def test_notify_loads_teams_from_league(monkeypatch, make_league, make_team):
    calls = []
    monkeypatch.setattr(
        notifications, "send_email_notification",
        lambda to, subject, body: calls.append(to) or True,
    )
    league = make_league("Summer League")
    home = make_team(league, "Smashers", email="smash@example.com")
    away = make_team(league, "Lobbers")
    result = {
        "matches": [{
            "week_number": 1, "home_team_id": home.id, "away_team_id": away.id,
            "home_team_name": "Smashers", "away_team_name": "Lobbers",
            "match_date": None, "match_time": None,
        }],
        "byes": [],
        "start_date": date(2030, 1, 7),
        "end_date": date(2030, 1, 13),
    }

    assert notify_calendar_generated(league, result) == 1
    assert calls == ["smash@example.com"]
