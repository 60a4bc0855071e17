from datetime import datetime

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

DAYS_OF_WEEK = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


class League(db.Model):
    __tablename__ = 'league'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    start_date = db.Column(db.Date, nullable=True)  # Set when the calendar is generated
    end_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
        }


class Team(db.Model):
    __tablename__ = 'team'

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.Integer, db.ForeignKey('league.id'), nullable=False, index=True)
    team_name = db.Column(db.String(100), nullable=False)
    team_name_canonical = db.Column(db.String(120), index=True)
    player1_name = db.Column(db.String(100))
    player1_email = db.Column(db.String(120))  # Optional, for email notifications
    player2_name = db.Column(db.String(100))
    player2_email = db.Column(db.String(120))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    availability = db.relationship(
        'TeamAvailability', backref='team', lazy=True, cascade="all, delete-orphan"
    )

    @property
    def emails(self):
        emails = []
        for email in (self.player1_email, self.player2_email):
            if email and email not in emails:
                emails.append(email)
        return emails

    def to_dict(self):
        return {
            "id": self.id,
            "league_id": self.league_id,
            "team_name": self.team_name,
            "player1_name": self.player1_name,
            "player2_name": self.player2_name,
            "availability": [a.to_dict() for a in self.availability],
        }


class TeamAvailability(db.Model):
    __tablename__ = 'team_availability'
    __table_args__ = (
        db.UniqueConstraint('team_id', 'day_of_week', name='team_availability_team_day_unique'),
    )

    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    day_of_week = db.Column(db.String(10), nullable=False)  # 'monday', 'tuesday', etc.
    is_available = db.Column(db.Boolean, default=False, nullable=False)
    start_time = db.Column(db.String(8))  # e.g. '09:00:00'
    end_time = db.Column(db.String(8))  # e.g. '18:00:00'

    def to_dict(self):
        return {
            "day_of_week": self.day_of_week,
            "is_available": self.is_available,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }


class Match(db.Model):
    __tablename__ = 'match'

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.Integer, db.ForeignKey('league.id'), nullable=False, index=True)
    week_number = db.Column(db.Integer, nullable=False)
    home_team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    away_team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)

    # Null date/time means the match needs manual assignment by an admin
    match_date = db.Column(db.Date, nullable=True)
    match_time = db.Column(db.String(8), nullable=True)

    status = db.Column(db.String(20), default="scheduled")  # scheduled, completed
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def needs_assignment(self):
        return self.match_date is None

    def to_dict(self):
        return {
            "id": self.id,
            "league_id": self.league_id,
            "week_number": self.week_number,
            "home_team_id": self.home_team_id,
            "away_team_id": self.away_team_id,
            "match_date": self.match_date.isoformat() if self.match_date else None,
            "match_time": self.match_time,
            "status": self.status,
        }


class ByeWeek(db.Model):
    __tablename__ = 'bye_week'

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.Integer, db.ForeignKey('league.id'), nullable=False, index=True)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    week_number = db.Column(db.Integer, nullable=False)
