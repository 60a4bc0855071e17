"""
Calendar generation for a league.

Turns the league's teams into a weekly single round-robin calendar:
- Round N of the round robin is played in week N
- Each match gets the first free slot both teams are available for
- Matches with no common slot are saved without a date (manual assignment)
- Odd team counts get a bye placeholder; the team drawn against it has a bye week
"""

import logging
from datetime import date, timedelta

from sqlalchemy import or_

from models import db, League, Team, Match, ByeWeek, DAYS_OF_WEEK
from round_robin import create_round_robin_pairings, pad_with_bye, split_byes

logger = logging.getLogger(__name__)

MIN_TEAMS_REQUIRED = 2
DEFAULT_START_TIME = "09:00:00"
DEFAULT_END_TIME = "18:00:00"
MATCH_DURATION_MINUTES = 60
POSSIBLE_TIMES = [
    "10:00:00", "11:00:00", "12:00:00", "13:00:00",
    "14:00:00", "15:00:00", "16:00:00", "17:00:00",
]


class CalendarError(ValueError):
    """Raised when a calendar cannot be generated or a match date cannot be assigned"""


def time_to_minutes(value: str) -> int:
    parts = value.split(":")
    return int(parts[0]) * 60 + int(parts[1])


def normalize_time(value: str) -> str:
    """Accept 'HH:MM' or 'HH:MM:SS' and return 'HH:MM:SS'"""
    parts = str(value or "").strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise CalendarError(f"Invalid time format: {value!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    seconds = int(parts[2]) if len(parts) == 3 else 0
    if not (0 <= hours < 24 and 0 <= minutes < 60 and 0 <= seconds < 60):
        raise CalendarError(f"Invalid time: {value!r}")
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def get_team_availability(league_id):
    """
    Load every team in the league with its weekly availability.
    Returns: list of {"team_id", "team_name", "emails", "availability": [...]}
    """
    teams = Team.query.filter_by(league_id=league_id).order_by(Team.id).all()

    result = []
    for team in teams:
        result.append({
            "team_id": team.id,
            "team_name": team.team_name,
            "emails": team.emails,
            "availability": [
                {
                    "day_of_week": slot.day_of_week,
                    "is_available": slot.is_available,
                    "start_time": slot.start_time or DEFAULT_START_TIME,
                    "end_time": slot.end_time or DEFAULT_END_TIME,
                }
                for slot in team.availability
            ],
        })

    logger.info("Loaded availability for %d teams in league %s", len(result), league_id)
    return result


def validate_calendar_inputs(league, start_date, team_availability, today=None):
    today = today or date.today()

    if league is None:
        raise CalendarError("League not found")

    if start_date <= today:
        raise CalendarError("Start date must be in the future")

    if len(team_availability) < MIN_TEAMS_REQUIRED:
        raise CalendarError(
            f"League must have at least {MIN_TEAMS_REQUIRED} teams to generate calendar"
        )

    missing = [t["team_name"] for t in team_availability if not t["availability"]]
    if missing:
        raise CalendarError(
            f"Teams without availability data: {', '.join(missing)}. "
            "Please ensure all teams have availability information before generating calendar."
        )


def _available_windows(team):
    """Map lowercase day name -> (start_minutes, end_minutes) for the days a team can play"""
    windows = {}
    for slot in team["availability"]:
        if not slot["is_available"]:
            continue
        day = (slot["day_of_week"] or "").lower()
        if day not in DAYS_OF_WEEK:
            logger.warning("Invalid day of week %r for team %s", slot["day_of_week"], team["team_name"])
            continue
        windows[day] = (
            time_to_minutes(slot["start_time"] or DEFAULT_START_TIME),
            time_to_minutes(slot["end_time"] or DEFAULT_END_TIME),
        )
    return windows


def slot_key(match_date, match_time):
    return f"{match_date.isoformat()}_{match_time}"


def find_match_slot(home, away, week_start, scheduled_times):
    """
    Find the earliest free slot in the week starting at week_start where both teams can play.

    A slot fits when the match starts and ends inside both teams' windows for
    that day and nobody else is already booked at that date and time.

    Returns: (date, "HH:MM:SS") or (None, None) when no slot fits
    """
    home_windows = _available_windows(home)
    away_windows = _available_windows(away)

    for offset in range(7):
        day_date = week_start + timedelta(days=offset)
        day = DAYS_OF_WEEK[day_date.weekday()]
        if day not in home_windows or day not in away_windows:
            continue

        window_start = max(home_windows[day][0], away_windows[day][0])
        window_end = min(home_windows[day][1], away_windows[day][1])

        for match_time in POSSIBLE_TIMES:
            start = time_to_minutes(match_time)
            if start < window_start or start + MATCH_DURATION_MINUTES > window_end:
                continue
            if slot_key(day_date, match_time) in scheduled_times:
                continue
            return day_date, match_time

    return None, None


def build_calendar(team_availability, start_date):
    """
    Schedule a full round robin week by week. No database access.

    Returns:
        {
            "matches": [{"week_number", "home_team_id", "away_team_id", "home_team_name",
                         "away_team_name", "match_date", "match_time"}],
            "byes": [{"week_number", "team_id", "team_name"}],
            "total_weeks": int,
            "start_date": date,
            "end_date": date,
        }
    """
    team_map = {team["team_id"]: team for team in team_availability}
    team_ids = [team["team_id"] for team in team_availability]

    pairings = create_round_robin_pairings(pad_with_bye(team_ids))
    pairs, byes = split_byes(pairings)
    total_weeks = max(p["round_number"] for p in pairings)

    logger.info(
        "Scheduling %d matches and %d byes over %d weeks for %d teams",
        len(pairs), len(byes), total_weeks, len(team_ids),
    )

    scheduled_times = set()
    matches = []
    for pairing in pairs:
        week_number = pairing["round_number"]
        week_start = start_date + timedelta(weeks=week_number - 1)
        home = team_map[pairing["home_id"]]
        away = team_map[pairing["away_id"]]

        match_date, match_time = find_match_slot(home, away, week_start, scheduled_times)
        if match_date is None:
            logger.warning(
                "No available slot for %s vs %s in week %d, leaving for manual assignment",
                home["team_name"], away["team_name"], week_number,
            )
        else:
            scheduled_times.add(slot_key(match_date, match_time))

        matches.append({
            "week_number": week_number,
            "home_team_id": home["team_id"],
            "away_team_id": away["team_id"],
            "home_team_name": home["team_name"],
            "away_team_name": away["team_name"],
            "match_date": match_date,
            "match_time": match_time,
        })

    bye_weeks = [
        {
            "week_number": bye["round_number"],
            "team_id": bye["team_id"],
            "team_name": team_map[bye["team_id"]]["team_name"],
        }
        for bye in byes
    ]

    dated = [m["match_date"] for m in matches if m["match_date"] is not None]
    if dated:
        end_date = max(dated) + timedelta(days=7)
    else:
        end_date = start_date + timedelta(weeks=total_weeks) - timedelta(days=1)

    return {
        "matches": matches,
        "byes": bye_weeks,
        "total_weeks": total_weeks,
        "start_date": start_date,
        "end_date": end_date,
    }


def save_matches(matches, league_id):
    records = []
    for item in matches:
        record = Match(
            league_id=league_id,
            week_number=item["week_number"],
            home_team_id=item["home_team_id"],
            away_team_id=item["away_team_id"],
            match_date=item["match_date"],
            match_time=item["match_time"],
            status="scheduled",
        )
        db.session.add(record)
        records.append(record)
    return records


def save_bye_weeks(byes, league_id):
    for bye in byes:
        db.session.add(ByeWeek(league_id=league_id, team_id=bye["team_id"], week_number=bye["week_number"]))


def has_calendar(league_id) -> bool:
    return (
        Match.query.filter_by(league_id=league_id).first() is not None
        or ByeWeek.query.filter_by(league_id=league_id).first() is not None
    )


def generate_calendar(league_id, start_date, today=None):
    """
    Generate, persist and return the calendar for a league.
    Matches, bye weeks and the league's start/end dates are written in one commit.
    """
    logger.info("Starting calendar generation for league %s, start date %s", league_id, start_date)

    league = db.session.get(League, league_id)
    team_availability = get_team_availability(league_id) if league else []
    validate_calendar_inputs(league, start_date, team_availability, today=today)

    if has_calendar(league_id):
        raise CalendarError("League already has a calendar. Delete it before generating a new one.")

    result = build_calendar(team_availability, start_date)

    try:
        records = save_matches(result["matches"], league_id)
        save_bye_weeks(result["byes"], league_id)
        league.start_date = result["start_date"]
        league.end_date = result["end_date"]
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Failed to save calendar for league %s", league_id)
        raise

    for item, record in zip(result["matches"], records):
        item["id"] = record.id

    logger.info("Calendar generation completed. Generated %d matches.", len(records))
    return result


def get_calendar(league_id):
    """
    Return the league calendar split into dated matches, matches needing a date, and bye weeks.
    Byes are hidden for weeks in which the team also has a dated match.
    """
    matches = Match.query.filter_by(league_id=league_id).order_by(
        Match.week_number, Match.match_date, Match.match_time, Match.id
    ).all()
    teams = {t.id: t for t in Team.query.filter_by(league_id=league_id).all()}

    def with_teams(match):
        data = match.to_dict()
        home = teams.get(match.home_team_id)
        away = teams.get(match.away_team_id)
        data["home_team_name"] = home.team_name if home else "Unknown Team"
        data["away_team_name"] = away.team_name if away else "Unknown Team"
        return data

    assigned = [with_teams(m) for m in matches if not m.needs_assignment]
    needs_assignment = [with_teams(m) for m in matches if m.needs_assignment]

    busy = set()
    for m in matches:
        if not m.needs_assignment:
            busy.add((m.home_team_id, m.week_number))
            busy.add((m.away_team_id, m.week_number))

    byes = []
    for bye in ByeWeek.query.filter_by(league_id=league_id).order_by(ByeWeek.week_number).all():
        if (bye.team_id, bye.week_number) in busy:
            continue
        team = teams.get(bye.team_id)
        byes.append({
            "team_id": bye.team_id,
            "team_name": team.team_name if team else "Unknown Team",
            "week_number": bye.week_number,
        })

    return {"matches": assigned, "needs_assignment": needs_assignment, "byes": byes}


def delete_calendar(league_id) -> int:
    """Remove all matches and bye weeks of a league and clear its dates. Returns matches deleted."""
    deleted = Match.query.filter_by(league_id=league_id).delete()
    ByeWeek.query.filter_by(league_id=league_id).delete()

    league = db.session.get(League, league_id)
    if league:
        league.start_date = None
        league.end_date = None

    db.session.commit()
    logger.info("Deleted %d matches for league %s", deleted, league_id)
    return deleted


def update_league_dates(league, start_date, end_date):
    """Set the window that manually assigned match dates must fall in"""
    if start_date > end_date:
        raise CalendarError("Start date must be on or before end date")

    league.start_date = start_date
    league.end_date = end_date
    db.session.commit()
    logger.info("Updated league %s dates to %s - %s", league.id, start_date, end_date)
    return league


def assign_match_date(league, match, match_date, match_time):
    """
    Give a date and time to a match that was generated without one.

    Raises CalendarError if the match already has a date, the date is outside
    the league dates, or either team already plays another match that day.
    """
    match_time = normalize_time(match_time)

    if not match.needs_assignment:
        raise CalendarError(
            "Match already has an assigned date. Only matches without a date can be assigned here."
        )

    if league.start_date and match_date < league.start_date:
        raise CalendarError("Match date cannot be before league start date")
    if league.end_date and match_date > league.end_date:
        raise CalendarError("Match date cannot be after league end date")

    team_ids = (match.home_team_id, match.away_team_id)
    conflict = Match.query.filter(
        Match.match_date == match_date,
        Match.id != match.id,
        or_(Match.home_team_id.in_(team_ids), Match.away_team_id.in_(team_ids)),
    ).first()
    if conflict:
        raise CalendarError(
            f"Team conflict detected: a team from this match already has another match "
            f"scheduled on {match_date.isoformat()}"
        )

    match.match_date = match_date
    match.match_time = match_time
    db.session.commit()
    logger.info("Assigned match %s to %s %s", match.id, match_date, match_time)
    return match
