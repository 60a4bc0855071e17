"""
Email notifications for league calendars.
SMTP settings are read from the environment; sending is skipped when they are missing.
"""

import logging
import os
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from calendar_generator import get_team_availability

logger = logging.getLogger(__name__)


def send_email_notification(to_email: str, subject: str, body: str) -> bool:
    """
    Send an email notification.

    Args:
        to_email: Recipient email address
        subject: Email subject
        body: Email body (plain text)

    Returns:
        True if email sent successfully, False otherwise
    """
    if not to_email:
        return False

    # Testing mode: redirect all emails to the test address
    testing_mode = os.environ.get("TESTING_MODE", "false").lower() == "true"
    if testing_mode:
        original_email = to_email
        to_email = os.environ.get("TEST_EMAIL", "")
        logger.info("[EMAIL TEST MODE] Redirecting email from %s to %s", original_email, to_email)
        if not to_email:
            return False

    smtp_server = os.environ.get("SMTP_SERVER")
    smtp_port = int(os.environ.get("SMTP_PORT", "587"))
    smtp_username = os.environ.get("SMTP_USERNAME")
    smtp_password = os.environ.get("SMTP_PASSWORD")
    smtp_from = os.environ.get("SMTP_FROM_EMAIL", smtp_username)

    if not all([smtp_server, smtp_username, smtp_password]):
        logger.info("[EMAIL] SMTP not configured, skipping email to %s", to_email)
        return False

    try:
        msg = MIMEMultipart()
        msg['From'] = smtp_from
        msg['To'] = to_email
        msg['Subject'] = subject
        msg.attach(MIMEText(body, 'plain'))

        with smtplib.SMTP(smtp_server, smtp_port) as server:
            server.starttls()
            server.login(smtp_username, smtp_password)
            server.send_message(msg)

        logger.info("[EMAIL] Successfully sent to %s: %s", to_email, subject)
        return True

    except (smtplib.SMTPException, OSError) as e:
        logger.error("[EMAIL ERROR] Failed to send to %s: %s", to_email, e)
        return False


def format_fixture_line(match, team_id):
    if match["home_team_id"] == team_id:
        opponent, side = match["away_team_name"], "Home"
    else:
        opponent, side = match["home_team_name"], "Away"

    if match["match_date"] is None:
        when = "date to be confirmed"
    else:
        when = f"{match['match_date'].strftime('%a %b %d')} at {match['match_time'][:5]}"
    return f"Week {match['week_number']}: vs {opponent} ({side}) - {when}"


def notify_calendar_generated(league, result, teams=None) -> int:
    """
    Email every team its fixtures for the newly generated calendar.

    Args:
        league: League the calendar belongs to
        result: Output of calendar_generator.generate_calendar
        teams: Team entries with "team_id", "team_name", "emails";
               loaded from the league when not given

    Returns:
        Number of emails sent
    """
    if teams is None:
        teams = get_team_availability(league.id)

    sent = 0
    for team in teams:
        lines = [
            format_fixture_line(m, team["team_id"])
            for m in result["matches"]
            if team["team_id"] in (m["home_team_id"], m["away_team_id"])
        ]
        lines += [
            f"Week {b['week_number']}: bye"
            for b in result["byes"] if b["team_id"] == team["team_id"]
        ]

        body = f"""Hi {team['team_name']},

The calendar for {league.name} is ready. Your fixtures:

{chr(10).join(lines)}

The league runs from {result['start_date'].isoformat()} to {result['end_date'].isoformat()}.
"""
        for email in team["emails"]:
            if send_email_notification(email, f"{league.name} - your match calendar", body):
                sent += 1

    logger.info("Sent %d calendar emails for league %s", sent, league.id)
    return sent
