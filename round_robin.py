"""
Round-robin pairings for a league with an even number of teams.
Circle method: the first team stays fixed while the rest rotate.
"""

BYE = "__bye__"


class InvalidInput(ValueError):
    """Raised when a team list cannot produce a round-robin schedule"""


def create_round_robin_pairings(team_ids):
    """
    Generate a single round-robin schedule for an even number of teams.

    Args:
        team_ids: Ordered list of unique team identifiers (order sets the seeding)

    Returns:
        List of dicts: {"round_number", "home_id", "away_id"}
        N-1 rounds with N/2 matches each; every pair plays exactly once.

    Raises:
        InvalidInput: odd team count, fewer than 2 teams, or duplicate ids
    """
    n = len(team_ids)
    if n % 2 != 0:
        raise InvalidInput(f"Round robin requires an even number of teams (got {n})")
    if n < 2:
        raise InvalidInput("Round robin requires at least 2 teams")
    if len(set(team_ids)) != n:
        raise InvalidInput("Team identifiers must be unique")

    num_rounds = n - 1
    matches_per_round = n // 2

    teams = list(team_ids)
    pairings = []

    for round_index in range(num_rounds):
        for i in range(matches_per_round):
            pairings.append({
                "round_number": round_index + 1,
                "home_id": teams[i],
                "away_id": teams[n - 1 - i],
            })

        # Keep first fixed, last team moves to second position
        fixed = teams[0]
        rotating = teams[1:]
        teams = [fixed] + [rotating[-1]] + rotating[:-1]

    return pairings


def pad_with_bye(team_ids):
    """Return a copy of team_ids, with the BYE placeholder appended if the count is odd"""
    padded = list(team_ids)
    if len(padded) % 2 == 1:
        padded.append(BYE)
    return padded


def split_byes(pairings):
    """
    Separate real matches from bye assignments.
    Returns: (matches, byes) where each bye is {"round_number", "team_id"}
    """
    matches = []
    byes = []
    for pairing in pairings:
        if pairing["away_id"] == BYE:
            byes.append({"round_number": pairing["round_number"], "team_id": pairing["home_id"]})
        elif pairing["home_id"] == BYE:
            byes.append({"round_number": pairing["round_number"], "team_id": pairing["away_id"]})
        else:
            matches.append(pairing)
    return matches, byes
