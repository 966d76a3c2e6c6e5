"""
Build schedulable matches from per-category tournament data.

Group stages produce round-robin matches with both teams known. Playoff
brackets reference earlier results through placeholders:

    "Vencedor <match id>" / "Perdedor <match id>"  -> depends on that match
    "1º do Grupo A"                                -> depends on every Grupo A match
"""
import copy
import re
from itertools import combinations
from typing import Dict, List

from .errors import InvalidTeamError
from .models import TEAM_SEPARATOR, SchedulableMatch, Team, normalize_time

MATCH_REFERENCE_RE = re.compile(r'(?:Vencedor|Perdedor)\s(.+)')
GROUP_POSITION_RE = re.compile(r'\d+º\sdo\s(.+)')

BRACKET_SECTIONS = ('upper', 'lower', 'playoffs', 'grandFinal')

# Bracket slots that hold no team yet
NON_TEAM_ENTRIES = frozenset({'bye', 'a definir', 'tbd'})


def _id_fragment(name):
    return re.sub(r'\s', '', name)


def to_team(value):
    """
    Turn a team description into a Team, or None for placeholders.

    Accepts 'Player A e Player B', a {player1, player2} mapping, a list of
    player names, or a plain team name such as 'Time Azul' (the name is
    then the only player, so the team still cannot be double-booked).
    """
    if not value:
        return None
    if isinstance(value, Team):
        return value
    if isinstance(value, dict):
        if not value.get('player1') or not value.get('player2'):
            return None
        return Team.from_players(value['player1'], value['player2'])
    if isinstance(value, (list, tuple)):
        players = [str(p).strip() for p in value if p and str(p).strip()]
        if not players:
            return None
        return Team(TEAM_SEPARATOR.join(players), players)
    value = str(value).strip()
    if not value or is_placeholder(value):
        return None
    if TEAM_SEPARATOR not in value:
        return Team(value, [value])
    return Team(value)


def is_placeholder(text):
    return bool(MATCH_REFERENCE_RE.match(text) or GROUP_POSITION_RE.match(text)
                or text.lower() in NON_TEAM_ENTRIES)


def _team_or_placeholder(value):
    team = to_team(value)
    if team is not None:
        return team
    return str(value).strip() if value else ''


def _group_team(value, category, group_name):
    """Group matches are played by known teams only."""
    team = to_team(value)
    if team is None:
        raise InvalidTeamError(f"{category} / {group_name}: '{value}' is not a team")
    return team


def placeholder_dependencies(placeholder, group_match_ids: Dict[str, List[str]]) -> List[str]:
    """Match ids a placeholder waits for."""
    if not placeholder:
        return []
    ref = MATCH_REFERENCE_RE.match(placeholder)
    if ref:
        return [ref.group(1).strip()]
    group_ref = GROUP_POSITION_RE.match(placeholder)
    if group_ref:
        return list(group_match_ids.get(group_ref.group(1).strip(), []))
    return []


def generate_round_robin(teams):
    """Every pairing of the teams in a group, in a stable order."""
    return list(combinations(teams, 2))


def build_group_matches(category, group, not_before=None):
    prefix = _id_fragment(category)
    group_name = group['name']
    group_id = _id_fragment(group_name)

    pairings = group.get('matches')
    if pairings is None:
        pairings = [{'team1': t1, 'team2': t2} for t1, t2 in generate_round_robin(group.get('teams', []))]

    matches = []
    for i, pairing in enumerate(pairings):
        matches.append(SchedulableMatch(
            id=pairing.get('id') or f"{prefix}-{group_id}-Jogo{i + 1}",
            category=category,
            stage=group_name,
            team1=_group_team(pairing.get('team1'), category, group_name),
            team2=_group_team(pairing.get('team2'), category, group_name),
            is_group_match=True,
            not_before=normalize_time(pairing.get('start_time')) or not_before,
        ))
    return matches


def _bracket_rounds(playoffs):
    """Flatten a single bracket or an upper/lower/grand-final set into (round, matches)."""
    if not playoffs:
        return []
    if any(key in playoffs for key in BRACKET_SECTIONS):
        rounds = []
        for section in BRACKET_SECTIONS:
            rounds.extend((playoffs.get(section) or {}).items())
        return rounds
    return list(playoffs.items())


def build_playoff_matches(category, playoffs, group_match_ids, not_before=None):
    prefix = _id_fragment(category)
    matches = []
    for round_name, round_matches in _bracket_rounds(playoffs):
        for i, data in enumerate(round_matches):
            p1 = data.get('team1_placeholder', '')
            p2 = data.get('team2_placeholder', '')
            dependencies = list(data.get('dependencies', []))
            dependencies += placeholder_dependencies(p1, group_match_ids)
            dependencies += placeholder_dependencies(p2, group_match_ids)

            matches.append(SchedulableMatch(
                id=data.get('id') or f"{prefix}-{_id_fragment(round_name)}-J{i + 1}",
                category=category,
                stage=round_name,
                team1=to_team(data.get('team1')) or to_team(p1) or p1,
                team2=to_team(data.get('team2')) or to_team(p2) or p2,
                dependencies=dependencies,
                is_group_match=False,
                not_before=normalize_time(data.get('start_time')) or not_before,
            ))
    return matches


def build_category_matches(category, category_data) -> List[SchedulableMatch]:
    not_before = normalize_time(category_data.get('start_time'))
    matches = []
    group_match_ids = {}
    for group in category_data.get('groups') or []:
        group_matches = build_group_matches(category, group, not_before)
        group_match_ids[group['name']] = [m.id for m in group_matches]
        matches.extend(group_matches)
    matches.extend(build_playoff_matches(category, category_data.get('playoffs'),
                                         group_match_ids, not_before))
    return matches


def build_all_matches(tournament_data) -> List[SchedulableMatch]:
    """Merge every category into one match list so cross-category conflicts are caught."""
    matches = []
    for category, category_data in (tournament_data or {}).items():
        if category.startswith('_') or not isinstance(category_data, dict):
            continue
        matches.extend(build_category_matches(category, category_data))
    return matches


def match_from_dict(data) -> SchedulableMatch:
    """Build a single match from its flat JSON form."""
    dependencies = data.get('dependencies') or []
    return SchedulableMatch(
        id=data['id'],
        category=data.get('category', ''),
        stage=data.get('stage', ''),
        team1=_team_or_placeholder(data.get('team1')),
        team2=_team_or_placeholder(data.get('team2')),
        dependencies=dependencies,
        is_group_match=data.get('is_group_match', not dependencies),
        not_before=normalize_time(data.get('not_before')),
    )


def merge_assignments(tournament_data, result):
    """
    Write 'time' and 'court' back into every match entry of tournament_data.

    Groups declared only by 'teams' get their round-robin pairings written
    out as 'matches' (with ids) so the group stage schedule is kept.
    Entries without an assignment are reset to ''.
    """
    annotated = {m['id']: m for m in result.annotate()}

    def _apply(match_data, match_id):
        entry = annotated.get(match_id)
        match_data['time'] = entry['time'] if entry else ''
        match_data['court'] = entry['court'] if entry else ''

    for category, category_data in (tournament_data or {}).items():
        if category.startswith('_') or not isinstance(category_data, dict):
            continue
        prefix = _id_fragment(category)
        for group in category_data.get('groups') or []:
            group_id = _id_fragment(group['name'])
            if group.get('matches') is None:
                group['matches'] = [
                    {'id': f"{prefix}-{group_id}-Jogo{i + 1}", 'team1': copy.deepcopy(t1), 'team2': copy.deepcopy(t2)}
                    for i, (t1, t2) in enumerate(generate_round_robin(group.get('teams', [])))
                ]
            for i, match_data in enumerate(group['matches']):
                _apply(match_data, match_data.get('id') or f"{prefix}-{group_id}-Jogo{i + 1}")
        for round_name, round_matches in _bracket_rounds(category_data.get('playoffs')):
            for i, match_data in enumerate(round_matches):
                _apply(match_data, match_data.get('id') or f"{prefix}-{_id_fragment(round_name)}-J{i + 1}")
    return tournament_data
