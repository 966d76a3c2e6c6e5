# Command line entry point: schedule every category of a tournament and print the result

import argparse
import json
import logging
import os
import sys
from scheduling.config import load_settings, load_tournament
from scheduling.errors import SchedulingConfigError
from scheduling.service import run_schedule

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_CONFIG_ERROR = 2


def print_schedule(result, out=None):
    out = out or sys.stdout
    print("--- Schedule ---", file=out)
    for court_schedule in result.get_schedule_output():
        print(f"\nCourt: {court_schedule['court_name']}", file=out)
        if court_schedule['matches']:
            for match in court_schedule['matches']:
                team1, team2 = match['teams']
                print(f"  {match['start_time']} - {match['end_time']}: {team1} vs {team2} "
                      f"[{match['category']} / {match['stage']}]", file=out)
        else:
            print("  No matches scheduled.", file=out)


def print_log(result, out=None):
    out = out or sys.stdout
    if not result.log:
        return
    print("\n--- Scheduling log ---", file=out)
    for entry in result.log:
        checked = f" (checked until {entry.checked_at_time.label})" if entry.checked_at_time else ""
        print(f"{entry.match_id}: {entry.team1} vs {entry.team2} [{entry.category} / {entry.stage}]{checked}", file=out)
        for reason in entry.reasons:
            print(f"  - {reason}", file=out)


def main(argv=None):
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    data_dir = os.path.join(base_dir, 'data')

    parser = argparse.ArgumentParser(description='Schedule tournament matches on courts')
    parser.add_argument('--settings', default=os.path.join(data_dir, 'settings.yaml'),
                        help='Global settings YAML (courts, times, match duration)')
    parser.add_argument('--tournament', default=os.path.join(data_dir, 'tournament.yaml'),
                        help='Tournament YAML with groups and playoffs per category')
    parser.add_argument('--courts', default=None,
                        help='Optional courts CSV (court_name,start_time,end_time,priority)')
    parser.add_argument('--json', action='store_true', help='Print the result as JSON')
    parser.add_argument('--verbose', '-v', action='store_true', help='Log every placement decision')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        settings = load_settings(args.settings, args.courts)
        tournament_data = load_tournament(args.tournament)
        result = run_schedule(settings, tournament_data)
    except SchedulingConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        print_schedule(result)
        print_log(result)

    return EXIT_PARTIAL if result.is_partial else EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
