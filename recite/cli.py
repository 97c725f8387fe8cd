"""
Recitation planner CLI.

Usage:
    python -m recite.cli --passages passages.jsonl versions
    python -m recite.cli --passages passages.jsonl containers --version KRV
    python -m recite.cli --passages passages.jsonl validate "JHN 3:1" "JHN 3:21" --target 2025-03-01
    python -m recite.cli --passages passages.jsonl --db plans.jsonl create "JHN 3:1" "JHN 3:21" --target 2025-03-01 --title "John 3"
    python -m recite.cli --db plans.jsonl plans
    python -m recite.cli --passages passages.jsonl --db plans.jsonl show <plan_id>
    python -m recite.cli --passages passages.jsonl --db plans.jsonl today
    python -m recite.cli --db plans.jsonl complete <plan_id> [--date 2025-02-20] [--undo]
    python -m recite.cli --passages passages.jsonl --db plans.jsonl test <plan_id> [--cumulative]
    python -m recite.cli --db plans.jsonl stats <plan_id>
    python -m recite.cli diff "the lord is my shepherd" "the lord my shepherd" --mode word
"""

import argparse
import re
import sys
from datetime import date

from recite.alignment import diff_texts
from recite.analytics import plan_statistics, weakest_passages
from recite.errors import PlanValidationError, RecitationError
from recite.kinds import RecitationScope, TokenMode
from recite.models import PassageKey
from recite.plan import (
    allocation_passages,
    allocation_reference,
    check_plan,
    create_plan,
    days_remaining,
    plan_progress,
    plan_summary,
    todays_allocations,
)
from recite.repository import InMemoryPassageRepository
from recite.session import RecitationTester, render_diff, run_recitation_session
from recite.storage import PlanStore
from recite.validator import MAX_DAILY_LOAD

# "JHN 3:16" / "1CO 13:4"
_REFERENCE_RE = re.compile(r'^\s*(\S+)\s+(\d+):(\d+)\s*$')


def parse_reference(text: str, version_code: str) -> PassageKey:
    """Parse 'CODE chapter:unit' into a PassageKey."""
    m = _REFERENCE_RE.match(text)
    if not m:
        raise argparse.ArgumentTypeError(
            f"Bad reference {text!r}; expected 'CODE sub_unit:unit', e.g. 'JHN 3:16'")
    return PassageKey(m.group(1).upper(), int(m.group(2)), int(m.group(3)), version_code)


def _parse_date(text: str) -> date:
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Bad date {text!r}; expected YYYY-MM-DD")


def _repository(args) -> InMemoryPassageRepository:
    return InMemoryPassageRepository.from_jsonl(args.passages, span_sub_units=args.span_sub_units)


def cmd_versions(args):
    """List versions in the catalog."""
    repo = _repository(args)
    versions = repo.list_versions()
    if not versions:
        print("No versions in the catalog.")
        return
    for v in versions:
        lang = f" [{v.language}]" if v.language else ""
        print(f"  {v.code}: {v.name}{lang}")


def cmd_containers(args):
    """List containers for a version."""
    repo = _repository(args)
    containers = repo.list_containers(args.version)
    if not containers:
        print(f"No containers for version {args.version}.")
        return
    for c in containers:
        print(f"  {c.order:>3}. {c.code:<5} {c.name} ({c.sub_units} sub-unit(s))")


def cmd_validate(args):
    """Validate a candidate plan without saving it."""
    repo = _repository(args)
    verdict = check_plan(
        repo,
        parse_reference(args.start, args.version),
        parse_reference(args.end, args.version),
        args.target,
        start_date=args.start_date,
        max_daily_load=args.max_daily_load,
    )
    if verdict.is_valid:
        print(f"Valid: {len(verdict.passages)} passage(s) over {verdict.day_count} day(s) "
              f"({verdict.average_per_day:.1f}/day)")
    else:
        print(f"Invalid ({verdict.kind.value}): {verdict.message}")
        sys.exit(1)


def cmd_create(args):
    """Create and save a plan."""
    repo = _repository(args)
    store = PlanStore(args.db)
    plan = create_plan(
        store, repo,
        title=args.title,
        start_key=parse_reference(args.start, args.version),
        end_key=parse_reference(args.end, args.version),
        target_date=args.target,
        start_date=args.start_date,
        max_daily_load=args.max_daily_load,
    )
    allocations = store.allocations(plan.plan_id)
    print(f"Created plan {plan.plan_id}: {plan.title}")
    print(f"  {len(allocations)} day(s), {plan.start_date} -> {plan.target_date}")
    for a in allocations[:10]:
        print(f"    {a.date}  {len(a.passage_ids)} passage(s)  {allocation_reference(repo, a)}")
    if len(allocations) > 10:
        print(f"    ... and {len(allocations) - 10} more")


def cmd_plans(args):
    """List saved plans."""
    store = PlanStore(args.db)
    plans = store.all_plans()
    if not plans:
        print("No plans yet.")
        return
    for p in plans:
        print(f"  {p.plan_id}  {p.title}")
        print(f"     {p.start_date} -> {p.target_date}  "
              f"progress={plan_progress(store, p.plan_id) * 100:.0f}%  "
              f"days_left={days_remaining(p)}")


def cmd_show(args):
    """Show one plan with its allocations."""
    store = PlanStore(args.db)
    summary = plan_summary(store, _repository(args), args.plan_id)
    print(f"\nPlan: {summary['title']} ({summary['plan_id']})")
    print(f"  Range:     {summary['range']} ({summary['version_code']})")
    print(f"  Dates:     {summary['start_date']} -> {summary['target_date']}")
    print(f"  Passages:  {summary['passage_count']}")
    print(f"  Progress:  {summary['progress'] * 100:.1f}%  "
          f"({summary['days_remaining']} day(s) remaining)")
    print("\n  Schedule:")
    for a in summary['allocations']:
        mark = 'x' if a['completed'] else ' '
        print(f"    [{mark}] {a['date']}  {a['reference']}")


def cmd_today(args):
    """Show today's portion from every plan."""
    store = PlanStore(args.db)
    repo = _repository(args)
    found = todays_allocations(store)
    if not found:
        print("Nothing scheduled for today.")
        return
    for a in found:
        plan = store.require_plan(a.plan_id)
        done = " (done)" if store.is_day_completed(a.plan_id, a.date) else ""
        print(f"\n{plan.title}{done}: {allocation_reference(repo, a)}")
        for passage in allocation_passages(repo, a):
            print(f"  {passage.unit}. {passage.text}")


def cmd_complete(args):
    """Mark a day complete (or incomplete with --undo)."""
    store = PlanStore(args.db)
    day = args.date or date.today()
    if args.undo:
        store.mark_day_incomplete(args.plan_id, day)
        print(f"Marked {day} incomplete.")
    else:
        store.mark_day_completed(args.plan_id, day)
        print(f"Marked {day} complete.")


def cmd_test(args):
    """Run an interactive recitation test."""
    store = PlanStore(args.db)
    store.require_plan(args.plan_id)
    scope = RecitationScope.CUMULATIVE if args.cumulative else RecitationScope.DAILY
    tester = RecitationTester(store, _repository(args))
    run_recitation_session(tester, args.plan_id, scope)


def cmd_stats(args):
    """Show test statistics for a plan."""
    store = PlanStore(args.db)
    store.require_plan(args.plan_id)
    results = store.results_for_plan(args.plan_id)
    stats = plan_statistics(results)
    print(f"\nTests: {stats['total_tests']} "
          f"(daily={stats['daily_tests']}, cumulative={stats['cumulative_tests']})")
    print(f"  Average: {stats['average_pct']}  Best: {stats['best_pct']}  "
          f"Worst: {stats['worst_pct']}")
    weakest = weakest_passages(results)
    if weakest:
        print("  Most missed:")
        for pid, n in weakest:
            print(f"    {pid}: {n}")


def cmd_diff(args):
    """Diff two texts and print the merged alignment."""
    units = diff_texts(args.reference, args.attempt, args.mode)
    print(render_diff(units))
    for u in units:
        print(f"  {u.index:>4}  {u.kind.value:<8} {u.text!r}")


def main():
    parser = argparse.ArgumentParser(
        description="Passage recitation planner -- daily quotas and recall scoring",
        prog="python -m recite.cli",
    )
    parser.add_argument(
        '--passages', default='passages.jsonl',
        help="Path to passage catalog JSONL (default: passages.jsonl)",
    )
    parser.add_argument(
        '--db', default='recite_plans.jsonl',
        help="Path to plan storage JSONL file (default: recite_plans.jsonl)",
    )
    parser.add_argument(
        '--span-sub-units', action='store_true',
        help="Allow ranges that cross sub-unit/container boundaries",
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('versions', help='List catalog versions')

    containers_parser = subparsers.add_parser('containers', help='List containers of a version')
    containers_parser.add_argument('--version', default='KRV')

    for name, help_text in (('validate', 'Validate a plan without saving'),
                            ('create', 'Create and save a plan')):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument('start', help="First passage, e.g. 'JHN 3:1'")
        p.add_argument('end', help="Last passage, e.g. 'JHN 3:21'")
        p.add_argument('--version', default='KRV')
        p.add_argument('--target', type=_parse_date, required=True, help='Target date YYYY-MM-DD')
        p.add_argument('--start-date', type=_parse_date, default=None,
                       help='Plan start date (default: today)')
        p.add_argument('--max-daily-load', type=float, default=MAX_DAILY_LOAD)
        if name == 'create':
            p.add_argument('--title', default='Recitation plan')

    subparsers.add_parser('plans', help='List plans')

    show_parser = subparsers.add_parser('show', help='Show a plan')
    show_parser.add_argument('plan_id')

    subparsers.add_parser('today', help="Show today's portions")

    complete_parser = subparsers.add_parser('complete', help='Mark a day complete')
    complete_parser.add_argument('plan_id')
    complete_parser.add_argument('--date', type=_parse_date, default=None)
    complete_parser.add_argument('--undo', action='store_true')

    test_parser = subparsers.add_parser('test', help='Run a recitation test')
    test_parser.add_argument('plan_id')
    test_parser.add_argument('--cumulative', action='store_true',
                             help='Test everything scheduled up to today')

    stats_parser = subparsers.add_parser('stats', help='Show test statistics')
    stats_parser.add_argument('plan_id')

    diff_parser = subparsers.add_parser('diff', help='Diff a reference against an attempt')
    diff_parser.add_argument('reference')
    diff_parser.add_argument('attempt')
    diff_parser.add_argument('--mode', choices=[m.value for m in TokenMode],
                             default=TokenMode.CHAR.value)

    args = parser.parse_args()

    commands = {
        'versions': cmd_versions,
        'containers': cmd_containers,
        'validate': cmd_validate,
        'create': cmd_create,
        'plans': cmd_plans,
        'show': cmd_show,
        'today': cmd_today,
        'complete': cmd_complete,
        'test': cmd_test,
        'stats': cmd_stats,
        'diff': cmd_diff,
    }

    if args.command not in commands:
        parser.print_help()
        sys.exit(1)

    try:
        commands[args.command](args)
    except argparse.ArgumentTypeError as e:
        print(str(e))
        sys.exit(2)
    except PlanValidationError as e:
        print(f"Plan rejected ({e.verdict.kind.value}): {e.message}")
        sys.exit(1)
    except RecitationError as e:
        print(str(e))
        sys.exit(1)


if __name__ == '__main__':
    main()
