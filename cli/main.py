#!/usr/bin/env python3
"""
Outreach Sync CLI - structural maintenance from the terminal.

    outreach-sync gaps
    outreach-sync fix-gaps
    outreach-sync sync --preview
    outreach-sync duplicates
    outreach-sync insert ME-0003 "Acme Pty" --discipline MEC
    outreach-sync add "Acme Pty" --discipline MEC
    outreach-sync merge ME-0010 ME-0014 --keep contact-ME-0010-12
"""

import argparse
import sys

from outreach import config
from outreach.errors import OutreachError, PartialApplyError
from outreach.observability import configure_logging
from outreach.operations import CompanyPayload, MergeStrategy
from outreach.service import OutreachService, get_service


def print_header(text: str):
    """Print a section header."""
    print(f"\n{'═' * 50}")
    print(f"  {text}")
    print(f"{'═' * 50}")


def print_table(headers: list, rows: list, widths: list = None):
    """Print a simple table."""
    if not widths:
        widths = [max(len(str(row[i])) for row in [headers] + rows) for i in range(len(headers))]

    header_str = " │ ".join(str(h).ljust(w) for h, w in zip(headers, widths))
    print(header_str)
    print("─" * len(header_str))

    for row in rows:
        print(" │ ".join(str(c)[:w].ljust(w) for c, w in zip(row, widths)))


def print_changes(changes: list, limit: int = 50):
    if not changes:
        print("No id changes.")
        return
    print_table(["Old ID", "New ID"], [list(c) for c in changes[:limit]])
    if len(changes) > limit:
        print(f"... and {len(changes) - limit} more")


def _payload(args) -> CompanyPayload:
    return CompanyPayload(
        name=args.name,
        discipline=args.discipline,
        priority=args.priority,
        sponsorship_tier=args.tier,
        contact_name=args.contact,
        email=args.email,
        phone=args.phone,
        remarks=args.remarks,
        assigned_to=args.assign,
    )


def cmd_gaps(service: OutreachService, args):
    scan = service.scan_gaps()
    print_header("ID GAPS")
    print(f"  Companies: {scan.total_companies}  Range: {scan.min_id or '-'} .. {scan.max_id or '-'}")
    if not scan.missing_ids:
        print("  No gaps.")
        return
    print(f"  Missing ({scan.count}): {', '.join(scan.missing_ids)}")


def cmd_fix_gaps(service: OutreachService, args):
    result = service.repair_gaps()
    print_header(f"RENUMBERED {result.total_renumbered} COMPANIES")
    print_changes(result.changes)
    if result.collisions:
        print(f"\n⚠️  Tracker-only ids now colliding: {', '.join(result.collisions)}")
        print("   Run 'sync' to resolve them.")


def cmd_sync(service: OutreachService, args):
    result = service.reconcile(preview=args.preview)
    print_header("SYNC PREVIEW" if result.preview else "SYNC")
    print_table(["Stat", "Count"], [[k, v] for k, v in result.stats.items()])
    for section, items in result.details.items():
        if items:
            print(f"\n{section} ({len(items)})")
            for item in items[:20]:
                print("  " + ", ".join(f"{k}={v}" for k, v in item.items()))


def cmd_duplicates(service: OutreachService, args):
    groups = service.scan_duplicates()
    print_header(f"DUPLICATES ({len(groups)})")
    if not groups:
        print("No duplicate names.")
        return
    for group in groups:
        print(f"\n{group.name}")
        rows = []
        for candidate in group.companies:
            rec = candidate.record
            keys = ", ".join(c.key for c in candidate.contacts) or "-"
            rows.append([rec.id, rec.row_number, rec.status or "-", rec.assigned_to or "-", keys])
        print_table(["ID", "Row", "Status", "PIC", "Contacts"], rows, [9, 5, 14, 14, 60])


def cmd_insert(service: OutreachService, args):
    result = service.insert_company(args.id, _payload(args))
    print(f"✓ Inserted {args.name} as {result.inserted_id} ({result.companies_shifted} shifted)")
    print_changes(result.changes)


def cmd_add(service: OutreachService, args):
    result = service.add_company(_payload(args))
    print(f"✓ Added {result.name} as {result.company_id}")


def cmd_merge(service: OutreachService, args):
    strategy = MergeStrategy(name=args.name, status=args.status, assigned_to=args.assign, remarks=args.remarks)
    result = service.merge_companies(args.survivor, args.victim, strategy, args.keep)
    print(f"✓ Merged {result.victim_id} into {result.survivor_id} (now {result.final_survivor_id})")
    print(f"  Contacts kept: {result.contacts_updated}  removed: {result.contacts_removed}")
    print(f"  Companies re-sequenced: {result.shifted_count}")


def _add_company_args(p: argparse.ArgumentParser):
    p.add_argument("name", help="Company name")
    p.add_argument("--discipline", default="")
    p.add_argument("--priority", default="")
    p.add_argument("--tier", default="", help="Target sponsorship tier")
    p.add_argument("--contact", default="", help="First contact name")
    p.add_argument("--email", default="")
    p.add_argument("--phone", default="")
    p.add_argument("--remarks", default="")
    p.add_argument("--assign", default="", help="Assigned PIC")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="outreach-sync", description="Outreach spreadsheet maintenance")
    p.add_argument("--log-level", default=config.LOG_LEVEL)
    p.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("gaps", help="List missing ids").set_defaults(func=cmd_gaps)
    sub.add_parser("fix-gaps", help="Renumber ids densely").set_defaults(func=cmd_fix_gaps)

    s = sub.add_parser("sync", help="Reconcile the tracker with the company database")
    s.add_argument("--preview", action="store_true", help="Compute the plan without writing")
    s.set_defaults(func=cmd_sync)

    sub.add_parser("duplicates", help="List tracker rows sharing a name").set_defaults(func=cmd_duplicates)

    i = sub.add_parser("insert", help="Insert a company at an id, shifting later ids")
    i.add_argument("id", help="Target id, e.g. ME-0003")
    _add_company_args(i)
    i.set_defaults(func=cmd_insert)

    a = sub.add_parser("add", help="Append a company at the next id")
    _add_company_args(a)
    a.set_defaults(func=cmd_add)

    m = sub.add_parser("merge", help="Merge victim into survivor")
    m.add_argument("survivor")
    m.add_argument("victim")
    m.add_argument("--name", default=None, help="Company name to keep")
    m.add_argument("--status", default=None)
    m.add_argument("--assign", default=None)
    m.add_argument("--remarks", default=None)
    m.add_argument(
        "--keep",
        action="append",
        default=None,
        metavar="KEY",
        help="Contact selection key to keep (repeatable; default keeps all)",
    )
    m.set_defaults(func=cmd_merge)
    return p


def main(argv: list[str] | None = None, service: OutreachService | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level, json_format=args.json_logs)

    try:
        args.func(service or get_service(), args)
    except PartialApplyError as e:
        print(f"✗ {e.message}", file=sys.stderr)
        print(f"  Completed steps: {', '.join(e.completed_steps) or 'none'}", file=sys.stderr)
        print("  Re-run 'fix-gaps' and 'sync' to converge.", file=sys.stderr)
        return 2
    except OutreachError as e:
        print(f"✗ {e.message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
