"""Parse a task document locally and optionally import it into a project."""

import argparse
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from construx.ingestion.errors import TaskImportError
from construx.ingestion.parsers import extract_input
from construx.ingestion.pipeline import import_tasks
from construx.ingestion.readers import read_document


def preview(path: Path) -> int:
    """Print the parsed records of *path* as JSON; return the record count."""
    document = read_document(path.read_bytes(), path.name)
    extracted = extract_input(document)

    records = [
        {
            "title": r.title,
            "priority": r.priority.value,
            "status": r.status.value,
            "description": r.description,
            "due_date": r.due_date.isoformat() if r.due_date else None,
            "assignee_email": r.assignee_email,
        }
        for r in extracted.records
    ]
    print(json.dumps(records, indent=2))
    if extracted.rejected:
        print(f"{extracted.rejected} record(s) rejected", file=sys.stderr)
    return len(records)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("path", type=Path, help="Task document (.md, .txt, .pdf, .xlsx, .xls, .csv)")
    parser.add_argument("--project-id", default=None, help="Project to import the tasks into")
    parser.add_argument("--created-by", default=None, help="User id recorded as task creator")
    parser.add_argument(
        "--commit",
        action="store_true",
        help="Insert the tasks into Supabase (default: print them only)",
    )
    args = parser.parse_args(argv)

    if not args.path.is_file():
        print(f"File {args.path} not found.", file=sys.stderr)
        return 1

    try:
        if not args.commit:
            count = preview(args.path)
            print(f"\nParsed {count} task(s) from {args.path.name}.", file=sys.stderr)
            return 0 if count else 2

        if not args.project_id:
            parser.error("--commit requires --project-id")

        result = import_tasks(
            args.path.read_bytes(),
            args.path.name,
            args.project_id,
            created_by=args.created_by,
        )
    except TaskImportError as e:
        print(f"ERROR {args.path.name}: {e}", file=sys.stderr)
        return 2

    print(f"Done! Created {result.tasks_created} tasks in project {result.project_id}.")
    for email in result.unresolved_assignees:
        print(f"  unassigned: no user with email {email}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
