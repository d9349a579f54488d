#!/usr/bin/env python3
"""
Command-line interface for ClaimsFlow.

Usage:
    claimsflow list                      # Dashboard table of claims
    claimsflow list --view pending       # Only fnol_complete / triage claims
    claimsflow show <claim-id>           # Full claim details
    claimsflow stats                     # Dashboard counts
    claimsflow demo                      # Scripted intake, triage and assignment
    claimsflow serve                     # Run the HTTP API
"""

import argparse
import logging
import sys
from datetime import datetime
from typing import List, Optional

from dotenv import load_dotenv
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .fnol.collaborators import KeywordPhotoAnalyzer
from .fnol.schema import Claim, ClaimStatus, FNOLStep, StepInput
from .fnol.session_engine import IntakeSessionEngine
from .storage.claim_store import ClaimStore
from .triage.insights import DASHBOARD_VIEWS, dashboard_stats, fraud_risk_level, generate_insights
from .triage.routing import ADJUSTER_TYPE_LABELS
from .triage.workflow import TriageService
from .utils.errors import ClaimsFlowError

console = Console()

STATUS_STYLES = {
    ClaimStatus.FNOL_COMPLETE: "yellow",
    ClaimStatus.TRIAGE: "yellow",
    ClaimStatus.ASSIGNED: "cyan",
    ClaimStatus.INVESTIGATION: "magenta",
    ClaimStatus.ASSESSMENT: "magenta",
    ClaimStatus.SETTLEMENT: "blue",
    ClaimStatus.CLOSED: "green",
}

RISK_STYLES = {"High": "red", "Medium": "yellow", "Low": "green"}

DEMO_SCRIPT = [
    StepInput(step=FNOLStep.POLICY_VERIFICATION, text="POL-123456"),
    StepInput(step=FNOLStep.ACCIDENT_TYPE, text="collision"),
    StepInput(step=FNOLStep.ACCIDENT_DETAILS, text="Yesterday around 5:30 PM"),
    StepInput(step=FNOLStep.LOCATION, text="Main St & 5th Ave, Springfield"),
    StepInput(
        step=FNOLStep.DAMAGE_DESCRIPTION,
        text=(
            "Another car ran a red light and hit my front bumper. The hood is dented "
            "and the left headlight is broken."
        ),
    ),
]

DEMO_PHOTOS = ["uploads/front_bumper.jpg", "uploads/left_side.jpg", "uploads/damage_closeup.jpg"]


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def format_datetime(dt: Optional[datetime]) -> str:
    """Format datetime to readable format."""
    if dt is None:
        return "-"
    return dt.strftime("%Y-%m-%d %H:%M")


def truncate(text: str, max_len: int = 50) -> str:
    """Truncate text with ellipsis."""
    if not text:
        return ""
    if len(text) > max_len:
        return text[:max_len-3] + "..."
    return text


def styled_status(status: ClaimStatus) -> str:
    style = STATUS_STYLES.get(status)
    return f"[{style}]{status.value}[/{style}]" if style else status.value


# =============================================================================
# Rendering
# =============================================================================


def make_summary_table(claims: List[Claim]) -> Table:
    """Create summary table with key claim info."""
    table = Table(
        title="📋 Claims",
        box=box.ROUNDED,
        header_style="bold cyan",
    )

    table.add_column("Claim ID", style="bold")
    table.add_column("Created", style="dim")
    table.add_column("Status")
    table.add_column("Customer")
    table.add_column("Type")
    table.add_column("Adjuster")
    table.add_column("Fraud Risk")

    for claim in claims:
        adjuster = ADJUSTER_TYPE_LABELS[claim.routing.adjuster_type] if claim.routing else "-"
        if claim.scores:
            level = fraud_risk_level(claim.scores.fraud_risk)
            risk = f"[{RISK_STYLES[level]}]{level} ({claim.scores.fraud_risk})[/{RISK_STYLES[level]}]"
        else:
            risk = "[dim]unscored[/dim]"
        table.add_row(
            claim.id[:8].upper(),
            format_datetime(claim.created_at),
            styled_status(claim.status),
            truncate(claim.customer_name, 20),
            claim.accident_type.value,
            adjuster,
            risk,
        )

    return table


def show_claim_detail(claim: Claim):
    """Show detailed view of a single claim."""
    console.print()
    console.print(Panel(f"[bold cyan]Claim: {claim.id}[/bold cyan]", expand=False))

    console.print("\n[bold]📌 Basic Info[/bold]")
    console.print(f"  Status: [bold]{styled_status(claim.status)}[/bold]")
    console.print(f"  Created: {format_datetime(claim.created_at)}")
    console.print(f"  Updated: {format_datetime(claim.updated_at)}")

    console.print("\n[bold]👤 Policy Holder[/bold]")
    console.print(f"  Name: {claim.customer_name}")
    console.print(f"  Policy #: {claim.policy_number}")
    console.print(f"  Phone: {claim.customer_phone}")
    console.print(f"  Email: {claim.customer_email}")
    console.print(f"  Vehicle: {claim.vehicle_info.label() or '[dim]Unknown[/dim]'}")

    console.print("\n[bold]🚗 Incident Details[/bold]")
    console.print(f"  Type: {claim.accident_type.value}")
    console.print(f"  Date: {format_datetime(claim.accident_date)}")
    console.print(f"  Location: {claim.accident_location}")
    console.print("  Description:")
    for line in claim.description.split("\n"):
        console.print(f"    {line}")
    if claim.additional_info:
        console.print(f"  Additional Info: {claim.additional_info}")

    console.print("\n[bold]📷 Photos[/bold]")
    if claim.photos:
        for photo in claim.photos:
            console.print(f"  - {photo.category.value}: {photo.url}")
            if photo.ai_analysis:
                console.print(f"    [dim]{photo.ai_analysis}[/dim]")
    else:
        console.print("  [dim]No photos uploaded[/dim]")

    if claim.scores:
        scores = claim.scores
        level = fraud_risk_level(scores.fraud_risk)
        console.print("\n[bold]⚙️ Triage[/bold]")
        console.print(f"  Complexity: {scores.complexity}/10")
        console.print(f"  Severity: {scores.severity}/10")
        console.print(f"  Fraud Risk: [{RISK_STYLES[level]}]{scores.fraud_risk}/100 ({level})[/{RISK_STYLES[level]}]")
        console.print(f"  Customer Value: {scores.customer_value}/100")
        console.print(f"  Urgency: {scores.urgency}/10")
        if claim.routing:
            console.print(f"  Routing: {ADJUSTER_TYPE_LABELS[claim.routing.adjuster_type]}")
            console.print(f"  Reason: {claim.routing.reason}")
            console.print(f"  Straight-through: {'✅ Yes' if claim.routing.stp_eligible else '❌ No'}")
            console.print(f"  Est. Resolution: {claim.routing.estimated_resolution_days} days")
        console.print("  Insights:")
        for insight in generate_insights(claim, scores):
            console.print(f"    - {insight}")

    if claim.assigned_adjuster:
        console.print(f"\n[bold]🧑‍💼 Adjuster[/bold]: {claim.assigned_adjuster}")
        console.print(f"  Est. Completion: {format_datetime(claim.estimated_completion)}")

    console.print(f"\n[bold]🔔 Notifications[/bold] ({claim.unread_count} unread)")
    for notification in claim.notifications:
        marker = "[dim]read[/dim]" if notification.read else "[bold]new[/bold]"
        console.print(
            f"  {format_datetime(notification.timestamp)} {marker} "
            f"[{notification.type.value}] {notification.message}"
        )


def show_stats(claims: List[Claim]):
    stats = dashboard_stats(claims)
    table = Table(title="📊 Dashboard", box=box.ROUNDED, show_header=False)
    table.add_column("Metric", style="bold cyan")
    table.add_column("Count", justify="right")
    table.add_row("Total", str(stats["total"]))
    table.add_row("Pending", str(stats["pending"]))
    table.add_row("Active", str(stats["active"]))
    table.add_row("Closed", str(stats["closed"]))
    table.add_row("High Risk", f"[red]{stats['high_risk']}[/red]")
    console.print(table)


# =============================================================================
# Commands
# =============================================================================


def resolve_claim(store: ClaimStore, claim_ref: str) -> Claim:
    """Find a claim by full id or by the short id shown in listings."""
    claim = store.get(claim_ref)
    if claim is not None:
        return claim
    prefix = claim_ref.lower()
    matches = [c for c in store.list_all(limit=-1) if c.id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    return store.require(claim_ref)


def cmd_list(store: ClaimStore, args: argparse.Namespace) -> int:
    statuses = DASHBOARD_VIEWS[args.view] if args.view else None
    if args.status:
        statuses = [ClaimStatus(args.status)]
    claims = store.list_all(statuses=statuses, limit=args.limit)
    if not claims:
        console.print("[yellow]No claims found.[/yellow]")
        return 0
    console.print(make_summary_table(claims))
    console.print(f"Total: {len(claims)} claim(s)")
    return 0


def cmd_show(store: ClaimStore, args: argparse.Namespace) -> int:
    show_claim_detail(resolve_claim(store, args.claim_id))
    return 0


def cmd_stats(store: ClaimStore, args: argparse.Namespace) -> int:
    show_stats(store.list_all(limit=-1))
    return 0


def cmd_demo(store: ClaimStore, args: argparse.Namespace) -> int:
    """Run a scripted intake conversation, then triage and assign the claim."""
    engine = IntakeSessionEngine(store=store)
    triage = TriageService(store=store)

    session = engine.start_session()
    console.print(Panel("[bold cyan]FNOL intake demo[/bold cyan]", expand=False))

    for step_input in DEMO_SCRIPT:
        session = engine.submit_step_input(session.id, step_input)

    photos = [] if args.no_photos else KeywordPhotoAnalyzer().analyze_batch(DEMO_PHOTOS)
    session = engine.upload_photos(session.id, photos)
    session = engine.submit_step_input(
        session.id, StepInput(step=FNOLStep.ADDITIONAL_INFO, text="none")
    )
    session = engine.submit_step_input(session.id, StepInput(step=FNOLStep.REVIEW, text="yes"))

    for message in session.messages:
        role_color = "cyan" if message.role.value == "assistant" else "green"
        if message.role.value == "system":
            role_color = "magenta"
        console.print(f"[{role_color}]{message.role.value.upper()}[/{role_color}]: {message.content}\n")

    triage.triage_claim(session.claim_id)
    triage.assign(session.claim_id)
    show_claim_detail(store.require(session.claim_id))
    return 0


def cmd_serve(store: ClaimStore, args: argparse.Namespace) -> int:
    from .api.app import main as serve
    serve()
    return 0


COMMANDS = {
    "list": cmd_list,
    "show": cmd_show,
    "stats": cmd_stats,
    "demo": cmd_demo,
    "serve": cmd_serve,
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="claimsflow",
        description="Motor claim intake and triage",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        '--db',
        type=str,
        help='Path to the claims database (default: CLAIMSFLOW_DATABASE_PATH or data/claims.db)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    sub = parser.add_subparsers(dest="command", required=True)

    list_parser = sub.add_parser("list", help="List claims")
    list_parser.add_argument('--view', choices=sorted(DASHBOARD_VIEWS), help='Dashboard view')
    list_parser.add_argument('--status', choices=[s.value for s in ClaimStatus], help='Filter by status')
    list_parser.add_argument('--limit', type=int, default=50, help='Max claims to show')

    show_parser = sub.add_parser("show", help="Show one claim")
    show_parser.add_argument('claim_id', help='Claim id or the short id shown by list')

    sub.add_parser("stats", help="Dashboard counts")

    demo_parser = sub.add_parser("demo", help="Scripted intake, triage and assignment")
    demo_parser.add_argument('--no-photos', action='store_true', help='Skip the photo step')

    sub.add_parser("serve", help="Run the HTTP API")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    load_dotenv()
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        store = ClaimStore(db_path=args.db) if args.db else ClaimStore()
        return COMMANDS[args.command](store, args)
    except ClaimsFlowError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
