import json
from typing import List, Optional

import typer
from sqlalchemy.orm import Session

from calltraffic.core.config import settings
from calltraffic.core.database import Base, SessionLocal, engine
from calltraffic.core.errors import TrafficError
from calltraffic.core.logging import configure_logging
from calltraffic.models import Owner, OwnerNumber
from calltraffic.models.enums import OwnerRole, Period
from calltraffic.services.aggregation import aggregate as aggregate_owner
from calltraffic.services.generation import TrafficGenerator, resolve_target_owner_ids
from calltraffic.services.profile import resolve_profile
from calltraffic.services.store import SqlEventStore

app = typer.Typer()


@app.command()
def create_owner(name: str, number: Optional[str] = None, role: OwnerRole = OwnerRole.CLIENT):
    Base.metadata.create_all(bind=engine)
    db: Session = SessionLocal()
    try:
        owner = Owner(name=name, role=role)
        if number:
            owner.numbers.append(OwnerNumber(number=number))
        db.add(owner)
        db.commit()
        typer.echo(f"Owner created with id {owner.id}")
    finally:
        db.close()


@app.command()
def regenerate(
    owner_id: List[int] = typer.Option([], "--owner-id", "-o"),
    days: int = typer.Option(settings.demo_window_days),
    seed: Optional[int] = None,
    profile: Optional[str] = typer.Option(settings.traffic_profile_path, help="JSON traffic profile"),
    workers: int = typer.Option(settings.regeneration_max_workers),
):
    configure_logging(settings.log_level)
    store = SqlEventStore(SessionLocal)
    try:
        targets = resolve_target_owner_ids(store, owner_id, settings.demo_owner_ids)
        generator = TrafficGenerator(store, resolve_profile(profile), seed=seed, max_workers=workers)
        report = generator.regenerate(targets, days)
    except TrafficError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    for owner in report.owners:
        if owner.ok:
            typer.echo(f"owner {owner.owner_id}: {owner.events_inserted} calls over {owner.days_seeded} days")
        else:
            typer.echo(f"owner {owner.owner_id}: FAILED ({owner.error})", err=True)
    if report.failed:
        raise typer.Exit(code=1)


@app.command()
def aggregate(owner_id: int, period: Period = Period.WEEK):
    store = SqlEventStore(SessionLocal)
    try:
        result = aggregate_owner(owner_id, period, store)
    except TrafficError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    app()
