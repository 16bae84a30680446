"""
Roadmap Management CLI

Command-line interface for inspecting the template catalog and the
document store.

Commands:
- templates: List career templates (optionally filtered)
- recommend: Show the career recommended for a set of quiz answers
- roadmaps: List a user's roadmaps with their progress
- reset-db: Delete every stored document

Usage:
    python scripts/manage_roadmaps.py templates --skill Python
    python scripts/manage_roadmaps.py recommend --interest analyzing --environment remote --strength logic
    python scripts/manage_roadmaps.py roadmaps --user user_123
    python scripts/manage_roadmaps.py reset-db --yes
"""

import asyncio
import logging
import sys
from pathlib import Path

import click

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from models.career_models import AssessmentAnswers, EnvironmentOption, InterestOption, StrengthOption
from roadmap.config import DATABASE_PATH, LOG_LEVEL, TEMPLATE_CATALOG_PATH
from roadmap.progress import describe_roadmap
from roadmap.recommendation import explain_recommendation, recommend
from roadmap.template_catalog import TemplateCatalog
from services.career_service import CareerService
from storage.document_store import SqliteDocumentStore


logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("manage_roadmaps")


@click.group()
def cli():
    """Career Compass Roadmap Management Tool"""
    pass


@cli.command()
@click.option('--catalog', default=str(TEMPLATE_CATALOG_PATH), help='Path to template catalog YAML')
@click.option('--search', default=None, help='Text to match in title or description')
@click.option('--skill', 'skills', multiple=True, help='Required skill tag (repeatable)')
def templates(catalog, search, skills):
    """List career templates"""
    template_catalog = TemplateCatalog.from_yaml(catalog)
    matches = template_catalog.search(search, skills)

    click.echo(f"{len(matches)} of {len(template_catalog)} templates")
    click.echo("-" * 60)
    for key, template in matches:
        click.echo(f"{key}: {template.title}")
        click.echo(f"  {template.description}")
        click.echo(f"  Skills: {', '.join(template.skills)}")
        for index, step in enumerate(template.steps, 1):
            click.echo(f"  {index}. {step.title}")


@cli.command(name="recommend")
@click.option('--interest', type=click.Choice([o.value for o in InterestOption]), required=True)
@click.option('--environment', type=click.Choice([o.value for o in EnvironmentOption]), required=True)
@click.option('--strength', type=click.Choice([o.value for o in StrengthOption]), required=True)
def recommend_career(interest, environment, strength):
    """Show the recommendation for a set of quiz answers"""
    answers = AssessmentAnswers(interest=interest, environment=environment, strength=strength)
    career = recommend(answers)
    click.echo(f"Recommended career: {career.value} (rule: {explain_recommendation(answers)})")


@cli.command()
@click.option('--user', 'user_id', required=True, help='Owner user id')
@click.option('--db', default=str(DATABASE_PATH), help='Path to SQLite database')
def roadmaps(user_id, db):
    """List a user's roadmaps, newest first"""

    async def _roadmaps():
        store = SqliteDocumentStore(db)
        service = CareerService(store, TemplateCatalog.from_yaml(TEMPLATE_CATALOG_PATH))
        return await service.list_roadmaps(user_id)

    try:
        results = asyncio.run(_roadmaps())
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not results:
        click.echo(f"No roadmaps for user {user_id}")
        return

    for roadmap in results:
        progress = describe_roadmap(roadmap)
        click.echo(
            f"[{roadmap.status.value}] {roadmap.title} ({roadmap.id}) "
            f"{progress.completed_steps}/{progress.total_steps} steps, {progress.percent_complete}%"
        )
        for item in progress.steps:
            click.echo(f"    {item.state.value:<9} {item.step.title}")


@cli.command(name="reset-db")
@click.option('--db', default=str(DATABASE_PATH), help='Path to SQLite database')
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
def reset_db(db, yes):
    """Delete every stored assessment, roadmap, goal and profile"""
    if not yes:
        click.confirm(f"Delete all documents in {db}?", abort=True)

    try:
        asyncio.run(SqliteDocumentStore(db).reset())
    except Exception as e:
        logger.error(f"Reset failed: {e}", exc_info=True)
        sys.exit(1)

    click.echo("Reset complete.")


if __name__ == '__main__':
    cli()
