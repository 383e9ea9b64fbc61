"""Seed the default rubric (version 1, active) and a sample ACA script.

Idempotent: an existing active rubric or active ACA script is left alone.

    python -m app.scripts.seed
"""

import asyncio

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.core.default_rubric import (
    DEFAULT_CATEGORIES,
    DEFAULT_RED_FLAGS,
    DEFAULT_RUBRIC_DESCRIPTION,
    DEFAULT_RUBRIC_NAME,
)
from app.repositories.rubric_repository import RubricRepository
from app.repositories.script_repository import ScriptRepository
from app.schemas.common import ProductType
from app.schemas.rubric import CategoryIn, RedFlagIn
from app.schemas.script import ScriptCreate
from app.services.rubric_config_store import RubricConfigStore
from app.services.script_service import ScriptService
from app.services.version_activator import VersionActivator

SAMPLE_ACA_SCRIPT = """\
OPENING
Hi, this is [Agent Name] with First Health Enrollment, a licensed agency in
[State]. I'm calling about the health coverage request you submitted. This
call is recorded for quality and compliance. Is now still a good time?

DISCOVERY
What zip code are you in? How will you file taxes this year, and how many
people are in your household? What's your estimated yearly household
income? Any pre-existing conditions or prescriptions? You CANNOT be denied
coverage for a pre-existing condition. Any doctors you want to keep?

PRESENTATION
Based on your income you qualify for a subsidy of [amount] per month. Your
plan includes [copay] doctor visits, free preventative care, and CareConnect
dental and vision. CareConnect is NOT health insurance.

CLOSING
I'll send the consent forms by text now. You'll get an email that says
THIS IS NOT HEALTH INSURANCE for the CareConnect benefit. Please don't pick
another plan on healthcare.gov; rogue agents may call you. I'm transferring
you to verification.
"""


async def seed_rubric(session: AsyncSession) -> None:
    rubric_repo = RubricRepository(session)
    store = RubricConfigStore(rubric_repo)
    if await store.get_active() is not None:
        print("Active rubric already present; skipping rubric seed")
        return

    draft = await store.create(
        name=DEFAULT_RUBRIC_NAME,
        description=DEFAULT_RUBRIC_DESCRIPTION,
        categories=[CategoryIn(**c) for c in DEFAULT_CATEGORIES],
        red_flags=[RedFlagIn(**f) for f in DEFAULT_RED_FLAGS],
    )
    activated = await VersionActivator(rubric_repo).activate(draft.id)
    print(
        f"Seeded '{activated.name}' as version {activated.version} "
        f"({len(activated.categories)} categories, {len(activated.red_flags)} red flags)"
    )


async def seed_script(session: AsyncSession) -> None:
    service = ScriptService(ScriptRepository(session))
    if await service.get_active(ProductType.aca.value) is not None:
        print("Active ACA script already present; skipping script seed")
        return

    script = await service.upload(
        ScriptCreate(
            name="ACA Enrollment Script 2.0",
            product_type=ProductType.aca,
            content=SAMPLE_ACA_SCRIPT,
            file_name="aca_script_2_0.txt",
            version_notes="Sample script",
            activate=True,
        )
    )
    print(f"Seeded ACA script {script.id} (v{script.version})")


async def seed():
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with session_maker() as session:
        await seed_rubric(session)
        await seed_script(session)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
