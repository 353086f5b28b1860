import pytest
from sqlalchemy import select

from pathgen.db.base import utcnow
from pathgen.models import LearningPath, UserMetrics
from pathgen.schemas.learning_paths import LevelIn
from pathgen.services.learning_paths import LearningPathService
from pathgen.services.metrics import (
    MetricsService,
    completion_percent,
    completion_rate,
    level_bucket,
)


def _levels(raw):
    return [LevelIn.model_validate(level) for level in raw]


async def _module_ids(service, user_id, path_id):
    path = await service.get_path(user_id, path_id)
    return [module.id for level in path.levels for module in level.modules]


@pytest.mark.parametrize(
    "completed,total,expected",
    [(0, 0, 0), (0, 4, 0), (1, 4, 25), (1, 3, 33), (2, 3, 67), (1, 8, 13), (4, 4, 100)],
)
def test_completion_percent_rounds_half_up(completed, total, expected):
    assert completion_percent(completed, total) == expected


@pytest.mark.parametrize(
    "completed,total,expected",
    [(0, 0, 0.0), (1, 3, 33.3), (2, 3, 66.7), (1, 8, 12.5), (1, 16, 6.3)],
)
def test_completion_rate_has_one_decimal(completed, total, expected):
    assert completion_rate(completed, total) == expected


@pytest.mark.parametrize(
    "name,bucket",
    [
        ("Basics", "beginner"),
        ("Beginner", "beginner"),
        ("Intermediate Patterns", "intermediate"),
        ("Advanced Topics", "advanced"),
        ("Expert Level", "advanced"),
        ("Core", "beginner"),
        ("", "beginner"),
    ],
)
def test_level_bucket(name, bucket):
    assert level_bucket(name) == bucket


@pytest.mark.asyncio
async def test_recalculate_empty_user(db_session, user):
    metrics = await MetricsService(db_session).recalculate(user.id)

    assert metrics.total_paths == 0
    assert metrics.completed_paths == 0
    assert metrics.total_modules == 0
    assert metrics.completed_modules == 0
    assert metrics.average_completion_rate == 0


@pytest.mark.asyncio
async def test_recalculate_is_idempotent(db_session, user, sample_levels):
    paths = LearningPathService(db_session)
    path = await paths.create_path(user.id, "Python", _levels(sample_levels))
    module_ids = await _module_ids(paths, user.id, path.id)
    await paths.set_module_completion(user.id, path.id, module_ids[0], True)

    service = MetricsService(db_session)
    first = await service.recalculate(user.id)
    snapshot = (
        first.total_paths,
        first.completed_paths,
        first.total_modules,
        first.completed_modules,
        first.average_completion_rate,
    )
    second = await service.recalculate(user.id)

    assert snapshot == (
        second.total_paths,
        second.completed_paths,
        second.total_modules,
        second.completed_modules,
        second.average_completion_rate,
    )
    assert snapshot == (1, 0, 4, 1, 25)


@pytest.mark.asyncio
async def test_completing_every_module_completes_the_path(db_session, user, sample_levels):
    paths = LearningPathService(db_session)
    path = await paths.create_path(user.id, "Python", _levels(sample_levels))
    for module_id in await _module_ids(paths, user.id, path.id):
        await paths.set_module_completion(user.id, path.id, module_id, True)

    metrics = await MetricsService(db_session).get_metrics(user.id)
    assert metrics.completed_paths == 1
    assert metrics.completed_modules == 4
    assert metrics.average_completion_rate == 100


@pytest.mark.asyncio
async def test_path_without_modules_is_never_completed(db_session, user):
    paths = LearningPathService(db_session)
    await paths.create_path(user.id, "Empty", _levels([{"name": "Beginner"}]))

    metrics = await MetricsService(db_session).get_metrics(user.id)
    assert metrics.total_paths == 1
    assert metrics.completed_paths == 0
    assert metrics.average_completion_rate == 0


@pytest.mark.asyncio
async def test_get_metrics_rebuilds_missing_row(db_session, user, sample_levels):
    await LearningPathService(db_session).create_path(
        user.id, "Python", _levels(sample_levels)
    )
    await db_session.delete(await db_session.get(UserMetrics, user.id))
    await db_session.commit()

    metrics = await MetricsService(db_session).get_metrics(user.id)

    assert metrics.total_paths == 1
    assert metrics.total_modules == 4
    row = await db_session.execute(select(UserMetrics).where(UserMetrics.user_id == user.id))
    assert row.scalar_one_or_none() is not None


@pytest.mark.asyncio
async def test_metrics_ignore_other_users(db_session, user, other_user, sample_levels):
    await LearningPathService(db_session).create_path(
        other_user.id, "Rust", _levels(sample_levels)
    )

    metrics = await MetricsService(db_session).recalculate(user.id)
    assert metrics.total_paths == 0
    assert metrics.total_modules == 0


@pytest.mark.asyncio
async def test_overview_includes_recent_activity_and_buckets(db_session, user):
    paths = LearningPathService(db_session)
    levels = _levels(
        [
            {"name": "Basics", "modules": [{"title": "Intro"}, {"title": "Setup"}]},
            {"name": "Core", "modules": [{"title": "Syntax"}]},
            {"name": "Advanced Topics", "modules": [{"title": "Macros"}]},
        ]
    )
    path = await paths.create_path(user.id, "Elixir", levels)
    module_ids = await _module_ids(paths, user.id, path.id)
    await paths.set_module_completion(user.id, path.id, module_ids[3], True)

    overview = await MetricsService(db_session).overview(user.id)

    assert overview.progress_by_level.beginner.total == 3
    assert overview.progress_by_level.beginner.completed == 0
    assert overview.progress_by_level.intermediate.total == 0
    assert overview.progress_by_level.advanced.total == 1
    assert overview.progress_by_level.advanced.completed == 1
    assert overview.recent_activity.last_completed_module == "Macros (Elixir)"
    assert overview.recent_activity.last_created_path == "Elixir"
    assert overview.recent_activity.completed_module_count == 1


@pytest.mark.asyncio
async def test_path_metrics_breaks_down_levels(db_session, user, sample_levels):
    paths = LearningPathService(db_session)
    path = await paths.create_path(user.id, "Python", _levels(sample_levels))
    module_ids = await _module_ids(paths, user.id, path.id)
    await paths.set_module_completion(user.id, path.id, module_ids[0], True)

    [item] = await MetricsService(db_session).path_metrics(user.id)

    assert item.topic == "Python"
    assert item.total_levels == 3
    assert item.total_modules == 4
    assert item.completion_rate == 25.0
    assert item.is_completed is False
    assert [level.level_name for level in item.levels] == [
        "Beginner",
        "Intermediate",
        "Advanced",
    ]
    assert item.levels[0].completion_rate == 50.0
    assert item.levels[1].completion_rate == 0.0


@pytest.mark.asyncio
async def test_activity_groups_completions_by_day(db_session, user, sample_levels):
    paths = LearningPathService(db_session)
    path = await paths.create_path(user.id, "Python", _levels(sample_levels))
    module_ids = await _module_ids(paths, user.id, path.id)
    await paths.set_module_completion(user.id, path.id, module_ids[0], True)
    await paths.set_module_completion(user.id, path.id, module_ids[2], True)

    feed = await MetricsService(db_session).activity(user.id, limit=1)

    assert len(feed.module_activity) == 1
    assert feed.module_activity[0].path_topic == "Python"
    assert [p.topic for p in feed.path_activity] == ["Python"]
    assert len(feed.daily_activity) == 1
    assert feed.daily_activity[0].modules_completed == 2
    assert feed.daily_activity[0].activity_date == utcnow().date()


@pytest.mark.asyncio
async def test_share_snapshot(db_session, user, sample_levels):
    await LearningPathService(db_session).create_path(
        user.id, "Python", _levels(sample_levels)
    )

    snapshot = await MetricsService(db_session).share_snapshot(user.id)
    body = snapshot.model_dump(by_alias=True)

    assert body["overallMetrics"]["totalPaths"] == 1
    assert body["overallMetrics"]["totalModules"] == 4
    assert body["pathMetrics"][0]["topic"] == "Python"
    assert "moduleActivity" in body["recentActivity"]
    assert body["sharedAt"] is not None


@pytest.mark.asyncio
async def test_path_totals_newest_first(db_session, user):
    paths = LearningPathService(db_session)
    await paths.create_path(user.id, "First", [])
    await paths.create_path(user.id, "Second", [])

    totals = await MetricsService(db_session).path_totals(user.id)
    assert [t.topic for t in totals] == ["Second", "First"]
    assert all(t.level_count == 0 and t.total_modules == 0 for t in totals)

    result = await db_session.execute(select(LearningPath.topic))
    assert sorted(result.scalars().all()) == ["First", "Second"]
