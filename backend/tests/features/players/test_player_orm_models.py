from datetime import datetime, timedelta, timezone

from app.core.enums import Ruleset
from app.features.players.orm_models import PlayerORM

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def test_rank_accessors_per_mode():
    """Test per-mode rank columns are reached through the ruleset"""
    player = PlayerORM(id=1, osu_id=100)

    player.set_rank(Ruleset.CATCH, 321)

    assert player.rank_catch == 321
    assert player.rank_for(Ruleset.CATCH) == 321
    assert player.rank_for(Ruleset.STANDARD) is None


def test_seed_earliest_known_ranks_keeps_existing_values():
    """Test seeding only fills modes without an earliest rank"""
    earlier = datetime(2020, 1, 1, tzinfo=timezone.utc)
    player = PlayerORM(
        id=1,
        osu_id=100,
        rank_standard=5000,
        rank_taiko=800,
        earliest_taiko_global_rank=300,
        earliest_taiko_global_rank_date=earlier,
    )

    player.seed_earliest_known_ranks(NOW)

    assert player.earliest_osu_global_rank == 5000
    assert player.earliest_osu_global_rank_date == NOW
    assert player.earliest_taiko_global_rank == 300
    assert player.earliest_taiko_global_rank_date == earlier
    # Unranked modes are still stamped so the player is not picked up again
    assert player.earliest_mania_global_rank is None
    assert player.earliest_mania_global_rank_date == NOW


def test_is_outdated():
    """Test staleness against a cutoff"""
    cutoff = NOW - timedelta(days=14)

    assert PlayerORM(id=1, osu_id=100).is_outdated(cutoff) is True
    assert PlayerORM(id=1, osu_id=100, updated=cutoff - timedelta(days=1)).is_outdated(
        cutoff
    )
    assert not PlayerORM(id=1, osu_id=100, updated=NOW).is_outdated(cutoff)
    # Naive timestamps are read as UTC
    assert not PlayerORM(
        id=1, osu_id=100, updated=NOW.replace(tzinfo=None)
    ).is_outdated(cutoff)
