"""Unit tests for the ratings scheduler."""

import asyncio

import pytest

from channelhub.domain.outcomes import RatingsReport
from services.channelhub_service.scheduler import RatingsScheduler


class BrokenEngine:
    async def recompute_ratings(self) -> RatingsReport:
        raise RuntimeError("sweep failed")


class TestRatingsScheduler:
    """Tests for RatingsScheduler."""

    @pytest.mark.asyncio
    async def test_run_once_returns_report(self, platform, channel) -> None:
        scheduler = RatingsScheduler(platform.subscriptions, interval_seconds=3600)

        report = await scheduler.run_once()

        assert report is not None
        assert report.channel_ratings == {channel.id: 3.0}
        assert scheduler.runs == 1

    @pytest.mark.asyncio
    async def test_failed_sweep_is_logged_not_raised(self) -> None:
        scheduler = RatingsScheduler(BrokenEngine(), interval_seconds=3600)

        assert await scheduler.run_once() is None
        assert scheduler.failures == 1
        assert scheduler.runs == 0

    @pytest.mark.asyncio
    async def test_start_runs_initial_sweep_and_stop_cancels(self, platform, channel) -> None:
        scheduler = RatingsScheduler(
            platform.subscriptions, interval_seconds=3600, run_on_start=True
        )

        await scheduler.start()
        await asyncio.sleep(0.05)

        assert scheduler.running
        assert scheduler.runs == 1
        assert (await platform.channels.get_channel(channel.id)).star_rating == 3.0

        await scheduler.stop()
        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_loop_survives_failures(self) -> None:
        """Test that the loop keeps ticking after a failed sweep."""
        scheduler = RatingsScheduler(BrokenEngine(), interval_seconds=0.01, run_on_start=True)

        await scheduler.start()
        await asyncio.sleep(0.1)
        await scheduler.stop()

        assert scheduler.failures >= 2

    @pytest.mark.asyncio
    async def test_no_initial_sweep_when_disabled(self, platform) -> None:
        scheduler = RatingsScheduler(
            platform.subscriptions, interval_seconds=3600, run_on_start=False
        )

        await scheduler.start()
        await asyncio.sleep(0.01)
        await scheduler.stop()

        assert scheduler.runs == 0
