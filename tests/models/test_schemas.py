"""Tests for scrape and metadata schemas."""

import datetime as dt

import pytest
from pydantic import ValidationError

from src.models.db import ReleaseSeason
from src.models.schemas.anime import AnimeInfo, AnimePayload, SiteLinkPayload
from src.models.schemas.scrape import LibraryScrapeResult


def test_site_link_payload_normalizes_known_sites() -> None:
    """Known site names get their canonical casing and numeric IDs become text."""
    link = SiteLinkPayload(site_id=123, site_type="bangumi")

    assert link.key() == ("Bangumi", "123")


def test_site_link_payload_keeps_unknown_sites() -> None:
    """Unknown site tags are preserved so they can be skipped later."""
    link = SiteLinkPayload(site_id="x", site_type="Unknown")

    assert link.site_type == "Unknown"


def test_anime_payload_requires_name() -> None:
    """An empty name is rejected."""
    with pytest.raises(ValidationError):
        AnimePayload(name="")


def test_anime_payload_columns_exclude_sites() -> None:
    """Only column values are handed to the ORM."""
    payload = AnimePayload(
        name="Show A",
        date="2024-04-06",
        release_season="SPRING",
        sites=[{"site_id": "1", "site_type": "Bangumi"}],
    )

    columns = payload.columns()

    assert "sites" not in columns
    assert columns["date"] == dt.date(2024, 4, 6)
    assert columns["release_season"] == ReleaseSeason.SPRING


def test_anime_info_columns_skip_unknown_values() -> None:
    """Fields a site does not know are not written."""
    assert AnimeInfo(episodes=12, nsfw=False).columns() == {
        "episodes": 12,
        "nsfw": False,
    }


def test_scrape_result_from_json() -> None:
    """A scrape result parses from the scraper's JSON output."""
    result = LibraryScrapeResult.model_validate_json(
        """
        {
            "new_anime": [
                {
                    "anime": {
                        "name": "Show A",
                        "sites": [{"site_id": 123, "site_type": "Bangumi"}]
                    },
                    "files": [{"id": 1}, {"id": 2}]
                }
            ],
            "existing_anime": [{"anime": {"id": 7}, "files": [{"id": 3}]}]
        }
        """
    )

    assert result.new_anime[0].file_ids() == [1, 2]
    assert result.new_anime[0].anime.sites[0].key() == ("Bangumi", "123")
    assert result.existing_anime[0].file_ids() == [3]


def test_release_season_from_month() -> None:
    """Months map onto broadcast seasons."""
    assert [ReleaseSeason.from_month(m) for m in (1, 4, 7, 10, 12)] == [
        ReleaseSeason.WINTER,
        ReleaseSeason.SPRING,
        ReleaseSeason.SUMMER,
        ReleaseSeason.FALL,
        ReleaseSeason.WINTER,
    ]
