"""Test artist album cleanup"""

from datetime import date

from remotify.core.albums import clean_up_artist_albums, release_date_key
from remotify.models.entities import Album


def album(album_id, name, release_date):
    return Album(id=album_id, name=name, release_date=release_date)


class TestCleanUpArtistAlbums:
    """Test sorting and de-duplication"""

    def test_keeps_latest_release_per_name_in_ascending_order(self):
        albums = [album("1", "X", "2020"), album("2", "X", "2021"), album("3", "Y", "2019")]

        result = clean_up_artist_albums(albums)

        assert [(a.name, a.release_date) for a in result] == [("Y", "2019"), ("X", "2021")]

    def test_sorts_unordered_input(self):
        albums = [
            album("1", "C", "2022-05-01"),
            album("2", "A", "2001-01-01"),
            album("3", "B", "2010-07"),
        ]
        assert [a.name for a in clean_up_artist_albums(albums)] == ["A", "B", "C"]

    def test_deluxe_duplicate_with_full_date(self):
        albums = [album("orig", "Record", "2015-03-02"), album("deluxe", "Record", "2016-11-20")]
        assert [a.id for a in clean_up_artist_albums(albums)] == ["deluxe"]

    def test_empty(self):
        assert clean_up_artist_albums([]) == []


class TestReleaseDateKey:
    """Test date precision handling"""

    def test_precisions(self):
        assert release_date_key(album("1", "a", "1999")) == date(1999, 1, 1)
        assert release_date_key(album("1", "a", "1999-06")) == date(1999, 6, 1)
        assert release_date_key(album("1", "a", "1999-06-15")) == date(1999, 6, 15)

    def test_year_only_sorts_before_later_day_in_same_year(self):
        assert release_date_key(album("1", "a", "2020")) < release_date_key(album("2", "b", "2020-02-01"))

    def test_missing_or_bad_dates_sort_first(self):
        assert release_date_key(album("1", "a", "")) == date.min
        assert release_date_key(album("1", "a", "0000")) == date.min
        assert release_date_key(album("1", "a", "unknown")) == date.min
