import pandas as pd

from persistence.csv_storage import CsvStorage
from persistence.repositories import ActivitiesRepo


def _seed(tmp_path, rows):
    pd.DataFrame(rows).to_csv(tmp_path / "activities.csv", index=False)


def test_list_for_athlete(tmp_path):
    _seed(
        tmp_path,
        [
            {"activityId": "a1", "athleteId": "ath-1", "sportType": "Run", "distanceKm": 5.0},
            {"activityId": "a2", "athleteId": "ath-1", "sportType": "Ride", "distanceKm": 40.0},
            {"activityId": "a3", "athleteId": "ath-2", "sportType": "Run", "distanceKm": 8.0},
        ],
    )
    repo = ActivitiesRepo(CsvStorage(base_dir=tmp_path))
    df = repo.list_for_athlete("ath-1")
    assert df["activityId"].tolist() == ["a1", "a2"]
    assert list(df.columns) == repo.headers
    assert len(repo.list(sportType="Run")) == 2


def test_numeric_athlete_ids_match_strings(tmp_path):
    _seed(tmp_path, [{"activityId": "a1", "athleteId": 1, "sportType": "Run"}])
    repo = ActivitiesRepo(CsvStorage(base_dir=tmp_path))
    assert len(repo.list_for_athlete("1")) == 1


def test_empty_store_has_headers(tmp_path):
    repo = ActivitiesRepo(CsvStorage(base_dir=tmp_path))
    df = repo.list()
    assert df.empty
    assert list(df.columns) == repo.headers
