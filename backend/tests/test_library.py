from pgnbase.library import export_database, export_filename, filter_games, unique_openings, unique_tags
from pgnbase.schemas import GameFilters, GameRecord

GAMES = [
    GameRecord(white="Magnus", black="Hikaru", date="2024.03.01", result="1-0", opening="Sicilian Defense",
               tags=["blitz"], pgn="1. e4 c5 1-0"),
    GameRecord(white="Alireza", black="Magnus", date="2023.11.20", result="0-1", opening="Ruy Lopez",
               tags=["classical", "blitz"], pgn="1. e4 e5 0-1"),
    GameRecord(white="Anna", black="Ju", date="2022.01.05", result="1/2-1/2", opening="",
               pgn="1. d4 d5 1/2-1/2"),
]


def test_search_matches_either_player_case_insensitively():
    result = filter_games(GAMES, GameFilters(search_text="magnus"))
    assert [g.white for g in result] == ["Magnus", "Alireza"]


def test_filters_combine():
    filters = GameFilters(opening="Ruy Lopez", result="0-1", tags=["classical"])
    assert [g.white for g in filter_games(GAMES, filters)] == ["Alireza"]


def test_date_range_accepts_iso_dates():
    result = filter_games(GAMES, GameFilters(date_from="2023-01-01", date_to="2024.02.01"))
    assert [g.date for g in result] == ["2023.11.20"]


def test_empty_filters_keep_everything():
    assert filter_games(GAMES, GameFilters()) == GAMES


def test_unique_openings_and_tags():
    assert unique_openings(GAMES) == ["Ruy Lopez", "Sicilian Defense"]
    assert unique_tags(GAMES) == ["blitz", "classical"]


def test_export_database_separates_games():
    exported = export_database(GAMES[:2])
    assert exported == "1. e4 c5 1-0\n\n1. e4 e5 0-1\n"


def test_export_filename_is_safe():
    game = GameRecord(white="Carlsen, M", black="Nakamura/H", date="2024.03.01", pgn="*")
    assert export_filename(game) == "Carlsen_M_vs_Nakamura_H_2024.03.01.pgn"
