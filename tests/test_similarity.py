from services.similarity import (
    bigrams,
    dice_coefficient,
    find_duplicate_titles,
    find_similar_genres,
    levenshtein_distance,
    levenshtein_similarity,
)


def test_levenshtein_distance():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("same", "same") == 0


def test_levenshtein_similarity_normalizes_and_is_symmetric():
    assert levenshtein_similarity("Sci-Fi", "SciFi") == 1.0
    assert levenshtein_similarity("Action", "Drama") == levenshtein_similarity("Drama", "Action")
    assert 0.0 <= levenshtein_similarity("Romance", "Romantic") <= 1.0


def test_bigrams_edge_cases():
    assert bigrams("") == []
    assert bigrams("a") == ["a"]
    assert bigrams("abc") == ["ab", "bc"]


def test_dice_coefficient_bounds():
    assert dice_coefficient("aaaa", "aaaa") == 1.0
    assert dice_coefficient("ab", "cd") == 0.0
    assert dice_coefficient("", "abc") == 0.0
    assert dice_coefficient("night", "nacht") == dice_coefficient("nacht", "night")


def test_similar_genres_keep_the_more_used_name():
    books = [
        {"id": 1, "genres": ["Sci-Fi", "Drama"]},
        {"id": 2, "genres": ["SciFi"]},
        {"id": 3, "genres": ["SciFi", "SciFi"]},
    ]

    pairs = find_similar_genres(books)

    assert len(pairs) == 1
    pair = pairs[0]
    assert pair.keep_genre == "SciFi"
    assert pair.merge_genre == "Sci-Fi"
    assert pair.keep_count == 2
    assert pair.merge_count == 1
    assert pair.score == 1.0
    assert pair.to_payload()["similarity"] == 1.0


def test_similar_genres_skip_names_that_normalize_to_nothing():
    books = [{"id": 1, "genres": ["ロマンス", "アクション", "Drama", "!!!"]}]

    assert find_similar_genres(books) == []


def test_similar_genres_sorted_by_similarity():
    books = [{"id": 1, "genres": ["Romance", "Romanse", "Romantic", "Horror"]}]

    pairs = find_similar_genres(books, threshold=0.6)

    assert [pair.score for pair in pairs] == sorted((pair.score for pair in pairs), reverse=True)
    assert all(pair.score >= 0.6 for pair in pairs)


def test_duplicate_titles_flag_containment_and_skip_related():
    books = [
        {"id": "a", "title": "Solo Leveling"},
        {"id": "b", "title": "Solo Leveling: Ragnarok"},
        {"id": "c", "title": "Omniscient Reader"},
        {"id": "d", "title": "Omniscient Reader's Viewpoint"},
        {"id": "e", "title": "Nano Machine"},
    ]

    pairs = find_duplicate_titles(books, related_pairs=[("d", "c")])

    flagged = {(pair.item_a["id"], pair.item_b["id"]) for pair in pairs}
    assert flagged == {("a", "b")}
    assert pairs[0].score >= 0.70


def test_duplicate_titles_ignore_blank_titles():
    books = [{"id": 1, "title": ""}, {"id": 2, "title": "!!!"}, {"id": 3, "title": "Nano Machine"}]

    assert find_duplicate_titles(books) == []
