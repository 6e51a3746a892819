import pytest

from researchhub.services.text_matching import (
    normalize_string, tokenize, fuzzy_match, jaccard_similarity, text_similarity
)


def test_normalize_string():
    assert normalize_string("  Machine-Learning_Ops  ") == "machine learning ops"
    assert normalize_string("Deep \t  Learning") == "deep learning"


def test_tokenize_drops_short_words_stopwords_and_punctuation():
    assert tokenize("The quick, brown fox; is (AI) [ready]!") == ["quick", "brown", "fox", "ready"]


def test_tokenize_keeps_duplicates():
    assert tokenize("graph graph neural") == ["graph", "graph", "neural"]


@pytest.mark.parametrize("term", ["python", "Machine Learning", "x", "natural language processing"])
def test_fuzzy_match_is_reflexive(term):
    assert fuzzy_match(term, term)


def test_fuzzy_match_normalizes_separators():
    assert fuzzy_match("machine learning", "Machine-Learning")


def test_fuzzy_match_substring():
    assert fuzzy_match("deep learning models", "deep learning")


def test_fuzzy_match_short_substring_false_positive():
    # known and accepted: "ai" is a substring of "hair"
    assert fuzzy_match("ai", "hair")


def test_fuzzy_match_word_overlap():
    assert fuzzy_match("learning machine", "machine learning")
    assert fuzzy_match("cell biology", "biology of the cell")
    assert not fuzzy_match("computational biology", "biology of cells")


def test_fuzzy_match_unrelated():
    assert not fuzzy_match("computer vision", "natural language processing")
    assert not fuzzy_match("python", "java")


def test_jaccard_empty_side_is_zero():
    assert jaccard_similarity([], ["python"]) == 0.0
    assert jaccard_similarity(["python"], []) == 0.0
    assert jaccard_similarity([], []) == 0.0


def test_jaccard_identical_distinct_elements_is_one():
    terms = ["python", "robotics", "genomics"]
    assert jaccard_similarity(terms, terms) == 1.0


def test_jaccard_partial_overlap():
    # 1 shared, union = 2 + 2 - 1
    assert jaccard_similarity(["machine learning", "python"], ["machine-learning", "deep learning"]) == pytest.approx(1 / 3)


def test_jaccard_each_element_matched_once():
    # both "python" entries compete for the single "python" on the right
    assert jaccard_similarity(["python", "python"], ["python"]) == pytest.approx(1 / 2)


def test_text_similarity_empty_reference():
    assert text_similarity("", "anything at all") == 0.0
    assert text_similarity("the and of", "anything") == 0.0


def test_text_similarity_is_asymmetric():
    assert text_similarity("neural networks", "neural networks for protein folding") == 1.0
    assert text_similarity("neural networks for protein folding", "neural networks") == pytest.approx(0.5)


def test_text_similarity_short_keywords_count_only_in_denominator():
    assert text_similarity("gpu cuda kernels", "gpu cuda kernels") == pytest.approx(2 / 3)


def test_text_similarity_joins_multiple_texts():
    assert text_similarity("protein folding", "protein design", "folding dynamics") == 1.0
