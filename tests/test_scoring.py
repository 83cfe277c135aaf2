"""Tests for keyword relevance scoring."""
from docchat.documents import Chunk
from docchat.pipeline.scoring import question_keywords, rank_chunks, score_chunk


class TestQuestionKeywords:

    def test_drops_short_words_and_lowercases(self):
        assert question_keywords("Is it a DOG or a cat?") == ["dog", "cat"]

    def test_splits_on_punctuation(self):
        assert question_keywords("revenue,growth;2023") == ["revenue", "growth", "2023"]

    def test_empty(self):
        assert question_keywords("") == []


class TestScoreChunk:

    def test_zero_for_disjoint_vocabulary(self):
        assert score_chunk("cats are great pets", "tell me about dogs") == 0

    def test_counts_whole_words_only(self):
        # "dogs" must not match "dogsled" or "hotdogs"
        assert score_chunk("dogsled hotdogs", "dogs") == 0
        assert score_chunk("dogs, dogs!", "dogs") == 2

    def test_case_insensitive(self):
        assert score_chunk("Dogs are LOYAL", "loyal dogs") == 2

    def test_repeated_keyword_increases_score(self):
        once = score_chunk("the dogs slept", "dogs")
        twice = score_chunk("the dogs slept while other dogs played", "dogs")
        assert twice > once > 0

    def test_short_question_words_ignored(self):
        assert score_chunk("is it on", "is it on") == 0

    def test_never_negative(self):
        for question in ["", "???", "a b c", "dogs"]:
            assert score_chunk("dogs are loyal companions", question) >= 0

    def test_regex_characters_in_question(self):
        assert score_chunk("price is c++ dependent", "c++ (price)") == 1


class TestRankChunks:

    def test_best_first(self):
        chunks = [
            Chunk(0, "cats are great pets"),
            Chunk(1, "dogs are loyal companions"),
            Chunk(2, "fish live in water"),
        ]
        ranked = rank_chunks(chunks, "tell me about dogs")
        assert ranked[0][0].index == 1
        assert ranked[0][1] > 0

    def test_ties_keep_document_order(self):
        chunks = [Chunk(i, "nothing relevant") for i in range(5)]
        ranked = rank_chunks(chunks, "dogs")
        assert [c.index for c, _ in ranked] == [0, 1, 2, 3, 4]

    def test_plain_strings(self):
        ranked = rank_chunks(["no match", "apple apple"], "apple")
        assert ranked == [("apple apple", 2), ("no match", 0)]
