import unittest

import numpy as np

from wordvec_db.search.aggregator import average_words
from wordvec_db.search.similarity import most_similar, most_similar_item, cosine_similarity
from wordvec_exception_model.exception import NullOrZeroVectorException, VectorDimensionMismatchException, \
    EmptyInputException, NoEmbeddingFoundError


class TestCosineSimilarity(unittest.TestCase):

    def test_parallel_and_orthogonal(self):
        self.assertAlmostEqual(cosine_similarity([1, 2, 3], [2, 4, 6]), 1.0)
        self.assertAlmostEqual(cosine_similarity([1, 0], [0, 1]), 0.0)
        self.assertAlmostEqual(cosine_similarity([1, 0], [-1, 0]), -1.0)

    def test_zero_vector(self):
        with self.assertRaises(NullOrZeroVectorException):
            cosine_similarity([0, 0], [1, 0])

    def test_length_mismatch(self):
        with self.assertRaises(VectorDimensionMismatchException):
            cosine_similarity([1, 0], [1, 0, 0])


class TestMostSimilar(unittest.TestCase):

    def test_self_match_is_excluded(self):
        v = np.array([0.3, 0.4, 0.5])
        result = most_similar(v, [v.copy()])

        self.assertFalse(result.found)
        self.assertIsNone(result.vector)
        self.assertEqual(result.score, 0.0)

    def test_empty_corpus(self):
        result = most_similar(np.array([1.0, 0.0]), [])
        self.assertFalse(result.found)
        self.assertEqual(result.score, 0.0)

    def test_scalar_multiple_beats_orthogonal(self):
        query = np.array([1.0, 2.0, 0.0])
        orthogonal = np.array([-2.0, 1.0, 0.0])
        multiple = 3.0 * query
        other = np.array([1.0, 1.0, 1.0])

        result = most_similar(query, [orthogonal, multiple, other])

        self.assertTrue(result.found)
        np.testing.assert_array_equal(result.vector, multiple)
        self.assertAlmostEqual(result.score, 1.0)

    def test_ties_keep_first(self):
        query = np.array([1.0, 0.0])
        first = np.array([2.0, 0.0])
        second = np.array([5.0, 0.0])

        result = most_similar(query, [first, second])
        np.testing.assert_array_equal(result.vector, first)

    def test_negative_similarity_is_not_a_match(self):
        result = most_similar(np.array([1.0, 0.0]), [np.array([-1.0, 0.0])])
        self.assertFalse(result.found)

    def test_zero_candidate_raises(self):
        with self.assertRaises(NullOrZeroVectorException):
            most_similar(np.array([1.0, 0.0]), [np.array([0.0, 0.0])])

    def test_zero_query_raises(self):
        with self.assertRaises(NullOrZeroVectorException):
            most_similar(np.array([0.0, 0.0]), [np.array([1.0, 0.0])])

    def test_zero_query_against_itself_is_not_found(self):
        zero = np.zeros(3)
        self.assertFalse(most_similar(zero, [zero]).found)

    def test_candidate_length_mismatch(self):
        with self.assertRaises(VectorDimensionMismatchException):
            most_similar(np.array([1.0, 0.0]), [np.array([1.0, 0.0, 0.0])])

    def test_accepts_generators(self):
        corpus = (np.array([float(i), 1.0]) for i in range(1, 5))
        result = most_similar([4.0, 1.0], corpus)
        np.testing.assert_array_equal(result.vector, np.array([3.0, 1.0]))

    def test_items_carry_word(self):
        items = [("cat", np.array([1.0, 0.0, 0.0])), ("dog", np.array([0.0, 1.0, 0.0]))]
        result = most_similar_item(np.array([0.9, 0.1, 0.0]), items)

        self.assertEqual(result.word, "cat")
        self.assertGreater(result.score, cosine_similarity([0.9, 0.1, 0.0], [0.0, 1.0, 0.0]))


class TestAverageWords(unittest.TestCase):

    def setUp(self):
        self.vectors = {
            "a": np.array([1.0, 2.0, 3.0]),
            "b": np.array([3.0, 4.0, 5.0]),
        }

    def resolve(self, word):
        if word not in self.vectors:
            raise NoEmbeddingFoundError("No embedding found for the given word", word)
        return self.vectors[word]

    def test_average(self):
        np.testing.assert_array_equal(average_words(["a", "b"], self.resolve), np.array([2.0, 3.0, 4.0]))

    def test_order_independent(self):
        np.testing.assert_array_equal(average_words(["b", "a"], self.resolve),
                                      average_words(["a", "b"], self.resolve))

    def test_duplicates_weight_the_average(self):
        np.testing.assert_allclose(average_words(["a", "a", "b"], self.resolve),
                                   np.array([5.0 / 3, 8.0 / 3, 11.0 / 3]))

    def test_single_word(self):
        np.testing.assert_array_equal(average_words(["a"], self.resolve), self.vectors["a"])

    def test_does_not_mutate_resolved_vectors(self):
        average_words(["a", "b"], self.resolve)
        np.testing.assert_array_equal(self.vectors["a"], np.array([1.0, 2.0, 3.0]))

    def test_empty_input(self):
        with self.assertRaises(EmptyInputException):
            average_words([], self.resolve)

    def test_unknown_word(self):
        with self.assertRaises(NoEmbeddingFoundError) as ctx:
            average_words(["a", "unknownWord"], self.resolve)
        self.assertEqual(ctx.exception.word, "unknownWord")

    def test_length_mismatch(self):
        self.vectors["c"] = np.array([1.0])
        with self.assertRaises(VectorDimensionMismatchException):
            average_words(["a", "c"], self.resolve)


if __name__ == '__main__':
    unittest.main()
