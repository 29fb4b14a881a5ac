import unittest
import sys
from pathlib import Path

import numpy as np

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from login_anomaly.config import PCAConfig
from login_anomaly.exceptions import DimensionMismatchError, ModelError
from login_anomaly.models.pca_anomaly import (
    PCAAnomalyDetector,
    choose_oversampling,
    choose_rank,
    create_pca_detector,
)


class TestRankSelection(unittest.TestCase):

    def test_rank(self):
        """rank = max(2, round(sqrt(dim)))."""
        self.assertEqual(choose_rank(4), 2)
        self.assertEqual(choose_rank(6), 2)
        self.assertEqual(choose_rank(7), 3)
        self.assertEqual(choose_rank(16), 4)
        self.assertEqual(choose_rank(30), 5)

    def test_oversampling(self):
        """oversampling = ceil(0.5 * rank)."""
        self.assertEqual(choose_oversampling(2), 1)
        self.assertEqual(choose_oversampling(3), 2)
        self.assertEqual(choose_oversampling(5), 3)


class TestPCAAnomalyDetector(unittest.TestCase):

    def setUp(self):
        rng = np.random.RandomState(7)
        # Training data close to a 4-dimensional subspace of R^16
        latent = rng.randn(200, 4)
        mixing = rng.randn(4, 16)
        self.X_train = latent @ mixing + 0.01 * rng.randn(200, 16)
        self.detector = PCAAnomalyDetector(seed=0)

    def test_fit_sets_subspace(self):
        self.detector.fit(self.X_train)

        self.assertTrue(self.detector.is_fitted)
        self.assertEqual(self.detector.rank_, 4)
        self.assertEqual(self.detector.oversampling_, 2)
        self.assertEqual(self.detector.basis_.shape, (4, 16))
        self.assertEqual(self.detector.mean_.shape, (16,))
        self.assertEqual(self.detector.n_features_, 16)

    def test_scores_non_negative_and_outlier_higher(self):
        """Points off the learned subspace reconstruct worse."""
        self.detector.fit(self.X_train)
        train_scores = self.detector.score(self.X_train)
        outlier = np.full((1, 16), 10.0)

        self.assertTrue(np.all(train_scores >= 0))
        self.assertGreater(self.detector.score(outlier)[0], train_scores.max())

    def test_predict(self):
        self.detector.fit(self.X_train)
        flags = self.detector.predict(np.vstack([self.X_train[:5], np.full((1, 16), 10.0)]), threshold=1.0)
        np.testing.assert_array_equal(flags, [0, 0, 0, 0, 0, 1])

    def test_deterministic(self):
        """Same seed, same data, same scores."""
        first = PCAAnomalyDetector(seed=3).fit(self.X_train).score(self.X_train)
        second = PCAAnomalyDetector(seed=3).fit(self.X_train).score(self.X_train)
        np.testing.assert_allclose(first, second)

    def test_from_params(self):
        self.detector.fit(self.X_train)
        restored = PCAAnomalyDetector.from_params(
            basis=self.detector.basis_,
            mean=self.detector.mean_,
            rank=self.detector.rank_,
            oversampling=self.detector.oversampling_,
        )
        np.testing.assert_allclose(restored.score(self.X_train), self.detector.score(self.X_train))

    def test_dimension_mismatch(self):
        self.detector.fit(self.X_train)
        with self.assertRaises(DimensionMismatchError):
            self.detector.score(np.zeros((3, 15)))

    def test_too_few_rows(self):
        """Fewer rows than the rank cannot be fitted."""
        with self.assertRaises(ModelError):
            self.detector.fit(self.X_train[:3])

    def test_degenerate_input(self):
        with self.assertRaises(ModelError):
            self.detector.fit(np.ones((20, 9)))

    def test_error_handling(self):
        with self.assertRaises(ModelError):
            self.detector.score(self.X_train)
        with self.assertRaises(ModelError):
            self.detector.fit(np.full((10, 4), np.nan))
        with self.assertRaises(ModelError):
            PCAAnomalyDetector.from_params(np.zeros((2, 5)), np.zeros(4), 2, 1)

    def test_factory(self):
        detector = create_pca_detector(PCAConfig(min_rank=3, oversampling_ratio=1.0), seed=5)
        self.assertEqual(detector.min_rank, 3)
        self.assertEqual(detector.oversampling_ratio, 1.0)
        self.assertEqual(detector.seed, 5)


if __name__ == '__main__':
    unittest.main()
