"""
Detection orchestrator.

Training:  records -> features -> encoder fit -> PCA fit -> versioned artifact
Reporting: artifact -> encode batch -> score -> threshold -> three detectors

The three detectors run independently over the same scored batch; only
encoder, scorer and store failures abort a reporting run.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .config import Config
from .data.records import LoginFeatures, LoginRecord, ScoredRecord, derive_features
from .detectors.ownership import OwnershipReport, OwnershipTracker
from .detectors.temporal import TemporalClusteringAnalyzer, TemporalReport
from .exceptions import InsufficientDataWarning, NoValidData
from .features.encoder import FeatureEncoder
from .models.pca_anomaly import create_pca_detector
from .models.store import AnomalyModel, ModelStore, create_store
from .models.threshold import Threshold, compute_threshold
from .reporting import LoggingReportSink, ReportSink

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"


@dataclass
class DetectionReport:
    """Outcome of one reporting run."""

    version: int
    scored: List[ScoredRecord]
    threshold: Optional[Threshold]
    pca_anomalies: List[ScoredRecord]
    ownership: OwnershipReport
    temporal: TemporalReport


class LoginAnomalyDetector:
    """
    Trains and applies login anomaly models.

    Args:
        config: Run configuration.
        store: Model store (default: file store from ``config.store``).
        sink: Report sink (default: console logging sink).
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        store: Optional[ModelStore] = None,
        sink: Optional[ReportSink] = None,
    ):
        self.config = config or Config()
        self.store = store if store is not None else create_store(self.config.store)
        self.sink = sink if sink is not None else LoggingReportSink()

    def _features(self, records: Sequence[LoginRecord]) -> List[LoginFeatures]:
        if not records:
            raise NoValidData("No valid data rows")
        return derive_features(records)

    def train(self, records: Sequence[LoginRecord]) -> AnomalyModel:
        """
        Fit and persist a new model version.

        Raises:
            NoValidData: Empty batch.
            ModelError: Fit or save failure; no artifact is written.
        """
        self.sink.title("Starting Model Training")
        features = self._features(records)

        version = self.store.next_version()

        encoder = FeatureEncoder()
        vectors = encoder.fit_transform(features)

        detector = create_pca_detector(self.config.pca, seed=self.config.seed)
        self.sink.info("Fitting the anomaly detection model...")
        detector.fit(vectors)
        self.sink.info(f"PCA: Rank={detector.rank_}, Oversampling={detector.oversampling_}")

        model = AnomalyModel.from_fitted(version, encoder, detector, len(features))
        self.store.save(version, model)

        self.sink.success(f"Model training completed. Saved as version {version}")
        self.sink.info(f"Model saved: {self.store.location(version)}")
        return model

    def load(self, version: int) -> AnomalyModel:
        """Load a model version; raises ModelError on failure."""
        self.sink.title("Loading Model")
        model = self.store.load(version)
        self.sink.success(f"Model loaded: {self.store.location(version)}")
        return model

    def score(self, model: AnomalyModel, features: Sequence[LoginFeatures]) -> List[ScoredRecord]:
        """Encode with the model's vocabulary and score every login."""
        vectors = model.build_encoder().transform(features)
        scores = model.build_detector().score(vectors)
        return [ScoredRecord(features=f, score=float(s)) for f, s in zip(features, scores)]

    def detect_pca_anomalies(
        self, scored: Sequence[ScoredRecord]
    ) -> Tuple[Optional[Threshold], List[ScoredRecord]]:
        """
        Flag scores above the IQR threshold, in timestamp order.

        Returns:
            (threshold or None, anomalies). With too few scores the
            threshold is None and nothing is flagged.
        """
        self.sink.title("Starting PCA-Based Anomaly Detection")
        cfg = self.config.threshold

        try:
            threshold = compute_threshold(
                [r.score for r in scored],
                iqr_multiplier=cfg.iqr_multiplier,
                min_threshold=cfg.min_threshold,
                min_scores=cfg.min_scores,
            )
        except InsufficientDataWarning as e:
            self.sink.warning(str(e))
            return None, []

        self.sink.info(
            f"Final threshold: {threshold.value:.2f} "
            f"(IQRx{cfg.iqr_multiplier} or min {cfg.min_threshold})"
        )

        anomalies = []
        for r in sorted(scored, key=lambda x: x.features.timestamp):
            if r.score > threshold.value:
                anomalies.append(r)
                f = r.features
                self.sink.anomaly(
                    f"Unusual activity: {f.user}@{f.computer} at "
                    f"{f.timestamp.strftime(TIMESTAMP_FORMAT)} (Score: {r.score:.2f})"
                )

        if not anomalies:
            self.sink.success("No PCA-based anomalies")
        return threshold, anomalies

    def report(
        self,
        records: Sequence[LoginRecord],
        version: int,
        ownership_baseline: Optional[Sequence[LoginRecord]] = None,
    ) -> DetectionReport:
        """
        Score a batch with a stored model and run all three detectors.

        Args:
            records: Batch to analyze.
            version: Model version to score with.
            ownership_baseline: Optional batch defining monthly owners;
                defaults to ``records``.

        Raises:
            NoValidData: Empty batch.
            ModelError: Missing/corrupt artifact or dimension mismatch.
        """
        model = self.load(version)
        features = self._features(records)
        scored = self.score(model, features)

        threshold, pca_anomalies = self.detect_pca_anomalies(scored)

        ground_truth = None
        if ownership_baseline is not None:
            ground_truth = self._features(ownership_baseline)
        ownership = OwnershipTracker(sink=self.sink).detect(features, ground_truth=ground_truth)

        temporal = TemporalClusteringAnalyzer.from_config(
            self.config.clustering, seed=self.config.seed, sink=self.sink
        ).detect(features)

        logger.debug(
            f"Report v{version}: {len(pca_anomalies)} PCA, "
            f"{len(ownership.anomalies)} ownership, {len(temporal.anomalies)} time anomalies"
        )
        return DetectionReport(
            version=version,
            scored=scored,
            threshold=threshold,
            pca_anomalies=pca_anomalies,
            ownership=ownership,
            temporal=temporal,
        )
