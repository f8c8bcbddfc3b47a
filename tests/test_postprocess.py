"""Tests for score-to-prediction mapping."""

import pytest

from model import PredictionResult, postprocess
from model.errors import InferenceError


LABELS = ["angry", "happy", "sad"]


class TestPostprocess:
    """Tests for postprocess."""

    def test_highest_score_wins(self):
        result = postprocess([0.1, 0.7, 0.2], LABELS)

        assert result.emotion == "happy"
        assert result.confidence == pytest.approx(0.7)
        assert dict(result.probabilities) == pytest.approx({"angry": 0.1, "happy": 0.7, "sad": 0.2})

    def test_tie_goes_to_first_label(self):
        """On an exact tie the label with the lowest index wins."""
        result = postprocess([0.5, 0.5, 0.0], LABELS)

        assert result.emotion == "angry"
        assert result.confidence == 0.5

    def test_tie_not_at_start(self):
        result = postprocess([0.1, 0.45, 0.45], LABELS)

        assert result.emotion == "happy"

    def test_confidence_matches_probability(self):
        result = postprocess([0.05, 0.15, 0.8], LABELS)

        assert result.probabilities[result.emotion] == result.confidence

    def test_one_entry_per_label(self):
        result = postprocess([0.3, 0.3, 0.4], LABELS)

        assert list(result.probabilities) == LABELS

    def test_scores_not_renormalized(self):
        """Raw logits are reported as given."""
        result = postprocess([2.0, -1.0, 0.5], LABELS)

        assert result.emotion == "angry"
        assert result.confidence == 2.0
        assert result.probabilities["happy"] == -1.0

    def test_single_label(self):
        result = postprocess([0.0], ["neutral"])

        assert result.emotion == "neutral"

    def test_model_name_recorded(self):
        assert postprocess([1.0, 0.0, 0.0], LABELS, model_name="fer-cnn").model_name == "fer-cnn"

    @pytest.mark.parametrize(
        "scores, labels",
        [
            ([0.5, 0.5], LABELS),
            ([0.2, 0.3, 0.4, 0.1], LABELS),
            ([], []),
        ],
        ids=["too-few", "too-many", "empty"],
    )
    def test_label_mismatch(self, scores, labels):
        with pytest.raises(InferenceError) as exc_info:
            postprocess(scores, labels)

        assert exc_info.value.code == "LABEL_MISMATCH"


class TestPredictionResult:
    """Tests for PredictionResult."""

    def test_ranked(self):
        result = postprocess([0.2, 0.5, 0.2], LABELS)

        assert result.ranked() == [("happy", 0.5), ("angry", 0.2), ("sad", 0.2)]

    def test_to_dict(self):
        result = PredictionResult(
            emotion="sad",
            confidence=0.6,
            probabilities={"happy": 0.4, "sad": 0.6},
            model_name="m",
        )

        assert result.to_dict() == {
            "emotion": "sad",
            "confidence": 0.6,
            "probabilities": {"happy": 0.4, "sad": 0.6},
            "model_name": "m",
        }

    def test_immutable(self):
        source = {"happy": 1.0}
        result = PredictionResult(emotion="happy", confidence=1.0, probabilities=source)
        source["sad"] = 0.0

        assert "sad" not in result.probabilities
        with pytest.raises(TypeError):
            result.probabilities["happy"] = 0.0
        with pytest.raises(AttributeError):
            result.emotion = "sad"
