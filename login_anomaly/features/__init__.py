"""Feature encoding."""

from .encoder import EncoderState, FeatureEncoder, encode

__all__ = ["EncoderState", "FeatureEncoder", "encode"]
